"""Equipment inventory ledger."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.database import get_db_session
from studiohub.core.metrics import EQUIPMENT_RESERVATION_FAILURES_TOTAL
from studiohub.modules.equipment.models import Equipment
from studiohub.modules.equipment.repository import EquipmentRepository
from studiohub.shared.exceptions import (
    BusinessRuleException,
    InsufficientStockException,
    InvalidStateException,
    NotFoundException,
)

logger = logging.getLogger(__name__)


class EquipmentLedger:
    """Reserve, release and maintenance moves over equipment counters.

    Counters always satisfy ``total = available + in_use + maintenance``; every
    move shifts units between two buckets in one storage-level statement.
    """

    def __init__(self, repository: EquipmentRepository) -> None:
        self.repository = repository

    @staticmethod
    def _ensure_positive(qty: int) -> None:
        if qty <= 0:
            raise BusinessRuleException("Quantity must be positive", quantity=qty)

    async def get_equipment(self, equipment_id: UUID) -> Equipment:
        equipment = await self.repository.get_by_id(equipment_id)
        if equipment is None:
            raise NotFoundException("Equipment not found")
        return equipment

    async def reserve(self, equipment_id: UUID, qty: int) -> Equipment:
        """Move ``qty`` units from available to in use."""
        self._ensure_positive(qty)
        equipment = await self.repository.reserve(equipment_id, qty)
        if equipment is not None:
            return equipment

        current = await self.get_equipment(equipment_id)
        EQUIPMENT_RESERVATION_FAILURES_TOTAL.inc()
        raise InsufficientStockException(
            f"Only {current.available_qty} of {current.total_qty} units of {current.name} are available",
            available_qty=current.available_qty,
            total_qty=current.total_qty,
        )

    async def release(self, equipment_id: UUID, qty: int) -> Equipment:
        """Move ``qty`` units from in use back to available."""
        self._ensure_positive(qty)
        equipment = await self.repository.release(equipment_id, qty)
        if equipment is not None:
            return equipment

        current = await self.get_equipment(equipment_id)
        raise InvalidStateException(
            f"Cannot release {qty} units, only {current.in_use_qty} are in use",
            in_use_qty=current.in_use_qty,
        )

    async def set_maintenance_quantity(self, equipment_id: UUID, new_qty: int) -> Equipment:
        """Set the number of units under maintenance, taking or returning the delta from available."""
        if new_qty < 0:
            raise BusinessRuleException("Maintenance quantity cannot be negative", quantity=new_qty)

        equipment = await self.repository.set_maintenance(equipment_id, new_qty)
        if equipment is not None:
            logger.info("Equipment %s maintenance quantity set to %s", equipment_id, new_qty)
            return equipment

        current = await self.get_equipment(equipment_id)
        raise BusinessRuleException(
            "Maintenance quantity exceeds units that are not in use",
            requested=new_qty,
            available_qty=current.available_qty,
            in_use_qty=current.in_use_qty,
            total_qty=current.total_qty,
        )


async def get_equipment_ledger(session: AsyncSession = Depends(get_db_session)) -> EquipmentLedger:
    """Dependency provider for equipment ledger."""
    return EquipmentLedger(EquipmentRepository(session))
