"""Equipment repository layer.

Every counter mutation is a single conditional ``UPDATE ... RETURNING``: the
guard is evaluated by the database, so concurrent callers cannot both pass it.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.enums import EquipmentStatusEnum
from studiohub.modules.equipment.models import Equipment


def _status_literal(status: EquipmentStatusEnum):
    return literal(status, type_=Equipment.__table__.c.status.type)


def _status_expression(in_use_qty, maintenance_qty):
    # SQL form of derive_equipment_status.
    # SET clauses see pre-update column values, so callers pass the new counters.
    return case(
        (in_use_qty > 0, _status_literal(EquipmentStatusEnum.IN_USE)),
        (
            (Equipment.total_qty > 0) & (Equipment.total_qty == maintenance_qty),
            _status_literal(EquipmentStatusEnum.MAINTENANCE),
        ),
        else_=_status_literal(EquipmentStatusEnum.AVAILABLE),
    )


class EquipmentRepository:
    """DB access for equipment counters."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_equipment(self, name: str, price_per_hour: Decimal, total_qty: int) -> Equipment:
        equipment = Equipment(
            name=name,
            price_per_hour=price_per_hour,
            total_qty=total_qty,
            available_qty=total_qty,
            in_use_qty=0,
            maintenance_qty=0,
            status=EquipmentStatusEnum.AVAILABLE,
        )
        self.session.add(equipment)
        await self.session.flush()
        return equipment

    async def get_by_id(self, equipment_id: UUID) -> Equipment | None:
        stmt = select(Equipment).where(Equipment.id == equipment_id)
        return await self.session.scalar(stmt)

    async def reserve(self, equipment_id: UUID, qty: int) -> Equipment | None:
        new_in_use = Equipment.in_use_qty + qty
        stmt = (
            update(Equipment)
            .where(Equipment.id == equipment_id, Equipment.available_qty >= qty)
            .values(
                available_qty=Equipment.available_qty - qty,
                in_use_qty=new_in_use,
                status=_status_expression(new_in_use, Equipment.maintenance_qty),
            )
            .returning(Equipment)
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def release(self, equipment_id: UUID, qty: int) -> Equipment | None:
        new_in_use = Equipment.in_use_qty - qty
        stmt = (
            update(Equipment)
            .where(Equipment.id == equipment_id, Equipment.in_use_qty >= qty)
            .values(
                available_qty=Equipment.available_qty + qty,
                in_use_qty=new_in_use,
                status=_status_expression(new_in_use, Equipment.maintenance_qty),
            )
            .returning(Equipment)
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def set_maintenance(self, equipment_id: UUID, new_qty: int) -> Equipment | None:
        stmt = (
            update(Equipment)
            .where(
                Equipment.id == equipment_id,
                Equipment.available_qty + Equipment.maintenance_qty >= new_qty,
                Equipment.in_use_qty + new_qty <= Equipment.total_qty,
            )
            .values(
                available_qty=Equipment.available_qty + Equipment.maintenance_qty - new_qty,
                maintenance_qty=new_qty,
                status=_status_expression(Equipment.in_use_qty, new_qty),
            )
            .returning(Equipment)
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()
