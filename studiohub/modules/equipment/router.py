"""Equipment API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from studiohub.core.enums import RoleEnum
from studiohub.core.security import get_current_actor, require_roles
from studiohub.modules.equipment.schemas import EquipmentRead, MaintenanceQuantityUpdate
from studiohub.modules.equipment.service import EquipmentLedger, get_equipment_ledger

router = APIRouter(prefix="/equipment", tags=["equipment"])


@router.get("/{equipment_id}", response_model=EquipmentRead)
async def get_equipment(
    equipment_id: UUID,
    ledger: EquipmentLedger = Depends(get_equipment_ledger),
    _actor=Depends(get_current_actor),
) -> EquipmentRead:
    """Return equipment counters."""
    equipment = await ledger.get_equipment(equipment_id)
    return EquipmentRead.model_validate(equipment)


@router.put("/{equipment_id}/maintenance", response_model=EquipmentRead)
async def set_maintenance_quantity(
    equipment_id: UUID,
    payload: MaintenanceQuantityUpdate,
    ledger: EquipmentLedger = Depends(get_equipment_ledger),
    _actor=Depends(require_roles(RoleEnum.STAFF, RoleEnum.ADMIN)),
) -> EquipmentRead:
    """Move units between available and maintenance."""
    equipment = await ledger.set_maintenance_quantity(equipment_id, payload.maintenance_qty)
    return EquipmentRead.model_validate(equipment)
