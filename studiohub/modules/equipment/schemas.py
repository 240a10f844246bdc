"""Equipment schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from studiohub.core.enums import EquipmentStatusEnum


class MaintenanceQuantityUpdate(BaseModel):
    """Set units under maintenance request."""

    maintenance_qty: int = Field(ge=0)


class EquipmentRead(BaseModel):
    """Equipment response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    price_per_hour: Decimal
    total_qty: int
    available_qty: int
    in_use_qty: int
    maintenance_qty: int
    status: EquipmentStatusEnum
    updated_at: datetime
