"""Equipment ORM models."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import CheckConstraint, Integer, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from studiohub.core.database import Base, BaseModelMixin
from studiohub.core.enums import EquipmentStatusEnum


def derive_equipment_status(in_use_qty: int, maintenance_qty: int, total_qty: int) -> EquipmentStatusEnum:
    """Status follows the counters: any unit in use wins, then full maintenance."""
    if in_use_qty > 0:
        return EquipmentStatusEnum.IN_USE
    if total_qty > 0 and maintenance_qty == total_qty:
        return EquipmentStatusEnum.MAINTENANCE
    return EquipmentStatusEnum.AVAILABLE


class Equipment(BaseModelMixin, Base):
    """Rentable equipment pool with per-unit counters."""

    __tablename__ = "equipment"
    __table_args__ = (
        CheckConstraint(
            "total_qty = available_qty + in_use_qty + maintenance_qty",
            name="qty_balance",
        ),
        CheckConstraint("available_qty >= 0", name="available_qty_non_negative"),
        CheckConstraint("in_use_qty >= 0", name="in_use_qty_non_negative"),
        CheckConstraint("maintenance_qty >= 0", name="maintenance_qty_non_negative"),
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_per_hour: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    available_qty: Mapped[int] = mapped_column(Integer, nullable=False)
    in_use_qty: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    maintenance_qty: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[EquipmentStatusEnum] = mapped_column(
        SAEnum(EquipmentStatusEnum, name="equipment_status_enum", native_enum=False),
        default=EquipmentStatusEnum.AVAILABLE,
        nullable=False,
    )
