"""Room policy ORM models."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from studiohub.core.database import Base, BaseModelMixin
from studiohub.core.enums import PolicyCategoryEnum, PolicyTypeEnum


class RoomPolicy(BaseModelMixin, Base):
    """Live cancellation or no-show policy. Bookings keep their own copy."""

    __tablename__ = "room_policies"
    __table_args__ = (Index("ix_room_policies_type_category_active", "type", "category", "is_active"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[PolicyTypeEnum] = mapped_column(
        SAEnum(PolicyTypeEnum, name="policy_type_enum", native_enum=False),
        nullable=False,
    )
    category: Mapped[PolicyCategoryEnum] = mapped_column(
        SAEnum(PolicyCategoryEnum, name="policy_category_enum", native_enum=False),
        default=PolicyCategoryEnum.STANDARD,
        nullable=False,
    )
    refund_tiers: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, default=list, nullable=False)
    no_show_rules: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
