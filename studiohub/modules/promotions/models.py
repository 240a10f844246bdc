"""Promotion ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer, Numeric, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from studiohub.core.database import Base, BaseModelMixin
from studiohub.core.enums import DiscountTypeEnum, PromotionAudienceEnum


class Promotion(BaseModelMixin, Base):
    """Discount code with usage and budget ledgers."""

    __tablename__ = "promotions"
    __table_args__ = (
        CheckConstraint("usage_count >= 0", name="usage_count_non_negative"),
        CheckConstraint("total_discounted_amount >= 0", name="total_discounted_non_negative"),
        CheckConstraint("end_date >= start_date", name="date_order"),
    )

    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    discount_type: Mapped[DiscountTypeEnum] = mapped_column(
        SAEnum(DiscountTypeEnum, name="discount_type_enum", native_enum=False),
        nullable=False,
    )
    discount_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    max_discount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    min_order_value: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    usage_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    usage_limit_per_user: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applicable_days: Mapped[list[int] | None] = mapped_column(ARRAY(Integer), nullable=True)
    applicable_start_hour: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applicable_end_hour: Mapped[int | None] = mapped_column(Integer, nullable=True)
    applicable_for: Mapped[PromotionAudienceEnum] = mapped_column(
        SAEnum(PromotionAudienceEnum, name="promotion_audience_enum", native_enum=False),
        default=PromotionAudienceEnum.ALL,
        nullable=False,
    )
    max_total_discount_amount: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    total_discounted_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=Decimal("0"), nullable=False)
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
