"""Catalog ORM models read by the booking core."""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from studiohub.core.database import Base, BaseModelMixin


class Studio(BaseModelMixin, Base):
    """Rentable studio room."""

    __tablename__ = "studios"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    base_rate_per_hour: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class ExtraService(BaseModelMixin, Base):
    """Per-use add-on service (makeup artist, photographer, ...)."""

    __tablename__ = "extra_services"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price_per_use: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
