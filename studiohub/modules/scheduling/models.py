"""Scheduling ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from studiohub.core.database import Base, BaseModelMixin
from studiohub.core.enums import SlotStatusEnum


class Schedule(BaseModelMixin, Base):
    """Time window of one studio, free or claimed by a booking."""

    __tablename__ = "schedules"
    __table_args__ = (
        CheckConstraint("end_at > start_at", name="window_order"),
        Index("ix_schedules_studio_window", "studio_id", "start_at", "end_at"),
    )

    studio_id: Mapped[UUID] = mapped_column(
        ForeignKey("studios.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    status: Mapped[SlotStatusEnum] = mapped_column(
        SAEnum(SlotStatusEnum, name="slot_status_enum", native_enum=False),
        default=SlotStatusEnum.AVAILABLE,
        nullable=False,
        index=True,
    )
    booking_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL", use_alter=True),
        nullable=True,
    )
