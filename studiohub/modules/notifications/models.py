"""Notifications ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from studiohub.core.database import Base, BaseModelMixin
from studiohub.core.enums import NotificationKindEnum, NotificationStatusEnum


class Notification(BaseModelMixin, Base):
    """Notification queued for delivery by the external sender."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    kind: Mapped[NotificationKindEnum] = mapped_column(
        SAEnum(NotificationKindEnum, name="notification_kind_enum", native_enum=False),
        default=NotificationKindEnum.INFO,
        nullable=False,
    )
    channel: Mapped[str] = mapped_column(String(32), default="email", nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    booking_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("bookings.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    status: Mapped[NotificationStatusEnum] = mapped_column(
        SAEnum(NotificationStatusEnum, name="notification_status_enum", native_enum=False),
        default=NotificationStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
