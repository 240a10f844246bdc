"""Notifications schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from studiohub.core.enums import NotificationKindEnum, NotificationStatusEnum


class NotificationUpdateStatus(BaseModel):
    """Update notification status request."""

    status: NotificationStatusEnum


class NotificationRead(BaseModel):
    """Notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    kind: NotificationKindEnum
    channel: str
    title: str
    body: str
    booking_id: UUID | None
    status: NotificationStatusEnum
    sent_at: datetime | None
    created_at: datetime
