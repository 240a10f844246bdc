"""Scheduling schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from studiohub.core.enums import SlotStatusEnum


class SlotRead(BaseModel):
    """Schedule slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    studio_id: UUID
    start_at: datetime
    end_at: datetime
    status: SlotStatusEnum
    booking_id: UUID | None
    created_at: datetime
    updated_at: datetime
