"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from studiohub.core.enums import BookingEventTypeEnum, BookingStatusEnum, LineItemTypeEnum
from studiohub.modules.scheduling.schemas import SlotRead


class LineItemRequest(BaseModel):
    """Requested add-on: equipment units or an extra service."""

    item_type: LineItemTypeEnum
    equipment_id: UUID | None = None
    service_id: UUID | None = None
    quantity: int = Field(default=1, ge=1, le=1000)

    @model_validator(mode="after")
    def validate_reference(self) -> "LineItemRequest":
        if self.item_type == LineItemTypeEnum.EQUIPMENT and self.equipment_id is None:
            raise ValueError("equipment_id is required for equipment line items")
        if self.item_type == LineItemTypeEnum.EXTRA_SERVICE and self.service_id is None:
            raise ValueError("service_id is required for extra service line items")
        return self


class BookingCreate(BaseModel):
    """Create booking request."""

    studio_id: UUID
    start_at: datetime
    end_at: datetime
    line_items: list[LineItemRequest] = Field(default_factory=list)
    promo_code: str | None = Field(default=None, max_length=64)
    promo_code_required: bool = False
    customer_id: UUID | None = None
    notes: str | None = Field(default=None, max_length=2000)


class BookingUpdate(BaseModel):
    """Change window, add-ons or promotion of a pending booking."""

    start_at: datetime | None = None
    end_at: datetime | None = None
    add_line_items: list[LineItemRequest] = Field(default_factory=list)
    remove_line_item_ids: list[UUID] = Field(default_factory=list)
    promo_code: str | None = Field(default=None, max_length=64)
    promo_code_required: bool = False
    remove_promo: bool = False
    notes: str | None = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def validate_promo_change(self) -> "BookingUpdate":
        if self.remove_promo and self.promo_code:
            raise ValueError("promo_code and remove_promo are mutually exclusive")
        return self


class BookingCancelRequest(BaseModel):
    """Cancel booking request."""

    reason: str | None = Field(default=None, max_length=512)


class NoShowRequest(BaseModel):
    """Mark booking as no-show; ``check_in_at`` records a late arrival."""

    check_in_at: datetime | None = None


class BookingExtendRequest(BaseModel):
    new_end_at: datetime


class LineItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    item_type: LineItemTypeEnum
    equipment_id: UUID | None
    service_id: UUID | None
    description: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


class BookingEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    type: BookingEventTypeEnum
    occurred_at: datetime
    details: dict[str, Any]
    amount: Decimal | None
    actor_id: UUID | None


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    schedule_id: UUID
    customer_id: UUID
    status: BookingStatusEnum
    slot: SlotRead
    line_items: list[LineItemRead]
    total_before_discount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    promo_id: UUID | None
    policy_snapshot: dict[str, Any] | None
    original_amount: Decimal
    refund_amount: Decimal
    charge_amount: Decimal
    net_amount: Decimal
    notes: str | None
    confirmed_at: datetime | None
    check_in_at: datetime | None
    check_out_at: datetime | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    events: list[BookingEventRead]
    created_at: datetime
    updated_at: datetime


class ExtensionInfoRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    can_extend: bool
    current_end_at: datetime
    max_end_at: datetime | None
    available_minutes: int
    reason: str | None


class BookingExtensionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    booking: BookingRead
    additional_amount: Decimal
    previous_end_at: datetime
    new_end_at: datetime
