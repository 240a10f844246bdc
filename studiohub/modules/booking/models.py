"""Booking ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studiohub.core.database import Base, BaseModelMixin, utc_now
from studiohub.core.enums import BookingEventTypeEnum, BookingStatusEnum, LineItemTypeEnum

if TYPE_CHECKING:
    from studiohub.modules.scheduling.models import Schedule

MONEY = Numeric(14, 2)


class Booking(BaseModelMixin, Base):
    """Studio rental booking with its frozen policy snapshot."""

    __tablename__ = "bookings"

    schedule_id: Mapped[UUID] = mapped_column(
        ForeignKey("schedules.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False),
        default=BookingStatusEnum.PENDING,
        nullable=False,
        index=True,
    )

    total_before_discount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    final_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    promo_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("promotions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # Deep copy of the policies active at creation; never joined to room_policies.
    policy_snapshot: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)

    original_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    refund_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    charge_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)
    net_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"), nullable=False)

    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_in_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    check_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)

    slot: Mapped["Schedule"] = relationship(foreign_keys=[schedule_id])
    line_items: Mapped[list["BookingLineItem"]] = relationship(
        back_populates="booking",
        order_by="BookingLineItem.created_at",
        passive_deletes=True,
    )
    events: Mapped[list["BookingEvent"]] = relationship(
        back_populates="booking",
        order_by="BookingEvent.occurred_at",
        passive_deletes=True,
    )


class BookingLineItem(BaseModelMixin, Base):
    """Equipment or extra-service add-on priced at booking time."""

    __tablename__ = "booking_line_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="quantity_positive"),)

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    item_type: Mapped[LineItemTypeEnum] = mapped_column(
        SAEnum(LineItemTypeEnum, name="line_item_type_enum", native_enum=False),
        nullable=False,
    )
    equipment_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("equipment.id", ondelete="RESTRICT"),
        nullable=True,
    )
    service_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("extra_services.id", ondelete="RESTRICT"),
        nullable=True,
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    booking: Mapped[Booking] = relationship(back_populates="line_items")


class BookingEvent(BaseModelMixin, Base):
    """Append-only audit entry of a booking."""

    __tablename__ = "booking_events"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[BookingEventTypeEnum] = mapped_column(
        SAEnum(BookingEventTypeEnum, name="booking_event_type_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    details: Mapped[dict[str, Any]] = mapped_column(JSONB, default=dict, nullable=False)
    amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)
    actor_id: Mapped[UUID | None] = mapped_column(nullable=True)

    booking: Mapped[Booking] = relationship(back_populates="events")
