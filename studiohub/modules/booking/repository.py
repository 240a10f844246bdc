"""Booking repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction
from sqlalchemy.orm import selectinload

from studiohub.core.enums import BookingEventTypeEnum, BookingStatusEnum, LineItemTypeEnum
from studiohub.modules.booking.models import Booking, BookingEvent, BookingLineItem
from studiohub.modules.scheduling.models import Schedule
from studiohub.shared.listing import TimeWindow


class BookingRepository:
    """DB operations for booking domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def savepoint(self) -> AsyncSessionTransaction:
        return self.session.begin_nested()

    async def create_booking(self, schedule_id: UUID, customer_id: UUID, notes: str | None) -> Booking:
        booking = Booking(
            schedule_id=schedule_id,
            customer_id=customer_id,
            status=BookingStatusEnum.PENDING,
            notes=notes,
        )
        self.session.add(booking)
        await self.session.flush()
        return booking

    async def delete_booking(self, booking: Booking) -> None:
        await self.session.delete(booking)
        await self.session.flush()

    async def get_booking_by_id(self, booking_id: UUID) -> Booking | None:
        stmt = (
            select(Booking)
            .options(
                selectinload(Booking.slot),
                selectinload(Booking.line_items),
                selectinload(Booking.events),
            )
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def list_bookings(
        self,
        customer_id: UUID | None,
        status: BookingStatusEnum | None,
        window: TimeWindow,
        limit: int,
        offset: int,
    ) -> tuple[list[Booking], int]:
        base_stmt: Select[tuple[Booking]] = select(Booking).join(Schedule, Schedule.id == Booking.schedule_id)
        base_stmt = window.apply(base_stmt, Schedule.start_at)
        if customer_id is not None:
            base_stmt = base_stmt.where(Booking.customer_id == customer_id)
        if status is not None:
            base_stmt = base_stmt.where(Booking.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = (
            base_stmt.options(
                selectinload(Booking.slot),
                selectinload(Booking.line_items),
                selectinload(Booking.events),
            )
            .order_by(Booking.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def find_no_show_candidates(self, started_before: datetime, limit: int) -> list[UUID]:
        """Confirmed bookings never checked in whose slot started before the cutoff."""
        stmt = (
            select(Booking.id)
            .join(Schedule, Schedule.id == Booking.schedule_id)
            .where(
                Booking.status == BookingStatusEnum.CONFIRMED,
                Booking.check_in_at.is_(None),
                Schedule.start_at <= started_before,
            )
            .order_by(Schedule.start_at.asc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())

    async def update_booking(self, booking: Booking, **changes: Any) -> Booking:
        for key, value in changes.items():
            setattr(booking, key, value)
        await self.session.flush()
        return booking

    async def add_line_item(
        self,
        booking_id: UUID,
        item_type: LineItemTypeEnum,
        description: str,
        quantity: int,
        unit_price: Decimal,
        subtotal: Decimal,
        equipment_id: UUID | None = None,
        service_id: UUID | None = None,
    ) -> BookingLineItem:
        item = BookingLineItem(
            booking_id=booking_id,
            item_type=item_type,
            equipment_id=equipment_id,
            service_id=service_id,
            description=description,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal,
        )
        self.session.add(item)
        await self.session.flush()
        return item

    async def list_line_items(self, booking_id: UUID) -> Sequence[BookingLineItem]:
        stmt = (
            select(BookingLineItem)
            .where(BookingLineItem.booking_id == booking_id)
            .order_by(BookingLineItem.created_at.asc())
        )
        return (await self.session.scalars(stmt)).all()

    async def delete_line_item(self, item: BookingLineItem) -> None:
        await self.session.delete(item)
        await self.session.flush()

    async def add_event(
        self,
        booking_id: UUID,
        event_type: BookingEventTypeEnum,
        details: dict[str, Any] | None = None,
        amount: Decimal | None = None,
        actor_id: UUID | None = None,
    ) -> BookingEvent:
        event = BookingEvent(
            booking_id=booking_id,
            type=event_type,
            details=details or {},
            amount=amount,
            actor_id=actor_id,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def count_customer_no_shows(self, customer_id: UUID, exclude_booking_id: UUID) -> int:
        stmt = (
            select(func.count(func.distinct(Booking.id)))
            .join(BookingEvent, BookingEvent.booking_id == Booking.id)
            .where(
                Booking.customer_id == customer_id,
                Booking.id != exclude_booking_id,
                BookingEvent.type == BookingEventTypeEnum.NO_SHOW,
            )
        )
        return int((await self.session.scalar(stmt)) or 0)
