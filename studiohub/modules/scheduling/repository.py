"""Scheduling repository layer."""

from __future__ import annotations

from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.enums import SlotStatusEnum
from studiohub.modules.catalog.models import Studio
from studiohub.modules.scheduling.models import Schedule
from studiohub.shared.listing import TimeWindow


class SchedulingRepository:
    """DB access for scheduling domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def lock_studio(self, studio_id: UUID) -> bool:
        """Row-lock the studio until commit; False when it does not exist.

        Gap checks and slot inserts for one studio run behind this lock, so a
        concurrent transaction sees the committed neighbour once it gets through.
        """
        stmt = select(Studio.id).where(Studio.id == studio_id).with_for_update()
        return await self.session.scalar(stmt) is not None

    async def create_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> Schedule:
        slot = Schedule(
            studio_id=studio_id,
            start_at=start_at,
            end_at=end_at,
            status=SlotStatusEnum.AVAILABLE,
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> Schedule | None:
        stmt = select(Schedule).where(Schedule.id == slot_id)
        return await self.session.scalar(stmt)

    async def find_exact_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> Schedule | None:
        stmt = select(Schedule).where(
            Schedule.studio_id == studio_id,
            Schedule.start_at == start_at,
            Schedule.end_at == end_at,
        ).with_for_update()
        return await self.session.scalar(stmt)

    async def find_conflicting_slot(
        self,
        studio_id: UUID,
        start_at: datetime,
        end_at: datetime,
        gap: timedelta,
        exclude_slot_id: UUID | None = None,
    ) -> Schedule | None:
        stmt = select(Schedule).where(
            Schedule.studio_id == studio_id,
            Schedule.status != SlotStatusEnum.CANCELLED,
            Schedule.start_at < end_at + gap,
            Schedule.end_at > start_at - gap,
        )
        if exclude_slot_id is not None:
            stmt = stmt.where(Schedule.id != exclude_slot_id)
        return await self.session.scalar(stmt.limit(1))

    async def find_next_slot(self, studio_id: UUID, after: datetime, exclude_slot_id: UUID) -> Schedule | None:
        stmt = (
            select(Schedule)
            .where(
                Schedule.studio_id == studio_id,
                Schedule.id != exclude_slot_id,
                Schedule.status != SlotStatusEnum.CANCELLED,
                Schedule.start_at >= after,
            )
            .order_by(Schedule.start_at.asc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def claim_slot(self, slot_id: UUID, booking_id: UUID) -> Schedule | None:
        """Mark slot booked only if it is still available."""
        stmt = (
            update(Schedule)
            .where(Schedule.id == slot_id, Schedule.status == SlotStatusEnum.AVAILABLE)
            .values(status=SlotStatusEnum.BOOKED, booking_id=booking_id)
            .returning(Schedule)
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def release_slot(self, slot_id: UUID) -> Schedule | None:
        stmt = (
            update(Schedule)
            .where(Schedule.id == slot_id)
            .values(status=SlotStatusEnum.AVAILABLE, booking_id=None)
            .returning(Schedule)
            .execution_options(populate_existing=True)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def set_slot_window(self, slot: Schedule, start_at: datetime, end_at: datetime) -> Schedule:
        slot.start_at = start_at
        slot.end_at = end_at
        await self.session.flush()
        return slot

    async def list_studio_slots(
        self,
        studio_id: UUID,
        status: SlotStatusEnum | None,
        window: TimeWindow,
        limit: int,
        offset: int,
    ) -> tuple[list[Schedule], int]:
        base_stmt: Select[tuple[Schedule]] = select(Schedule).where(Schedule.studio_id == studio_id)
        base_stmt = window.apply(base_stmt, Schedule.start_at)
        if status is not None:
            base_stmt = base_stmt.where(Schedule.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Schedule.start_at.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total
