"""Schedule allocation rules: non-overlap, minimum gap, slot status."""

from __future__ import annotations

import logging
from datetime import datetime, time, timedelta
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.config import get_settings
from studiohub.core.database import get_db_session
from studiohub.core.enums import SlotStatusEnum
from studiohub.modules.scheduling.models import Schedule
from studiohub.modules.scheduling.repository import SchedulingRepository
from studiohub.shared.exceptions import ConflictException, InvalidRangeException, NotFoundException
from studiohub.shared.listing import TimeWindow
from studiohub.shared.utils import ensure_utc

settings = get_settings()
logger = logging.getLogger(__name__)


class ScheduleAllocator:
    """Owns studio time slots and the gap invariant between them."""

    def __init__(
        self,
        repository: SchedulingRepository,
        *,
        min_gap_minutes: int | None = None,
        business_zone: ZoneInfo | None = None,
    ) -> None:
        self.repository = repository
        self.min_gap = timedelta(
            minutes=settings.schedule_min_gap_minutes if min_gap_minutes is None else min_gap_minutes,
        )
        self.business_zone = business_zone or settings.business_zone

    @staticmethod
    def _normalize_window(start_at: datetime, end_at: datetime) -> tuple[datetime, datetime]:
        start_at = ensure_utc(start_at)
        end_at = ensure_utc(end_at)
        if start_at >= end_at:
            raise InvalidRangeException("Slot end time must be after start time")
        return start_at, end_at

    async def _lock_studio(self, studio_id: UUID) -> None:
        if not await self.repository.lock_studio(studio_id):
            raise NotFoundException("Studio not found", studio_id=str(studio_id))

    async def get_slot(self, slot_id: UUID) -> Schedule:
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Schedule slot not found")
        return slot

    async def resolve_or_create_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> Schedule:
        """Reuse a free exact-match slot or create a new one that respects the gap."""
        start_at, end_at = self._normalize_window(start_at, end_at)
        await self._lock_studio(studio_id)

        exact = await self.repository.find_exact_slot(studio_id, start_at, end_at)
        if exact is not None:
            if exact.status != SlotStatusEnum.AVAILABLE:
                raise ConflictException("A slot with the same time already exists and is not available")
            return exact

        # Any neighbour inside the gap blocks creation, even an available one.
        neighbour = await self.repository.find_conflicting_slot(studio_id, start_at, end_at, self.min_gap)
        if neighbour is not None:
            raise ConflictException(
                "Slot overlaps or is too close to another slot",
                conflicting_slot_id=str(neighbour.id),
                min_gap_minutes=int(self.min_gap.total_seconds() // 60),
            )

        slot = await self.repository.create_slot(studio_id, start_at, end_at)
        logger.info("Created slot %s for studio %s", slot.id, studio_id)
        return slot

    async def claim(self, slot_id: UUID, booking_id: UUID) -> Schedule:
        """Attach slot to booking; only an available slot can be claimed."""
        slot = await self.repository.claim_slot(slot_id, booking_id)
        if slot is None:
            await self.get_slot(slot_id)
            raise ConflictException("Schedule slot is not available")
        return slot

    async def release(self, slot_id: UUID) -> Schedule:
        """Free slot and detach booking. Safe to call repeatedly."""
        slot = await self.repository.release_slot(slot_id)
        if slot is None:
            raise NotFoundException("Schedule slot not found")
        return slot

    async def reschedule(self, slot_id: UUID, start_at: datetime, end_at: datetime) -> Schedule:
        """Move slot to a new window; the slot is untouched if validation fails."""
        slot = await self.get_slot(slot_id)
        start_at, end_at = self._normalize_window(start_at, end_at)
        await self._lock_studio(slot.studio_id)

        neighbour = await self.repository.find_conflicting_slot(
            slot.studio_id,
            start_at,
            end_at,
            self.min_gap,
            exclude_slot_id=slot.id,
        )
        if neighbour is not None:
            raise ConflictException(
                "New window overlaps or is too close to another slot",
                conflicting_slot_id=str(neighbour.id),
            )
        return await self.repository.set_slot_window(slot, start_at, end_at)

    async def max_extension_end(self, slot: Schedule) -> datetime:
        """Latest end time the slot may be stretched to."""
        current_end = ensure_utc(slot.end_at)
        next_slot = await self.repository.find_next_slot(slot.studio_id, current_end, slot.id)
        if next_slot is not None:
            return ensure_utc(next_slot.start_at) - self.min_gap

        local_end = current_end.astimezone(self.business_zone)
        end_of_day = datetime.combine(local_end.date(), time(23, 59), tzinfo=self.business_zone)
        return ensure_utc(end_of_day)

    async def list_slots(
        self,
        studio_id: UUID,
        status: SlotStatusEnum | None,
        window: TimeWindow,
        limit: int,
        offset: int,
    ) -> tuple[list[Schedule], int]:
        return await self.repository.list_studio_slots(studio_id, status, window, limit, offset)


async def get_schedule_allocator(session: AsyncSession = Depends(get_db_session)) -> ScheduleAllocator:
    """Dependency provider for schedule allocator."""
    return ScheduleAllocator(SchedulingRepository(session))
