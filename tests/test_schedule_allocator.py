from __future__ import annotations

import asyncio
from collections import ChainMap
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from studiohub.core.enums import SlotStatusEnum
from studiohub.modules.scheduling.service import ScheduleAllocator
from studiohub.shared.exceptions import ConflictException, InvalidRangeException, NotFoundException

ZONE = ZoneInfo("Asia/Ho_Chi_Minh")
DAY = datetime(2026, 10, 20, 3, 0, tzinfo=UTC)  # 10:00 local


@dataclass
class FakeSlot:
    id: UUID
    studio_id: UUID
    start_at: datetime
    end_at: datetime
    status: SlotStatusEnum = SlotStatusEnum.AVAILABLE
    booking_id: UUID | None = None


class FakeSchedulingRepository:
    def __init__(self, slots: list[FakeSlot] | None = None, known_studios: set[UUID] | None = None) -> None:
        self.slots: dict[UUID, FakeSlot] = {slot.id: slot for slot in slots or []}
        self.known_studios = known_studios
        self.locked_studios: list[UUID] = []

    async def lock_studio(self, studio_id: UUID) -> bool:
        if self.known_studios is not None and studio_id not in self.known_studios:
            return False
        self.locked_studios.append(studio_id)
        return True

    async def create_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> FakeSlot:
        slot = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=start_at, end_at=end_at)
        self.slots[slot.id] = slot
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> FakeSlot | None:
        return self.slots.get(slot_id)

    async def find_exact_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> FakeSlot | None:
        for slot in self.slots.values():
            if slot.studio_id == studio_id and slot.start_at == start_at and slot.end_at == end_at:
                return slot
        return None

    async def find_conflicting_slot(
        self,
        studio_id: UUID,
        start_at: datetime,
        end_at: datetime,
        gap: timedelta,
        exclude_slot_id: UUID | None = None,
    ) -> FakeSlot | None:
        for slot in self.slots.values():
            if slot.studio_id != studio_id or slot.id == exclude_slot_id:
                continue
            if slot.status == SlotStatusEnum.CANCELLED:
                continue
            if slot.start_at < end_at + gap and slot.end_at > start_at - gap:
                return slot
        return None

    async def find_next_slot(self, studio_id: UUID, after: datetime, exclude_slot_id: UUID) -> FakeSlot | None:
        candidates = [
            slot
            for slot in self.slots.values()
            if slot.studio_id == studio_id
            and slot.id != exclude_slot_id
            and slot.status != SlotStatusEnum.CANCELLED
            and slot.start_at >= after
        ]
        return min(candidates, key=lambda slot: slot.start_at, default=None)

    async def claim_slot(self, slot_id: UUID, booking_id: UUID) -> FakeSlot | None:
        slot = self.slots.get(slot_id)
        if slot is None or slot.status != SlotStatusEnum.AVAILABLE:
            return None
        slot.status = SlotStatusEnum.BOOKED
        slot.booking_id = booking_id
        return slot

    async def release_slot(self, slot_id: UUID) -> FakeSlot | None:
        slot = self.slots.get(slot_id)
        if slot is None:
            return None
        slot.status = SlotStatusEnum.AVAILABLE
        slot.booking_id = None
        return slot

    async def set_slot_window(self, slot: FakeSlot, start_at: datetime, end_at: datetime) -> FakeSlot:
        slot.start_at = start_at
        slot.end_at = end_at
        return slot


def make_allocator(slots: list[FakeSlot] | None = None) -> tuple[ScheduleAllocator, FakeSchedulingRepository]:
    repository = FakeSchedulingRepository(slots)
    allocator = ScheduleAllocator(repository, min_gap_minutes=30, business_zone=ZONE)  # type: ignore[arg-type]
    return allocator, repository


class CommittedSlots:
    """Rows and studio locks shared by concurrent transactions."""

    def __init__(self) -> None:
        self.slots: dict[UUID, FakeSlot] = {}
        self.studio_locks: dict[UUID, asyncio.Lock] = {}


class TransactionSchedulingRepository(FakeSchedulingRepository):
    """One transaction: its inserts stay private and its studio locks are held until commit."""

    def __init__(self, committed: CommittedSlots) -> None:
        super().__init__()
        self.committed = committed
        self.pending: dict[UUID, FakeSlot] = {}
        self.slots = ChainMap(self.pending, committed.slots)  # type: ignore[assignment]
        self.held: list[asyncio.Lock] = []

    async def lock_studio(self, studio_id: UUID) -> bool:
        lock = self.committed.studio_locks.setdefault(studio_id, asyncio.Lock())
        await lock.acquire()
        self.held.append(lock)
        return True

    async def find_exact_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> FakeSlot | None:
        await asyncio.sleep(0)
        return await super().find_exact_slot(studio_id, start_at, end_at)

    async def find_conflicting_slot(self, *args, **kwargs) -> FakeSlot | None:
        await asyncio.sleep(0)
        return await super().find_conflicting_slot(*args, **kwargs)

    async def create_slot(self, studio_id: UUID, start_at: datetime, end_at: datetime) -> FakeSlot:
        await asyncio.sleep(0)
        return await super().create_slot(studio_id, start_at, end_at)

    async def commit(self) -> None:
        await asyncio.sleep(0)
        self.committed.slots.update(self.pending)
        self.pending.clear()
        while self.held:
            self.held.pop().release()


@pytest.mark.asyncio
async def test_creates_slot_when_window_is_free() -> None:
    studio_id = uuid4()
    allocator, repository = make_allocator()

    slot = await allocator.resolve_or_create_slot(studio_id, DAY, DAY + timedelta(hours=2))

    assert slot.status == SlotStatusEnum.AVAILABLE
    assert slot.id in repository.slots


@pytest.mark.asyncio
async def test_rejects_inverted_window() -> None:
    allocator, _ = make_allocator()

    with pytest.raises(InvalidRangeException):
        await allocator.resolve_or_create_slot(uuid4(), DAY, DAY)


@pytest.mark.asyncio
async def test_reuses_available_exact_slot() -> None:
    studio_id = uuid4()
    existing = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, repository = make_allocator([existing])

    slot = await allocator.resolve_or_create_slot(studio_id, DAY, DAY + timedelta(hours=2))

    assert slot is existing
    assert len(repository.slots) == 1


@pytest.mark.asyncio
async def test_booked_exact_slot_conflicts() -> None:
    studio_id = uuid4()
    existing = FakeSlot(
        id=uuid4(),
        studio_id=studio_id,
        start_at=DAY,
        end_at=DAY + timedelta(hours=2),
        status=SlotStatusEnum.BOOKED,
    )
    allocator, _ = make_allocator([existing])

    with pytest.raises(ConflictException):
        await allocator.resolve_or_create_slot(studio_id, DAY, DAY + timedelta(hours=2))


@pytest.mark.asyncio
async def test_neighbour_inside_gap_conflicts() -> None:
    studio_id = uuid4()
    existing = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, repository = make_allocator([existing])

    with pytest.raises(ConflictException) as exc:
        await allocator.resolve_or_create_slot(
            studio_id,
            DAY + timedelta(hours=2, minutes=29),
            DAY + timedelta(hours=4),
        )

    assert exc.value.details["conflicting_slot_id"] == str(existing.id)
    assert len(repository.slots) == 1


@pytest.mark.asyncio
async def test_neighbour_exactly_at_gap_is_allowed() -> None:
    studio_id = uuid4()
    existing = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, repository = make_allocator([existing])

    slot = await allocator.resolve_or_create_slot(
        studio_id,
        DAY + timedelta(hours=2, minutes=30),
        DAY + timedelta(hours=4),
    )

    assert slot.id != existing.id
    assert len(repository.slots) == 2


@pytest.mark.asyncio
async def test_other_studio_does_not_conflict() -> None:
    existing = FakeSlot(id=uuid4(), studio_id=uuid4(), start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, _ = make_allocator([existing])

    slot = await allocator.resolve_or_create_slot(uuid4(), DAY, DAY + timedelta(hours=2))

    assert slot.id != existing.id


@pytest.mark.asyncio
async def test_claim_twice_conflicts() -> None:
    studio_id = uuid4()
    allocator, _ = make_allocator()
    slot = await allocator.resolve_or_create_slot(studio_id, DAY, DAY + timedelta(hours=1))

    await allocator.claim(slot.id, uuid4())
    with pytest.raises(ConflictException):
        await allocator.claim(slot.id, uuid4())


@pytest.mark.asyncio
async def test_claim_unknown_slot_is_not_found() -> None:
    allocator, _ = make_allocator()

    with pytest.raises(NotFoundException):
        await allocator.claim(uuid4(), uuid4())


@pytest.mark.asyncio
async def test_release_is_idempotent() -> None:
    studio_id = uuid4()
    allocator, _ = make_allocator()
    slot = await allocator.resolve_or_create_slot(studio_id, DAY, DAY + timedelta(hours=1))
    await allocator.claim(slot.id, uuid4())

    await allocator.release(slot.id)
    released = await allocator.release(slot.id)

    assert released.status == SlotStatusEnum.AVAILABLE
    assert released.booking_id is None


@pytest.mark.asyncio
async def test_reschedule_ignores_own_window() -> None:
    studio_id = uuid4()
    slot = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, _ = make_allocator([slot])

    moved = await allocator.reschedule(slot.id, DAY + timedelta(hours=1), DAY + timedelta(hours=3))

    assert moved.start_at == DAY + timedelta(hours=1)
    assert moved.end_at == DAY + timedelta(hours=3)


@pytest.mark.asyncio
async def test_failed_reschedule_leaves_slot_untouched() -> None:
    studio_id = uuid4()
    slot = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    neighbour = FakeSlot(
        id=uuid4(),
        studio_id=studio_id,
        start_at=DAY + timedelta(hours=3),
        end_at=DAY + timedelta(hours=4),
    )
    allocator, _ = make_allocator([slot, neighbour])

    with pytest.raises(ConflictException):
        await allocator.reschedule(slot.id, DAY, DAY + timedelta(hours=3))

    assert slot.start_at == DAY
    assert slot.end_at == DAY + timedelta(hours=2)


@pytest.mark.asyncio
async def test_max_extension_stops_gap_before_next_slot() -> None:
    studio_id = uuid4()
    slot = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    following = FakeSlot(
        id=uuid4(),
        studio_id=studio_id,
        start_at=DAY + timedelta(hours=5),
        end_at=DAY + timedelta(hours=6),
    )
    allocator, _ = make_allocator([slot, following])

    assert await allocator.max_extension_end(slot) == DAY + timedelta(hours=4, minutes=30)


@pytest.mark.asyncio
async def test_max_extension_defaults_to_end_of_business_day() -> None:
    studio_id = uuid4()
    slot = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, _ = make_allocator([slot])

    max_end = await allocator.max_extension_end(slot)

    # 23:59 in UTC+7 is 16:59 UTC.
    assert max_end == datetime(2026, 10, 20, 16, 59, tzinfo=UTC)


@pytest.mark.asyncio
async def test_concurrent_overlapping_creates_keep_the_gap() -> None:
    studio_id = uuid4()
    committed = CommittedSlots()

    async def create(start: timedelta, end: timedelta) -> FakeSlot:
        repository = TransactionSchedulingRepository(committed)
        allocator = ScheduleAllocator(repository, min_gap_minutes=30, business_zone=ZONE)  # type: ignore[arg-type]
        try:
            return await allocator.resolve_or_create_slot(studio_id, DAY + start, DAY + end)
        finally:
            await repository.commit()

    results = await asyncio.gather(
        create(timedelta(hours=0), timedelta(hours=2)),
        create(timedelta(hours=1), timedelta(hours=3)),
        return_exceptions=True,
    )

    assert len(committed.slots) == 1
    assert sum(isinstance(result, ConflictException) for result in results) == 1


@pytest.mark.asyncio
async def test_concurrent_identical_windows_create_one_slot() -> None:
    studio_id = uuid4()
    committed = CommittedSlots()

    async def create() -> FakeSlot:
        repository = TransactionSchedulingRepository(committed)
        allocator = ScheduleAllocator(repository, min_gap_minutes=30, business_zone=ZONE)  # type: ignore[arg-type]
        try:
            return await allocator.resolve_or_create_slot(studio_id, DAY, DAY + timedelta(hours=2))
        finally:
            await repository.commit()

    first, second = await asyncio.gather(create(), create())

    assert first.id == second.id
    assert len(committed.slots) == 1


@pytest.mark.asyncio
async def test_reschedule_takes_studio_lock() -> None:
    studio_id = uuid4()
    slot = FakeSlot(id=uuid4(), studio_id=studio_id, start_at=DAY, end_at=DAY + timedelta(hours=2))
    allocator, repository = make_allocator([slot])

    await allocator.reschedule(slot.id, DAY, DAY + timedelta(hours=3))

    assert repository.locked_studios == [studio_id]


@pytest.mark.asyncio
async def test_unknown_studio_is_not_found() -> None:
    repository = FakeSchedulingRepository(known_studios=set())
    allocator = ScheduleAllocator(repository, min_gap_minutes=30, business_zone=ZONE)  # type: ignore[arg-type]

    with pytest.raises(NotFoundException):
        await allocator.resolve_or_create_slot(uuid4(), DAY, DAY + timedelta(hours=1))

    assert repository.slots == {}
