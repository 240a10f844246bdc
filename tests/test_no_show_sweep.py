from __future__ import annotations

from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from studiohub.modules.booking.no_show_sweep import NoShowSweeper
from studiohub.shared.exceptions import InvalidStateException


@dataclass
class FakeBookingRepository:
    candidates: list[UUID]
    cutoffs: list[datetime] = field(default_factory=list)
    savepoints: int = 0

    def savepoint(self):
        self.savepoints += 1
        return nullcontext()

    async def find_no_show_candidates(self, started_before: datetime, limit: int) -> list[UUID]:
        self.cutoffs.append(started_before)
        return self.candidates[:limit]


class FakeBookingService:
    def __init__(self, failing: set[UUID] | None = None) -> None:
        self.failing = failing or set()
        self.marked: list[UUID] = []

    async def mark_no_show(self, booking_id: UUID) -> None:
        if booking_id in self.failing:
            raise InvalidStateException("Only confirmed bookings can be marked as no-show")
        self.marked.append(booking_id)


def make_sweeper(
    candidates: list[UUID],
    *,
    failing: set[UUID] | None = None,
    batch_size: int = 200,
) -> tuple[NoShowSweeper, FakeBookingRepository, FakeBookingService]:
    repository = FakeBookingRepository(candidates=candidates)
    service = FakeBookingService(failing)
    sweeper = NoShowSweeper(
        booking_repository=repository,  # type: ignore[arg-type]
        booking_service=service,  # type: ignore[arg-type]
        grace_minutes=30,
        batch_size=batch_size,
        now_provider=lambda: datetime(2026, 10, 20, 12, 0, tzinfo=UTC),
    )
    return sweeper, repository, service


@pytest.mark.asyncio
async def test_sweep_marks_candidates_past_grace_window() -> None:
    first, second = uuid4(), uuid4()
    sweeper, repository, service = make_sweeper([first, second])

    stats = await sweeper.run_once()

    assert stats == {"candidates": 2, "marked": 2, "failed": 0}
    assert service.marked == [first, second]
    assert repository.cutoffs == [datetime(2026, 10, 20, 12, 0, tzinfo=UTC) - timedelta(minutes=30)]
    assert repository.savepoints == 2


@pytest.mark.asyncio
async def test_sweep_continues_after_single_failure() -> None:
    broken, healthy = uuid4(), uuid4()
    sweeper, _, service = make_sweeper([broken, healthy], failing={broken})

    stats = await sweeper.run_once()

    assert stats == {"candidates": 2, "marked": 1, "failed": 1}
    assert service.marked == [healthy]


@pytest.mark.asyncio
async def test_sweep_respects_batch_size() -> None:
    sweeper, _, service = make_sweeper([uuid4() for _ in range(5)], batch_size=2)

    stats = await sweeper.run_once()

    assert stats["candidates"] == 2
    assert len(service.marked) == 2
