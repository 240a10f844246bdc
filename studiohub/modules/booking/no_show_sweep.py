"""Periodic no-show detection, run as a client of the booking service."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from studiohub.modules.booking.repository import BookingRepository
from studiohub.modules.booking.service import BookingService
from studiohub.shared.utils import utc_now

logger = logging.getLogger(__name__)


class NoShowSweeper:
    """Mark confirmed bookings as no-show once their grace window has passed."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        booking_service: BookingService,
        *,
        grace_minutes: int = 30,
        batch_size: int = 200,
        now_provider: Callable[[], datetime] = utc_now,
    ) -> None:
        self.booking_repository = booking_repository
        self.booking_service = booking_service
        self.grace = timedelta(minutes=grace_minutes)
        self.batch_size = batch_size
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one sweep cycle."""
        stats = {"candidates": 0, "marked": 0, "failed": 0}
        cutoff = self.now_provider() - self.grace
        booking_ids = await self.booking_repository.find_no_show_candidates(cutoff, self.batch_size)
        stats["candidates"] = len(booking_ids)

        for booking_id in booking_ids:
            try:
                async with self.booking_repository.savepoint():
                    await self.booking_service.mark_no_show(booking_id)
                stats["marked"] += 1
            except Exception:
                logger.exception("No-show sweep failed for booking %s", booking_id)
                stats["failed"] += 1
        return stats
