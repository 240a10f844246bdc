"""Executable worker for the periodic no-show sweep."""

from __future__ import annotations

import asyncio
import logging
import os

from studiohub.core.config import get_settings
from studiohub.core.database import SessionLocal
from studiohub.modules.booking.no_show_sweep import NoShowSweeper
from studiohub.modules.booking.repository import BookingRepository
from studiohub.modules.booking.service import build_booking_service

logger = logging.getLogger(__name__)
settings = get_settings()


async def run_cycle() -> dict[str, int]:
    """Run a single sweep cycle in one DB transaction."""
    async with SessionLocal() as session:
        sweeper = NoShowSweeper(
            booking_repository=BookingRepository(session),
            booking_service=build_booking_service(session),
            grace_minutes=settings.no_show_grace_minutes,
            batch_size=settings.no_show_sweep_batch_size,
        )
        stats = await sweeper.run_once()
        await session.commit()
        return stats


async def main() -> None:
    """Run once or keep polling according to worker mode."""
    logging.basicConfig(level=os.getenv("NO_SHOW_WORKER_LOG_LEVEL", settings.log_level))
    mode = os.getenv("NO_SHOW_WORKER_MODE", "once").strip().lower()
    poll_seconds = int(os.getenv("NO_SHOW_WORKER_POLL_SECONDS", "300"))

    if mode == "once":
        stats = await run_cycle()
        logger.info("No-show sweep stats: %s", stats)
        return

    while True:
        try:
            stats = await run_cycle()
            logger.info("No-show sweep stats: %s", stats)
        except Exception:
            logger.exception("No-show sweep cycle failed")
        await asyncio.sleep(poll_seconds)


if __name__ == "__main__":
    asyncio.run(main())
