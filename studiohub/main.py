"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from sqlalchemy import text

import studiohub.modules  # noqa: F401
from studiohub.core.config import get_settings
from studiohub.core.database import SessionLocal, close_engine
from studiohub.core.metrics import build_metrics_response, instrument_http_request
from studiohub.modules.booking.router import router as booking_router
from studiohub.modules.equipment.router import router as equipment_router
from studiohub.modules.notifications.router import router as notifications_router
from studiohub.modules.policies.repository import PolicyRepository
from studiohub.modules.policies.router import router as policies_router
from studiohub.modules.policies.service import PolicyService
from studiohub.modules.promotions.router import router as promotions_router
from studiohub.modules.scheduling.router import router as scheduling_router
from studiohub.shared.exceptions import PolicyNotConfiguredException, register_exception_handlers
from studiohub.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application startup and shutdown hooks."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("Starting %s", settings.app_name)

    async with SessionLocal() as session:
        try:
            await PolicyService(PolicyRepository(session)).snapshot_active_policies()
            logger.info("Default %s policies found", settings.default_policy_category)
        except PolicyNotConfiguredException as exc:
            # Bookings are refused until policies are seeded; the API itself can still serve reads.
            logger.warning("Booking creation unavailable: %s", exc.message)
        except Exception:
            logger.exception("Failed during startup initialization")
            raise

    yield

    logger.info("Shutting down %s", settings.app_name)
    await close_engine()


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)
app.middleware("http")(instrument_http_request)

register_exception_handlers(app)

app.include_router(scheduling_router, prefix=settings.api_prefix)
app.include_router(equipment_router, prefix=settings.api_prefix)
app.include_router(promotions_router, prefix=settings.api_prefix)
app.include_router(policies_router, prefix=settings.api_prefix)
app.include_router(booking_router, prefix=settings.api_prefix)
app.include_router(notifications_router, prefix=settings.api_prefix)


@app.get("/health")
async def healthcheck() -> dict[str, str]:
    """Liveness check endpoint."""
    return {"status": "ok"}


async def _is_database_ready() -> bool:
    """Return True if DB accepts basic queries."""
    try:
        async with SessionLocal() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database readiness check failed")
        return False


@app.get("/ready")
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint with DB dependency check."""
    if not await _is_database_ready():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not ready",
        )
    return {
        "status": "ready",
        "database": "ok",
        "timestamp": utc_now().isoformat(),
    }


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(_: Request) -> Response:
    """Prometheus metrics endpoint."""
    return build_metrics_response()
