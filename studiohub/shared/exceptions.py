"""Custom exception hierarchy and handlers."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError

logger = logging.getLogger(__name__)

LOCK_NOT_AVAILABLE = "55P03"


class AppException(Exception):
    """Base application exception."""

    status_code = 400
    code = "app_error"

    def __init__(self, message: str, **details: Any) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundException(AppException):
    """Raised when entity is not found."""

    status_code = 404
    code = "not_found"


class ConflictException(AppException):
    """Raised when entity conflicts with current state."""

    status_code = 409
    code = "conflict"


class InvalidStateException(ConflictException):
    """Raised when an operation is not allowed from the current status."""

    code = "invalid_state"


class InsufficientStockException(ConflictException):
    """Raised when equipment has fewer free units than requested."""

    code = "insufficient_stock"

    def __init__(self, message: str, *, available_qty: int, total_qty: int) -> None:
        super().__init__(message, available_qty=available_qty, total_qty=total_qty)
        self.available_qty = available_qty
        self.total_qty = total_qty


class UnauthorizedException(AppException):
    """Raised when user has no rights for operation."""

    status_code = 403
    code = "forbidden"


class BusinessRuleException(AppException):
    """Raised when business rule validation fails."""

    status_code = 422
    code = "business_rule_violation"


class InvalidRangeException(BusinessRuleException):
    """Raised when a time window ends before it starts."""

    code = "invalid_range"


class PolicyNotConfiguredException(AppException):
    """Raised when no active cancellation or no-show policy exists."""

    status_code = 503
    code = "policy_not_configured"


class InvalidPolicyException(AppException):
    """Raised when a policy snapshot cannot be evaluated."""

    status_code = 500
    code = "invalid_policy"


class OperationTimeoutException(AppException):
    """Raised when a booking operation misses its deadline and was rolled back."""

    status_code = 504
    code = "operation_timeout"


class InvalidPromotionException(BusinessRuleException):
    """Base class for promotion code rejections."""

    code = "invalid_promotion"


class PromotionNotFoundException(InvalidPromotionException):
    code = "promotion_not_found"


class PromotionExpiredException(InvalidPromotionException):
    code = "promotion_expired"


class PromotionExhaustedException(InvalidPromotionException):
    code = "promotion_exhausted"


class PromotionBudgetExhaustedException(PromotionExhaustedException):
    code = "promotion_budget_exhausted"


class PromotionUserLimitExceededException(InvalidPromotionException):
    code = "promotion_user_limit_exceeded"


class PromotionDayRestrictedException(InvalidPromotionException):
    code = "promotion_day_restricted"


class PromotionHourRestrictedException(InvalidPromotionException):
    code = "promotion_hour_restricted"


class PromotionBelowMinimumException(InvalidPromotionException):
    code = "promotion_below_minimum"


class PromotionAudienceMismatchException(InvalidPromotionException):
    code = "promotion_audience_mismatch"


async def app_exception_handler(_: Request, exc: AppException) -> JSONResponse:
    """Handle custom domain exceptions."""
    error: dict[str, Any] = {"code": exc.code, "message": exc.message}
    if exc.details:
        error["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content={"error": error})


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions in unified shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": "http_error", "message": str(exc.detail)}},
    )


async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"error": {"code": "internal_error", "message": "Internal server error"}},
    )


async def database_exception_handler(request: Request, exc: DBAPIError) -> JSONResponse:
    """Report a lock wait past ``lock_timeout`` as a retryable conflict."""
    if getattr(exc.orig, "pgcode", None) == LOCK_NOT_AVAILABLE:
        logger.warning("Lock wait timed out: %s", exc.orig)
        return JSONResponse(
            status_code=409,
            content={"error": {"code": "resource_busy", "message": "Studio schedule is busy, retry shortly"}},
        )
    return await unhandled_exception_handler(request, exc)


def register_exception_handlers(app) -> None:
    """Register global exception handlers."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(DBAPIError, database_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
