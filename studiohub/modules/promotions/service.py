"""Promotion validation, discount computation and ledger commit."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.config import get_settings
from studiohub.core.database import get_db_session
from studiohub.core.enums import DiscountTypeEnum, PromotionAudienceEnum
from studiohub.modules.promotions.models import Promotion
from studiohub.modules.promotions.repository import PromotionRepository
from studiohub.shared.exceptions import (
    PromotionAudienceMismatchException,
    PromotionBelowMinimumException,
    PromotionBudgetExhaustedException,
    PromotionDayRestrictedException,
    PromotionExhaustedException,
    PromotionExpiredException,
    PromotionHourRestrictedException,
    PromotionNotFoundException,
    PromotionUserLimitExceededException,
)
from studiohub.shared.utils import ensure_utc, round_money, round_whole, to_decimal, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PromotionQuote:
    """Validated promotion with the discount it grants on a subtotal."""

    promotion: Promotion
    discount_amount: Decimal


def calculate_discount(promotion: Promotion, subtotal: Decimal) -> Decimal:
    """Discount for ``subtotal``, clamped by per-order and global budget caps."""
    subtotal = to_decimal(subtotal)
    value = to_decimal(promotion.discount_value)

    if promotion.discount_type == DiscountTypeEnum.PERCENTAGE:
        discount = round_whole(subtotal * value / Decimal(100))
        if promotion.max_discount is not None:
            discount = min(discount, to_decimal(promotion.max_discount))
    else:
        discount = min(value, subtotal)

    if promotion.max_total_discount_amount is not None:
        remaining = to_decimal(promotion.max_total_discount_amount) - to_decimal(promotion.total_discounted_amount)
        if remaining <= 0:
            raise PromotionBudgetExhaustedException("Promotion budget is exhausted", code=promotion.code)
        discount = min(discount, remaining)

    return round_money(max(discount, Decimal("0")))


class PromotionService:
    """Promotion validator/applier."""

    def __init__(self, repository: PromotionRepository, *, business_zone: ZoneInfo | None = None) -> None:
        self.repository = repository
        self.business_zone = business_zone or settings.business_zone

    async def get_promotion(self, promotion_id: UUID) -> Promotion | None:
        return await self.repository.get_by_id(promotion_id)

    async def validate(
        self,
        code: str,
        customer_id: UUID,
        subtotal: Decimal,
        now: datetime | None = None,
        *,
        booking_id: UUID | None = None,
    ) -> PromotionQuote:
        """Run eligibility checks in order and price the discount.

        ``booking_id`` excludes the booking being priced from usage counts.
        """
        now = ensure_utc(now) if now is not None else utc_now()
        subtotal = to_decimal(subtotal)

        promotion = await self.repository.get_by_code(code)
        if promotion is None:
            raise PromotionNotFoundException("Promotion code does not exist", code=code)

        if not promotion.is_active:
            raise PromotionExpiredException("Promotion is not active", code=promotion.code)
        if now < ensure_utc(promotion.start_date):
            raise PromotionExpiredException("Promotion has not started yet", code=promotion.code)
        if now > ensure_utc(promotion.end_date):
            raise PromotionExpiredException("Promotion has expired", code=promotion.code)
        if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
            raise PromotionExhaustedException("Promotion usage limit reached", code=promotion.code)
        if promotion.max_total_discount_amount is not None and to_decimal(
            promotion.total_discounted_amount,
        ) >= to_decimal(promotion.max_total_discount_amount):
            raise PromotionBudgetExhaustedException("Promotion budget is exhausted", code=promotion.code)

        if promotion.usage_limit_per_user is not None:
            used = await self.repository.count_user_usage(promotion.id, customer_id, booking_id)
            if used >= promotion.usage_limit_per_user:
                raise PromotionUserLimitExceededException(
                    "Promotion already used the maximum number of times",
                    code=promotion.code,
                    used=used,
                    limit=promotion.usage_limit_per_user,
                )

        local_now = now.astimezone(self.business_zone)
        if promotion.applicable_days and local_now.weekday() not in promotion.applicable_days:
            raise PromotionDayRestrictedException("Promotion is not valid on this day", code=promotion.code)

        start_hour = promotion.applicable_start_hour
        end_hour = promotion.applicable_end_hour
        if start_hour is not None and end_hour is not None and not start_hour <= local_now.hour < end_hour:
            raise PromotionHourRestrictedException(
                f"Promotion is valid only between {start_hour}:00 and {end_hour}:00",
                code=promotion.code,
            )

        if subtotal < to_decimal(promotion.min_order_value):
            raise PromotionBelowMinimumException(
                "Order is below the promotion minimum",
                code=promotion.code,
                min_order_value=str(promotion.min_order_value),
            )

        if promotion.applicable_for != PromotionAudienceEnum.ALL:
            prior = await self.repository.count_prior_bookings(customer_id, booking_id)
            if promotion.applicable_for == PromotionAudienceEnum.FIRST_TIME and prior > 0:
                raise PromotionAudienceMismatchException("Promotion is for first-time customers only", code=promotion.code)
            if promotion.applicable_for == PromotionAudienceEnum.RETURNING and prior == 0:
                raise PromotionAudienceMismatchException("Promotion is for returning customers only", code=promotion.code)

        return PromotionQuote(promotion=promotion, discount_amount=calculate_discount(promotion, subtotal))

    async def commit(self, promotion_id: UUID, discount_amount: Decimal) -> bool:
        """Record one usage; returns False if a concurrent booking used up the cap."""
        amount = max(round_money(discount_amount), Decimal("0"))
        committed = await self.repository.commit_usage(promotion_id, amount)
        if not committed:
            logger.warning("Promotion %s usage commit rejected by ledger guard", promotion_id)
        return committed


async def get_promotion_service(session: AsyncSession = Depends(get_db_session)) -> PromotionService:
    """Dependency provider for promotion service."""
    return PromotionService(PromotionRepository(session))
