from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from studiohub.core.enums import DiscountTypeEnum, PromotionAudienceEnum
from studiohub.modules.promotions.service import PromotionService, calculate_discount
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

ZONE = ZoneInfo("Asia/Ho_Chi_Minh")
# Tuesday 2026-10-20, 14:00 local.
NOW = datetime(2026, 10, 20, 7, 0, tzinfo=UTC)


@dataclass
class FakePromotion:
    code: str
    discount_type: DiscountTypeEnum = DiscountTypeEnum.PERCENTAGE
    discount_value: Decimal = Decimal("10")
    id: UUID = field(default_factory=uuid4)
    max_discount: Decimal | None = None
    min_order_value: Decimal = Decimal("0")
    usage_limit: int | None = None
    usage_count: int = 0
    usage_limit_per_user: int | None = None
    applicable_days: list[int] | None = None
    applicable_start_hour: int | None = None
    applicable_end_hour: int | None = None
    applicable_for: PromotionAudienceEnum = PromotionAudienceEnum.ALL
    max_total_discount_amount: Decimal | None = None
    total_discounted_amount: Decimal = Decimal("0")
    start_date: datetime = NOW - timedelta(days=10)
    end_date: datetime = NOW + timedelta(days=10)
    is_active: bool = True


class FakePromotionRepository:
    def __init__(
        self,
        promotions: list[FakePromotion],
        *,
        user_usage: int = 0,
        prior_bookings: int = 0,
    ) -> None:
        self.promotions = {promotion.id: promotion for promotion in promotions}
        self.user_usage = user_usage
        self.prior_bookings = prior_bookings

    async def get_by_code(self, code: str) -> FakePromotion | None:
        normalized = code.strip().upper()
        return next((item for item in self.promotions.values() if item.code == normalized), None)

    async def get_by_id(self, promotion_id: UUID) -> FakePromotion | None:
        return self.promotions.get(promotion_id)

    async def count_user_usage(
        self,
        promotion_id: UUID,
        customer_id: UUID,
        exclude_booking_id: UUID | None = None,
    ) -> int:
        return self.user_usage

    async def count_prior_bookings(self, customer_id: UUID, exclude_booking_id: UUID | None = None) -> int:
        return self.prior_bookings

    async def commit_usage(self, promotion_id: UUID, discount_amount: Decimal) -> bool:
        promotion = self.promotions[promotion_id]
        if promotion.usage_limit is not None and promotion.usage_count >= promotion.usage_limit:
            return False
        if (
            promotion.max_total_discount_amount is not None
            and promotion.total_discounted_amount + discount_amount > promotion.max_total_discount_amount
        ):
            return False
        promotion.usage_count += 1
        promotion.total_discounted_amount += discount_amount
        return True


def make_service(
    promotion: FakePromotion,
    *,
    user_usage: int = 0,
    prior_bookings: int = 0,
) -> tuple[PromotionService, FakePromotionRepository]:
    repository = FakePromotionRepository([promotion], user_usage=user_usage, prior_bookings=prior_bookings)
    service = PromotionService(repository, business_zone=ZONE)  # type: ignore[arg-type]
    return service, repository


@pytest.mark.asyncio
async def test_percentage_discount_is_applied_case_insensitively() -> None:
    service, _ = make_service(FakePromotion(code="SUMMER10"))

    quote = await service.validate(" summer10 ", uuid4(), Decimal("200000"), NOW)

    assert quote.promotion.code == "SUMMER10"
    assert quote.discount_amount == Decimal("20000.00")


@pytest.mark.asyncio
async def test_unknown_code_is_not_found() -> None:
    service, _ = make_service(FakePromotion(code="SUMMER10"))

    with pytest.raises(PromotionNotFoundException):
        await service.validate("WINTER", uuid4(), Decimal("200000"), NOW)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"is_active": False},
        {"start_date": NOW + timedelta(days=1)},
        {"end_date": NOW - timedelta(seconds=1)},
    ],
)
async def test_inactive_or_out_of_window_is_expired(overrides: dict) -> None:
    service, _ = make_service(FakePromotion(code="SUMMER10", **overrides))

    with pytest.raises(PromotionExpiredException):
        await service.validate("SUMMER10", uuid4(), Decimal("200000"), NOW)


@pytest.mark.asyncio
async def test_usage_limit_reached_is_exhausted() -> None:
    service, _ = make_service(FakePromotion(code="SUMMER10", usage_limit=5, usage_count=5))

    with pytest.raises(PromotionExhaustedException):
        await service.validate("SUMMER10", uuid4(), Decimal("200000"), NOW)


@pytest.mark.asyncio
async def test_spent_budget_is_budget_exhausted() -> None:
    promotion = FakePromotion(
        code="SUMMER10",
        max_total_discount_amount=Decimal("50000"),
        total_discounted_amount=Decimal("50000"),
    )
    service, _ = make_service(promotion)

    with pytest.raises(PromotionBudgetExhaustedException):
        await service.validate("SUMMER10", uuid4(), Decimal("200000"), NOW)


@pytest.mark.asyncio
async def test_per_user_limit_exceeded() -> None:
    service, _ = make_service(FakePromotion(code="ONCE", usage_limit_per_user=1), user_usage=1)

    with pytest.raises(PromotionUserLimitExceededException) as exc:
        await service.validate("ONCE", uuid4(), Decimal("200000"), NOW)

    assert exc.value.details["limit"] == 1


@pytest.mark.asyncio
async def test_day_restriction_uses_business_timezone() -> None:
    # 2026-10-20 20:00 UTC is already Wednesday (weekday 2) in UTC+7.
    late_evening = datetime(2026, 10, 20, 20, 0, tzinfo=UTC)
    tuesday_only = FakePromotion(code="TUE", applicable_days=[1])
    service, _ = make_service(tuesday_only)

    await service.validate("TUE", uuid4(), Decimal("200000"), NOW)
    with pytest.raises(PromotionDayRestrictedException):
        await service.validate("TUE", uuid4(), Decimal("200000"), late_evening)


@pytest.mark.asyncio
async def test_hour_window_is_half_open() -> None:
    promotion = FakePromotion(code="HAPPY", applicable_start_hour=9, applicable_end_hour=14)
    service, _ = make_service(promotion)

    with pytest.raises(PromotionHourRestrictedException):
        await service.validate("HAPPY", uuid4(), Decimal("200000"), NOW)

    quote = await service.validate("HAPPY", uuid4(), Decimal("200000"), NOW - timedelta(minutes=1))
    assert quote.discount_amount == Decimal("20000.00")


@pytest.mark.asyncio
async def test_below_minimum_order_value() -> None:
    service, _ = make_service(FakePromotion(code="BIG", min_order_value=Decimal("500000")))

    with pytest.raises(PromotionBelowMinimumException):
        await service.validate("BIG", uuid4(), Decimal("200000"), NOW)


@pytest.mark.asyncio
async def test_first_time_audience() -> None:
    promotion = FakePromotion(code="WELCOME", applicable_for=PromotionAudienceEnum.FIRST_TIME)
    newcomer, _ = make_service(promotion, prior_bookings=0)
    regular, _ = make_service(promotion, prior_bookings=2)

    await newcomer.validate("WELCOME", uuid4(), Decimal("200000"), NOW)
    with pytest.raises(PromotionAudienceMismatchException):
        await regular.validate("WELCOME", uuid4(), Decimal("200000"), NOW)


@pytest.mark.asyncio
async def test_returning_audience() -> None:
    promotion = FakePromotion(code="BACK", applicable_for=PromotionAudienceEnum.RETURNING)
    newcomer, _ = make_service(promotion, prior_bookings=0)

    with pytest.raises(PromotionAudienceMismatchException):
        await newcomer.validate("BACK", uuid4(), Decimal("200000"), NOW)


def test_percentage_discount_is_capped_by_max_discount() -> None:
    promotion = FakePromotion(code="CAP", discount_value=Decimal("50"), max_discount=Decimal("30000"))

    assert calculate_discount(promotion, Decimal("200000")) == Decimal("30000.00")


def test_fixed_discount_never_exceeds_subtotal() -> None:
    promotion = FakePromotion(code="FLAT", discount_type=DiscountTypeEnum.FIXED, discount_value=Decimal("80000"))

    assert calculate_discount(promotion, Decimal("50000")) == Decimal("50000.00")
    assert calculate_discount(promotion, Decimal("200000")) == Decimal("80000.00")


def test_discount_is_clamped_to_remaining_budget() -> None:
    promotion = FakePromotion(
        code="BUDGET",
        discount_value=Decimal("20"),
        max_total_discount_amount=Decimal("100000"),
        total_discounted_amount=Decimal("90000"),
    )

    assert calculate_discount(promotion, Decimal("200000")) == Decimal("10000.00")


def test_percentage_discount_rounds_half_up() -> None:
    promotion = FakePromotion(code="ODD", discount_value=Decimal("15"))

    # 15% of 1003 is 150.45, rounded to whole units.
    assert calculate_discount(promotion, Decimal("1003")) == Decimal("150.00")


@pytest.mark.asyncio
async def test_commit_increments_both_ledgers() -> None:
    promotion = FakePromotion(code="SUMMER10", usage_limit=1)
    service, _ = make_service(promotion)

    assert await service.commit(promotion.id, Decimal("20000")) is True
    assert promotion.usage_count == 1
    assert promotion.total_discounted_amount == Decimal("20000")

    assert await service.commit(promotion.id, Decimal("20000")) is False
    assert promotion.usage_count == 1
