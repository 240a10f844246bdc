"""Refund and no-show charge computation over policy snapshots.

Pure functions: no I/O, no clock. Callers pass every instant explicitly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from studiohub.core.enums import NoShowChargeTypeEnum
from studiohub.modules.policies.schemas import (
    CancellationPolicySnapshot,
    NoShowPolicySnapshot,
    PolicySnapshot,
    RefundTier,
)
from studiohub.shared.exceptions import InvalidPolicyException
from studiohub.shared.utils import ensure_utc, round_whole, to_decimal

ZERO = Decimal("0")


@dataclass(frozen=True, slots=True)
class RefundCalculation:
    refund_amount: Decimal
    refund_percentage: int
    tier: RefundTier | None
    hours_before_booking: int


@dataclass(frozen=True, slots=True)
class NoShowChargeCalculation:
    charge_amount: Decimal
    charge_type: str
    is_no_show: bool
    charge_percentage: int | None = None
    minutes_late: int | None = None
    previous_no_show_count: int | None = None
    forgiven: bool | None = None


def load_policy_snapshot(data: dict[str, Any] | None) -> PolicySnapshot:
    """Parse a stored snapshot; malformed data is a configuration error."""
    if not data:
        raise InvalidPolicyException("Booking has no policy snapshot")
    try:
        return PolicySnapshot.model_validate(data)
    except ValidationError as exc:
        raise InvalidPolicyException("Stored policy snapshot is malformed", errors=exc.errors()) from exc


def calculate_refund(
    policy: CancellationPolicySnapshot,
    booking_start: datetime,
    cancel_time: datetime,
    booking_amount: Decimal,
) -> RefundCalculation:
    """Pick the most generous tier the cancellation time still qualifies for."""
    elapsed = ensure_utc(booking_start) - ensure_utc(cancel_time)
    hours_before_booking = math.floor(elapsed.total_seconds() / 3600)

    tier = next(
        (item for item in policy.refund_tiers if hours_before_booking >= item.hours_before_booking),
        None,
    )
    if tier is None:
        return RefundCalculation(
            refund_amount=ZERO,
            refund_percentage=0,
            tier=None,
            hours_before_booking=hours_before_booking,
        )

    refund_amount = round_whole(to_decimal(booking_amount) * tier.refund_percentage / Decimal(100))
    return RefundCalculation(
        refund_amount=refund_amount,
        refund_percentage=tier.refund_percentage,
        tier=tier,
        hours_before_booking=hours_before_booking,
    )


def calculate_no_show_charge(
    policy: NoShowPolicySnapshot,
    booking_start: datetime,
    check_in_time: datetime | None,
    booking_amount: Decimal,
    previous_no_show_count: int = 0,
) -> NoShowChargeCalculation:
    """Charge owed for a missed or late start under the snapshot's rule family."""
    booking_start = ensure_utc(booking_start)
    check_in_time = ensure_utc(check_in_time) if check_in_time is not None else None
    amount = to_decimal(booking_amount)
    rules = policy.no_show_rules

    if check_in_time is not None and check_in_time <= booking_start:
        return NoShowChargeCalculation(charge_amount=ZERO, charge_type="NO_CHARGE", is_no_show=False)

    charge_type = rules.charge_type
    if charge_type == NoShowChargeTypeEnum.FULL_CHARGE:
        return NoShowChargeCalculation(charge_amount=amount, charge_type="FULL_CHARGE", is_no_show=True)

    if charge_type == NoShowChargeTypeEnum.PARTIAL_CHARGE:
        if rules.charge_percentage is None:
            raise InvalidPolicyException("Partial charge policy has no charge percentage")
        return NoShowChargeCalculation(
            charge_amount=round_whole(amount * rules.charge_percentage / Decimal(100)),
            charge_type="PARTIAL_CHARGE",
            is_no_show=True,
            charge_percentage=rules.charge_percentage,
        )

    if charge_type == NoShowChargeTypeEnum.GRACE_PERIOD:
        if check_in_time is not None:
            minutes_late = math.floor((check_in_time - booking_start).total_seconds() / 60)
            if minutes_late <= rules.grace_minutes:
                return NoShowChargeCalculation(
                    charge_amount=ZERO,
                    charge_type="GRACE_PERIOD",
                    is_no_show=False,
                    minutes_late=minutes_late,
                )
        return NoShowChargeCalculation(charge_amount=amount, charge_type="GRACE_PERIOD_EXCEEDED", is_no_show=True)

    if charge_type == NoShowChargeTypeEnum.FORGIVENESS:
        if previous_no_show_count < rules.max_forgiveness_count:
            return NoShowChargeCalculation(
                charge_amount=ZERO,
                charge_type="FORGIVENESS",
                is_no_show=True,
                previous_no_show_count=previous_no_show_count,
                forgiven=True,
            )
        return NoShowChargeCalculation(
            charge_amount=amount,
            charge_type="FORGIVENESS_EXCEEDED",
            is_no_show=True,
            previous_no_show_count=previous_no_show_count,
            forgiven=False,
        )

    raise InvalidPolicyException(f"Unknown no-show charge type: {charge_type}", charge_type=charge_type)
