"""Promotion repository layer."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.enums import BookingStatusEnum
from studiohub.modules.booking.models import Booking
from studiohub.modules.promotions.models import Promotion


class PromotionRepository:
    """DB operations for promotions and their ledgers."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_code(self, code: str) -> Promotion | None:
        stmt = select(Promotion).where(Promotion.code == code.strip().upper())
        return await self.session.scalar(stmt)

    async def get_by_id(self, promotion_id: UUID) -> Promotion | None:
        stmt = select(Promotion).where(Promotion.id == promotion_id)
        return await self.session.scalar(stmt)

    async def count_user_usage(
        self,
        promotion_id: UUID,
        customer_id: UUID,
        exclude_booking_id: UUID | None = None,
    ) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.customer_id == customer_id,
            Booking.promo_id == promotion_id,
            Booking.status != BookingStatusEnum.CANCELLED,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        return int((await self.session.scalar(stmt)) or 0)

    async def count_prior_bookings(self, customer_id: UUID, exclude_booking_id: UUID | None = None) -> int:
        stmt = select(func.count(Booking.id)).where(
            Booking.customer_id == customer_id,
            Booking.status != BookingStatusEnum.CANCELLED,
        )
        if exclude_booking_id is not None:
            stmt = stmt.where(Booking.id != exclude_booking_id)
        return int((await self.session.scalar(stmt)) or 0)

    async def commit_usage(self, promotion_id: UUID, discount_amount: Decimal) -> bool:
        """Increment both ledgers in one guarded statement; False when a cap would be crossed."""
        stmt = (
            update(Promotion)
            .where(
                Promotion.id == promotion_id,
                or_(Promotion.usage_limit.is_(None), Promotion.usage_count < Promotion.usage_limit),
                or_(
                    Promotion.max_total_discount_amount.is_(None),
                    Promotion.total_discounted_amount + discount_amount <= Promotion.max_total_discount_amount,
                ),
            )
            .values(
                usage_count=Promotion.usage_count + 1,
                total_discounted_amount=Promotion.total_discounted_amount + discount_amount,
            )
            .returning(Promotion.id)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none() is not None
