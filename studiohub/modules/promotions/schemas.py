"""Promotion schemas."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from studiohub.core.enums import DiscountTypeEnum


class PromotionValidateRequest(BaseModel):
    """Preview a promotion code against an order subtotal."""

    code: str = Field(min_length=1, max_length=64)
    subtotal: Decimal = Field(ge=0)


class PromotionQuoteRead(BaseModel):
    """Discount preview response."""

    promotion_id: UUID
    code: str
    name: str
    discount_type: DiscountTypeEnum
    discount_value: Decimal
    discount_amount: Decimal
    final_amount: Decimal
