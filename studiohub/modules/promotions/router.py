"""Promotions API router."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter, Depends

from studiohub.core.security import Actor, get_current_actor
from studiohub.modules.promotions.schemas import PromotionQuoteRead, PromotionValidateRequest
from studiohub.modules.promotions.service import PromotionService, get_promotion_service

router = APIRouter(prefix="/promotions", tags=["promotions"])


@router.post("/validate", response_model=PromotionQuoteRead)
async def validate_promotion(
    payload: PromotionValidateRequest,
    service: PromotionService = Depends(get_promotion_service),
    actor: Actor = Depends(get_current_actor),
) -> PromotionQuoteRead:
    """Preview discount of a code for the current customer."""
    quote = await service.validate(payload.code, actor.id, payload.subtotal)
    promotion = quote.promotion
    return PromotionQuoteRead(
        promotion_id=promotion.id,
        code=promotion.code,
        name=promotion.name,
        discount_type=promotion.discount_type,
        discount_value=promotion.discount_value,
        discount_amount=quote.discount_amount,
        final_amount=max(payload.subtotal - quote.discount_amount, Decimal("0")),
    )
