"""Policies API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from studiohub.core.enums import PolicyCategoryEnum
from studiohub.modules.policies.schemas import PolicySnapshot
from studiohub.modules.policies.service import PolicyService, get_policy_service

router = APIRouter(prefix="/policies", tags=["policies"])


@router.get("/active", response_model=PolicySnapshot)
async def get_active_policies(
    category: PolicyCategoryEnum | None = Query(default=None),
    service: PolicyService = Depends(get_policy_service),
) -> PolicySnapshot:
    """Return the policies a booking created now would carry."""
    return await service.snapshot_active_policies(category)
