"""Active policy lookup and snapshotting."""

from __future__ import annotations

from fastapi import Depends
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.config import get_settings
from studiohub.core.database import get_db_session
from studiohub.core.enums import PolicyCategoryEnum, PolicyTypeEnum
from studiohub.modules.policies.models import RoomPolicy
from studiohub.modules.policies.repository import PolicyRepository
from studiohub.modules.policies.schemas import (
    CancellationPolicySnapshot,
    NoShowPolicySnapshot,
    NoShowRules,
    PolicySnapshot,
    RefundTier,
)
from studiohub.shared.exceptions import PolicyNotConfiguredException

settings = get_settings()


def _malformed(policy: RoomPolicy, exc: ValidationError) -> PolicyNotConfiguredException:
    return PolicyNotConfiguredException(
        f"Active {policy.type} policy {policy.name!r} has malformed rules",
        policy_id=str(policy.id),
        errors=exc.errors(include_url=False, include_context=False),
    )


def cancellation_snapshot(policy: RoomPolicy) -> CancellationPolicySnapshot:
    try:
        return CancellationPolicySnapshot(
            policy_id=policy.id,
            name=policy.name,
            category=policy.category,
            refund_tiers=[RefundTier.model_validate(tier) for tier in policy.refund_tiers or []],
        )
    except ValidationError as exc:
        raise _malformed(policy, exc) from exc


def no_show_snapshot(policy: RoomPolicy) -> NoShowPolicySnapshot:
    if not policy.no_show_rules:
        raise PolicyNotConfiguredException("No-show policy has no rules", policy_id=str(policy.id))
    try:
        return NoShowPolicySnapshot(
            policy_id=policy.id,
            name=policy.name,
            category=policy.category,
            no_show_rules=NoShowRules.model_validate(policy.no_show_rules),
        )
    except ValidationError as exc:
        raise _malformed(policy, exc) from exc


class PolicyService:
    """Resolves the live policies a new booking must carry."""

    def __init__(self, repository: PolicyRepository) -> None:
        self.repository = repository

    async def get_active_policy(self, policy_type: PolicyTypeEnum, category: PolicyCategoryEnum) -> RoomPolicy:
        policy = await self.repository.get_active_policy(policy_type, category)
        if policy is None:
            raise PolicyNotConfiguredException(
                f"No active {policy_type} policy for category {category}",
                policy_type=str(policy_type),
                category=str(category),
            )
        return policy

    async def snapshot_active_policies(self, category: PolicyCategoryEnum | None = None) -> PolicySnapshot:
        """Copy the active cancellation and no-show policies by value."""
        category = category or PolicyCategoryEnum(settings.default_policy_category)
        cancellation = await self.get_active_policy(PolicyTypeEnum.CANCELLATION, category)
        no_show = await self.get_active_policy(PolicyTypeEnum.NO_SHOW, category)
        return PolicySnapshot(
            cancellation=cancellation_snapshot(cancellation),
            no_show=no_show_snapshot(no_show),
        )


async def get_policy_service(session: AsyncSession = Depends(get_db_session)) -> PolicyService:
    """Dependency provider for policy service."""
    return PolicyService(PolicyRepository(session))
