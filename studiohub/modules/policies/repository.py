"""Room policy repository layer."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.enums import PolicyCategoryEnum, PolicyTypeEnum
from studiohub.modules.policies.models import RoomPolicy


class PolicyRepository:
    """DB operations for room policies."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_active_policy(self, policy_type: PolicyTypeEnum, category: PolicyCategoryEnum) -> RoomPolicy | None:
        stmt = (
            select(RoomPolicy)
            .where(
                RoomPolicy.type == policy_type,
                RoomPolicy.category == category,
                RoomPolicy.is_active.is_(True),
            )
            .order_by(RoomPolicy.updated_at.desc())
            .limit(1)
        )
        return await self.session.scalar(stmt)
