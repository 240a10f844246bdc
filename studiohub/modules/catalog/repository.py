"""Catalog lookups used by the booking core."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.modules.catalog.models import ExtraService, Studio


class CatalogRepository:
    """Read-only access to studios and extra services."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_base_rate(self, studio_id: UUID) -> Decimal | None:
        stmt = select(Studio.base_rate_per_hour).where(
            Studio.id == studio_id,
            Studio.is_active.is_(True),
        )
        return await self.session.scalar(stmt)

    async def get_service_by_id(self, service_id: UUID) -> ExtraService | None:
        stmt = select(ExtraService).where(ExtraService.id == service_id)
        return await self.session.scalar(stmt)
