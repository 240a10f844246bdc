"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.config import get_settings
from studiohub.core.database import SessionLocal, close_engine
from studiohub.core.enums import PolicyCategoryEnum, PolicyTypeEnum
from studiohub.modules.catalog.models import ExtraService, Studio
from studiohub.modules.equipment.models import Equipment
from studiohub.modules.equipment.repository import EquipmentRepository
from studiohub.modules.policies.models import RoomPolicy

DEMO_STUDIO_NAME = "Demo Studio A"
DEMO_STUDIO_BASE_RATE = Decimal("100000")

DEMO_EQUIPMENT = (
    ("Profoto B10 flash kit", Decimal("50000"), 4),
    ("Softbox 120cm", Decimal("20000"), 6),
    ("Paper backdrop roll", Decimal("15000"), 3),
)
DEMO_SERVICES = (
    ("Makeup artist", Decimal("300000")),
    ("Assistant photographer", Decimal("250000")),
)

STANDARD_REFUND_TIERS: list[dict[str, Any]] = [
    {"hours_before_booking": 48, "refund_percentage": 100, "description": "48h or more before start"},
    {"hours_before_booking": 24, "refund_percentage": 50, "description": "24h to 48h before start"},
    {"hours_before_booking": 0, "refund_percentage": 0, "description": "Less than 24h before start"},
]
STANDARD_NO_SHOW_RULES: dict[str, Any] = {
    "charge_type": "FULL_CHARGE",
    "charge_percentage": 100,
    "grace_minutes": 15,
    "max_forgiveness_count": 1,
}


@dataclass(slots=True)
class SeedStats:
    studio_created: bool = False
    studio_id: str | None = None
    equipment_created: int = 0
    services_created: int = 0
    policies_created: int = 0
    policies_updated: int = 0


async def _ensure_studio(session: AsyncSession) -> tuple[Studio, bool]:
    studio = await session.scalar(select(Studio).where(Studio.name == DEMO_STUDIO_NAME))
    if studio is None:
        studio = Studio(name=DEMO_STUDIO_NAME, base_rate_per_hour=DEMO_STUDIO_BASE_RATE, is_active=True)
        session.add(studio)
        await session.flush()
        return studio, True

    studio.base_rate_per_hour = DEMO_STUDIO_BASE_RATE
    studio.is_active = True
    await session.flush()
    return studio, False


async def _ensure_equipment(session: AsyncSession) -> int:
    repository = EquipmentRepository(session)
    created = 0
    for name, price_per_hour, total_qty in DEMO_EQUIPMENT:
        existing = await session.scalar(select(Equipment).where(Equipment.name == name))
        if existing is not None:
            continue
        await repository.create_equipment(name, price_per_hour, total_qty)
        created += 1
    return created


async def _ensure_services(session: AsyncSession) -> int:
    created = 0
    for name, price_per_use in DEMO_SERVICES:
        existing = await session.scalar(select(ExtraService).where(ExtraService.name == name))
        if existing is not None:
            continue
        session.add(ExtraService(name=name, price_per_use=price_per_use, is_available=True))
        created += 1
    await session.flush()
    return created


async def _ensure_policy(
    session: AsyncSession,
    *,
    policy_type: PolicyTypeEnum,
    name: str,
    description: str,
    refund_tiers: list[dict[str, Any]],
    no_show_rules: dict[str, Any] | None,
) -> bool:
    policy = await session.scalar(
        select(RoomPolicy).where(
            RoomPolicy.type == policy_type,
            RoomPolicy.category == PolicyCategoryEnum.STANDARD,
            RoomPolicy.name == name,
        ),
    )
    created = False
    if policy is None:
        policy = RoomPolicy(type=policy_type, category=PolicyCategoryEnum.STANDARD, name=name)
        session.add(policy)
        created = True

    policy.description = description
    policy.refund_tiers = refund_tiers
    policy.no_show_rules = no_show_rules
    policy.is_active = True
    await session.flush()
    return created


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            studio, stats.studio_created = await _ensure_studio(session)
            stats.studio_id = str(studio.id)
            stats.equipment_created = await _ensure_equipment(session)
            stats.services_created = await _ensure_services(session)

            policy_results = [
                await _ensure_policy(
                    session,
                    policy_type=PolicyTypeEnum.CANCELLATION,
                    name="Standard cancellation",
                    description="Full refund 48h ahead, half refund 24h ahead, none after.",
                    refund_tiers=STANDARD_REFUND_TIERS,
                    no_show_rules=None,
                ),
                await _ensure_policy(
                    session,
                    policy_type=PolicyTypeEnum.NO_SHOW,
                    name="Standard no-show",
                    description="Missed bookings are charged in full.",
                    refund_tiers=[],
                    no_show_rules=STANDARD_NO_SHOW_RULES,
                ),
            ]
            stats.policies_created = sum(policy_results)
            stats.policies_updated = len(policy_results) - stats.policies_created

            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for StudioHub (studio, equipment, "
            "extra services, STANDARD cancellation and no-show policies)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Studio created: {stats.studio_created}")
    print(f"- Studio id: {stats.studio_id}")
    print(f"- Equipment created: {stats.equipment_created}")
    print(f"- Extra services created: {stats.services_created}")
    print(f"- Policies created: {stats.policies_created}")
    print(f"- Policies updated: {stats.policies_updated}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
