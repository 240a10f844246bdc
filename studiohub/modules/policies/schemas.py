"""Policy snapshot value objects.

A booking stores ``PolicySnapshot.model_dump(mode="json")`` in its own row, so
later edits of the live ``RoomPolicy`` never change its refund or charge.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from studiohub.core.enums import PolicyCategoryEnum


class RefundTier(BaseModel):
    """Refund percentage granted when cancelling at least N hours ahead."""

    model_config = ConfigDict(frozen=True)

    hours_before_booking: int = Field(ge=0)
    refund_percentage: int = Field(ge=0, le=100)
    description: str | None = None


class CancellationPolicySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy_id: UUID | None = None
    name: str
    category: PolicyCategoryEnum = PolicyCategoryEnum.STANDARD
    refund_tiers: list[RefundTier] = Field(default_factory=list)

    @field_validator("refund_tiers")
    @classmethod
    def sort_tiers_descending(cls, tiers: list[RefundTier]) -> list[RefundTier]:
        return sorted(tiers, key=lambda tier: tier.hours_before_booking, reverse=True)


class NoShowRules(BaseModel):
    """No-show rule family; ``charge_type`` is kept verbatim and checked on evaluation."""

    model_config = ConfigDict(frozen=True)

    charge_type: str
    charge_percentage: int | None = Field(default=None, ge=0, le=100)
    grace_minutes: int = Field(default=15, ge=0)
    max_forgiveness_count: int = Field(default=1, ge=0)

    @field_validator("charge_type")
    @classmethod
    def normalize_charge_type(cls, value: str) -> str:
        return value.strip().upper()


class NoShowPolicySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    policy_id: UUID | None = None
    name: str
    category: PolicyCategoryEnum = PolicyCategoryEnum.STANDARD
    no_show_rules: NoShowRules


class PolicySnapshot(BaseModel):
    """Both policies copied into a booking at creation time."""

    model_config = ConfigDict(frozen=True)

    cancellation: CancellationPolicySnapshot
    no_show: NoShowPolicySnapshot
