from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from studiohub.core.enums import EquipmentStatusEnum
from studiohub.modules.equipment.models import derive_equipment_status
from studiohub.modules.equipment.service import EquipmentLedger
from studiohub.shared.exceptions import (
    BusinessRuleException,
    InsufficientStockException,
    InvalidStateException,
    NotFoundException,
)


@dataclass
class FakeEquipment:
    id: UUID
    name: str
    price_per_hour: Decimal
    total_qty: int
    available_qty: int
    in_use_qty: int = 0
    maintenance_qty: int = 0
    status: EquipmentStatusEnum = EquipmentStatusEnum.AVAILABLE


class FakeEquipmentRepository:
    """Check-and-set moves; an await between read and write would break atomicity."""

    def __init__(self, items: list[FakeEquipment]) -> None:
        self.items = {item.id: item for item in items}

    @staticmethod
    def _refresh_status(item: FakeEquipment) -> FakeEquipment:
        item.status = derive_equipment_status(item.in_use_qty, item.maintenance_qty, item.total_qty)
        return item

    async def get_by_id(self, equipment_id: UUID) -> FakeEquipment | None:
        return self.items.get(equipment_id)

    async def reserve(self, equipment_id: UUID, qty: int) -> FakeEquipment | None:
        await asyncio.sleep(0)
        item = self.items.get(equipment_id)
        if item is None or item.available_qty < qty:
            return None
        item.available_qty -= qty
        item.in_use_qty += qty
        return self._refresh_status(item)

    async def release(self, equipment_id: UUID, qty: int) -> FakeEquipment | None:
        item = self.items.get(equipment_id)
        if item is None or item.in_use_qty < qty:
            return None
        item.available_qty += qty
        item.in_use_qty -= qty
        return self._refresh_status(item)

    async def set_maintenance(self, equipment_id: UUID, new_qty: int) -> FakeEquipment | None:
        item = self.items.get(equipment_id)
        if item is None:
            return None
        if item.available_qty + item.maintenance_qty < new_qty or item.in_use_qty + new_qty > item.total_qty:
            return None
        item.available_qty = item.available_qty + item.maintenance_qty - new_qty
        item.maintenance_qty = new_qty
        return self._refresh_status(item)


def make_ledger(total_qty: int = 5) -> tuple[EquipmentLedger, FakeEquipment]:
    item = FakeEquipment(
        id=uuid4(),
        name="Softbox",
        price_per_hour=Decimal("20000"),
        total_qty=total_qty,
        available_qty=total_qty,
    )
    ledger = EquipmentLedger(FakeEquipmentRepository([item]))  # type: ignore[arg-type]
    return ledger, item


def assert_balanced(item: FakeEquipment) -> None:
    assert item.total_qty == item.available_qty + item.in_use_qty + item.maintenance_qty
    assert min(item.available_qty, item.in_use_qty, item.maintenance_qty) >= 0


@pytest.mark.asyncio
async def test_reserve_moves_units_to_in_use() -> None:
    ledger, item = make_ledger()

    await ledger.reserve(item.id, 2)

    assert item.available_qty == 3
    assert item.in_use_qty == 2
    assert item.status == EquipmentStatusEnum.IN_USE
    assert_balanced(item)


@pytest.mark.asyncio
async def test_reserve_more_than_available_reports_stock() -> None:
    ledger, item = make_ledger(total_qty=2)

    with pytest.raises(InsufficientStockException) as exc:
        await ledger.reserve(item.id, 3)

    assert exc.value.available_qty == 2
    assert exc.value.total_qty == 2
    assert item.available_qty == 2


@pytest.mark.asyncio
async def test_reserve_rejects_non_positive_quantity() -> None:
    ledger, item = make_ledger()

    with pytest.raises(BusinessRuleException):
        await ledger.reserve(item.id, 0)


@pytest.mark.asyncio
async def test_reserve_unknown_equipment_is_not_found() -> None:
    ledger, _ = make_ledger()

    with pytest.raises(NotFoundException):
        await ledger.reserve(uuid4(), 1)


@pytest.mark.asyncio
async def test_release_returns_units_and_status() -> None:
    ledger, item = make_ledger()
    await ledger.reserve(item.id, 2)

    await ledger.release(item.id, 2)

    assert item.available_qty == 5
    assert item.in_use_qty == 0
    assert item.status == EquipmentStatusEnum.AVAILABLE


@pytest.mark.asyncio
async def test_release_more_than_in_use_is_invalid_state() -> None:
    ledger, item = make_ledger()
    await ledger.reserve(item.id, 1)

    with pytest.raises(InvalidStateException):
        await ledger.release(item.id, 2)

    assert item.in_use_qty == 1
    assert_balanced(item)


@pytest.mark.asyncio
async def test_concurrent_reservations_never_oversell() -> None:
    ledger, item = make_ledger(total_qty=3)

    results = await asyncio.gather(
        *(ledger.reserve(item.id, 1) for _ in range(8)),
        return_exceptions=True,
    )

    succeeded = [result for result in results if not isinstance(result, Exception)]
    failed = [result for result in results if isinstance(result, InsufficientStockException)]
    assert len(succeeded) == 3
    assert len(failed) == 5
    assert item.available_qty == 0
    assert item.in_use_qty == 3
    assert_balanced(item)


@pytest.mark.asyncio
async def test_maintenance_takes_and_returns_available_units() -> None:
    ledger, item = make_ledger()

    await ledger.set_maintenance_quantity(item.id, 2)
    assert item.available_qty == 3
    assert item.maintenance_qty == 2

    await ledger.set_maintenance_quantity(item.id, 1)
    assert item.available_qty == 4
    assert item.maintenance_qty == 1
    assert_balanced(item)


@pytest.mark.asyncio
async def test_full_maintenance_sets_status() -> None:
    ledger, item = make_ledger(total_qty=2)

    await ledger.set_maintenance_quantity(item.id, 2)

    assert item.status == EquipmentStatusEnum.MAINTENANCE


@pytest.mark.asyncio
async def test_maintenance_cannot_take_units_in_use() -> None:
    ledger, item = make_ledger(total_qty=3)
    await ledger.reserve(item.id, 2)

    with pytest.raises(BusinessRuleException):
        await ledger.set_maintenance_quantity(item.id, 2)

    assert item.maintenance_qty == 0
    assert_balanced(item)


@pytest.mark.asyncio
async def test_negative_maintenance_is_rejected() -> None:
    ledger, item = make_ledger()

    with pytest.raises(BusinessRuleException):
        await ledger.set_maintenance_quantity(item.id, -1)


def test_status_prefers_in_use_over_maintenance() -> None:
    assert derive_equipment_status(1, 1, 2) == EquipmentStatusEnum.IN_USE
    assert derive_equipment_status(0, 2, 2) == EquipmentStatusEnum.MAINTENANCE
    assert derive_equipment_status(0, 1, 2) == EquipmentStatusEnum.AVAILABLE
    assert derive_equipment_status(0, 0, 0) == EquipmentStatusEnum.AVAILABLE


@pytest.mark.asyncio
async def test_two_bookings_take_last_units_and_third_fails() -> None:
    ledger, item = make_ledger(total_qty=2)

    await asyncio.gather(ledger.reserve(item.id, 1), ledger.reserve(item.id, 1))
    assert item.available_qty == 0

    with pytest.raises(InsufficientStockException):
        await ledger.reserve(item.id, 1)
    assert_balanced(item)
