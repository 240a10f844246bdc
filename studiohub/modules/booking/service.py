"""Booking orchestrator: composes slots, equipment, promotions and policies."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import TypeVar
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.config import get_settings
from studiohub.core.database import get_db_session
from studiohub.core.enums import (
    BookingEventTypeEnum,
    BookingStatusEnum,
    LineItemTypeEnum,
    NotificationKindEnum,
)
from studiohub.core.metrics import record_booking_operation
from studiohub.core.security import Actor
from studiohub.modules.booking.compensation import CompensationStack
from studiohub.modules.booking.models import Booking
from studiohub.modules.booking.repository import BookingRepository
from studiohub.modules.booking.schemas import BookingCreate, BookingUpdate, LineItemRequest
from studiohub.modules.catalog.repository import CatalogRepository
from studiohub.modules.equipment.repository import EquipmentRepository
from studiohub.modules.equipment.service import EquipmentLedger
from studiohub.modules.notifications.repository import NotificationsRepository
from studiohub.modules.notifications.service import NotificationsService
from studiohub.modules.policies.engine import calculate_no_show_charge, calculate_refund, load_policy_snapshot
from studiohub.modules.policies.repository import PolicyRepository
from studiohub.modules.policies.service import PolicyService
from studiohub.modules.promotions.models import Promotion
from studiohub.modules.promotions.repository import PromotionRepository
from studiohub.modules.promotions.service import PromotionService, calculate_discount
from studiohub.modules.scheduling.models import Schedule
from studiohub.modules.scheduling.repository import SchedulingRepository
from studiohub.modules.scheduling.service import ScheduleAllocator
from studiohub.shared.exceptions import (
    AppException,
    BusinessRuleException,
    ConflictException,
    InvalidPromotionException,
    InvalidStateException,
    NotFoundException,
    OperationTimeoutException,
    PromotionBudgetExhaustedException,
    PromotionExhaustedException,
    UnauthorizedException,
)
from studiohub.shared.listing import TimeWindow
from studiohub.shared.utils import duration_hours, ensure_utc, round_money, round_whole, to_decimal, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

T = TypeVar("T")

ZERO = Decimal("0")
EXTENDABLE_STATUSES = (BookingStatusEnum.CONFIRMED, BookingStatusEnum.CHECKED_IN)
CANCELLABLE_STATUSES = (
    BookingStatusEnum.PENDING,
    BookingStatusEnum.CONFIRMED,
    BookingStatusEnum.CHECKED_IN,
)


@dataclass(slots=True)
class ExtensionInfo:
    can_extend: bool
    current_end_at: datetime
    max_end_at: datetime | None
    available_minutes: int
    reason: str | None = None


@dataclass(slots=True)
class ExtensionResult:
    booking: Booking
    additional_amount: Decimal
    previous_end_at: datetime
    new_end_at: datetime


class BookingService:
    """Booking lifecycle with compensated multi-step mutations.

    Every state-changing operation runs under ``booking_operation_timeout_seconds``.
    Create and update push an undo action after each acquired resource, so a
    failure at any later step hands back the slot and equipment before the
    error reaches the caller.
    """

    def __init__(
        self,
        booking_repository: BookingRepository,
        allocator: ScheduleAllocator,
        equipment_ledger: EquipmentLedger,
        promotion_service: PromotionService,
        policy_service: PolicyService,
        catalog_repository: CatalogRepository,
        notifications_service: NotificationsService,
        *,
        operation_timeout: float | None = None,
    ) -> None:
        self.booking_repository = booking_repository
        self.allocator = allocator
        self.equipment_ledger = equipment_ledger
        self.promotion_service = promotion_service
        self.policy_service = policy_service
        self.catalog_repository = catalog_repository
        self.notifications_service = notifications_service
        self.operation_timeout = (
            settings.booking_operation_timeout_seconds if operation_timeout is None else operation_timeout
        )

    async def _run(self, operation: str, work: Callable[[], Awaitable[T]]) -> T:
        try:
            async with asyncio.timeout(self.operation_timeout):
                result = await work()
        except TimeoutError as exc:
            record_booking_operation(operation, OperationTimeoutException.code)
            logger.warning("Booking %s exceeded %.1fs deadline", operation, self.operation_timeout)
            raise OperationTimeoutException(f"Booking {operation} did not finish in time") from exc
        except AppException as exc:
            record_booking_operation(operation, exc.code)
            raise
        record_booking_operation(operation, "ok")
        return result

    @staticmethod
    def _ensure_access(booking: Booking, actor: Actor) -> None:
        if actor.is_staff or booking.customer_id == actor.id:
            return
        raise UnauthorizedException("You cannot manage this booking")

    @staticmethod
    def _ensure_staff(actor: Actor | None) -> None:
        if actor is not None and not actor.is_staff:
            raise UnauthorizedException("Only staff can perform this action")

    async def _load(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def _notify_safely(
        self,
        user_id: UUID,
        kind: NotificationKindEnum,
        title: str,
        body: str,
        booking_id: UUID,
    ) -> None:
        try:
            await self.notifications_service.notify(user_id, kind, title, body, booking_id)
        except Exception:
            logger.exception("Failed to queue %s notification for booking %s", kind, booking_id)

    async def _release_equipment_best_effort(self, booking: Booking) -> None:
        items = await self.booking_repository.list_line_items(booking.id)
        for item in items:
            if item.item_type != LineItemTypeEnum.EQUIPMENT or item.equipment_id is None:
                continue
            try:
                await self.equipment_ledger.release(item.equipment_id, item.quantity)
            except AppException as exc:
                logger.warning(
                    "Could not release %s units of equipment %s for booking %s: %s",
                    item.quantity,
                    item.equipment_id,
                    booking.id,
                    exc.message,
                )

    async def _add_line_items(
        self,
        booking_id: UUID,
        requests: list[LineItemRequest],
        compensation: CompensationStack,
    ) -> None:
        for request in requests:
            if request.item_type == LineItemTypeEnum.EQUIPMENT:
                equipment_id = request.equipment_id
                quantity = request.quantity
                equipment = await self.equipment_ledger.reserve(equipment_id, quantity)
                compensation.push(
                    f"release equipment {equipment_id}",
                    lambda equipment_id=equipment_id, quantity=quantity: self.equipment_ledger.release(
                        equipment_id,
                        quantity,
                    ),
                )
                unit_price = to_decimal(equipment.price_per_hour)
                description = equipment.name
            else:
                service = await self.catalog_repository.get_service_by_id(request.service_id)
                if service is None:
                    raise NotFoundException("Extra service not found", service_id=str(request.service_id))
                if not service.is_available:
                    raise BusinessRuleException("Extra service is not available", service_id=str(service.id))
                unit_price = to_decimal(service.price_per_use)
                description = service.name

            await self.booking_repository.add_line_item(
                booking_id=booking_id,
                item_type=request.item_type,
                equipment_id=request.equipment_id,
                service_id=request.service_id,
                description=description,
                quantity=request.quantity,
                unit_price=unit_price,
                subtotal=round_money(unit_price * request.quantity),
            )

    async def _price(self, booking_id: UUID, slot: Schedule) -> Decimal:
        base_rate = await self.catalog_repository.get_base_rate(slot.studio_id)
        if base_rate is None:
            raise NotFoundException("Studio not found")
        items = await self.booking_repository.list_line_items(booking_id)
        hours = duration_hours(ensure_utc(slot.start_at), ensure_utc(slot.end_at))
        items_total = sum((to_decimal(item.subtotal) for item in items), ZERO)
        return round_money(to_decimal(base_rate) * hours + items_total)

    async def _quote_promotion(
        self,
        code: str,
        customer_id: UUID,
        subtotal: Decimal,
        booking_id: UUID,
        required: bool,
    ) -> tuple[Promotion | None, Decimal]:
        try:
            quote = await self.promotion_service.validate(code, customer_id, subtotal, utc_now(), booking_id=booking_id)
        except InvalidPromotionException as exc:
            if required:
                raise
            logger.warning("Promotion %s ignored for booking %s: %s", code, booking_id, exc.code)
            return None, ZERO
        return quote.promotion, min(quote.discount_amount, subtotal)

    async def _commit_promotion(self, booking: Booking, promotion: Promotion, required: bool) -> None:
        """Record ledger usage after the booking row holds its final amounts."""
        if await self.promotion_service.commit(promotion.id, booking.discount_amount):
            return
        if required:
            raise PromotionExhaustedException("Promotion was used up by a concurrent booking", code=promotion.code)
        logger.warning("Promotion %s lost ledger race, booking %s priced without discount", promotion.code, booking.id)
        await self.booking_repository.update_booking(
            booking,
            promo_id=None,
            discount_amount=ZERO,
            final_amount=booking.total_before_discount,
        )

    async def create_booking(self, payload: BookingCreate, actor: Actor) -> Booking:
        """Create pending booking; all-or-nothing across slot, equipment and promotion."""
        return await self._run("create", lambda: self._create_booking(payload, actor))

    async def _create_booking(self, payload: BookingCreate, actor: Actor) -> Booking:
        customer_id = payload.customer_id or actor.id
        if customer_id != actor.id and not actor.is_staff:
            raise UnauthorizedException("Only staff can book on behalf of another customer")

        if await self.catalog_repository.get_base_rate(payload.studio_id) is None:
            raise NotFoundException("Studio not found")

        slot = await self.allocator.resolve_or_create_slot(payload.studio_id, payload.start_at, payload.end_at)

        compensation = CompensationStack()
        try:
            booking = await self.booking_repository.create_booking(slot.id, customer_id, payload.notes)
            compensation.push("delete booking", lambda: self.booking_repository.delete_booking(booking))

            await self.allocator.claim(slot.id, booking.id)
            compensation.push("release slot", lambda: self.allocator.release(slot.id))

            await self._add_line_items(booking.id, payload.line_items, compensation)

            total_before_discount = await self._price(booking.id, slot)

            promotion: Promotion | None = None
            discount_amount = ZERO
            if payload.promo_code:
                promotion, discount_amount = await self._quote_promotion(
                    payload.promo_code,
                    customer_id,
                    total_before_discount,
                    booking.id,
                    payload.promo_code_required,
                )

            snapshot = await self.policy_service.snapshot_active_policies()

            await self.booking_repository.update_booking(
                booking,
                total_before_discount=total_before_discount,
                discount_amount=discount_amount,
                final_amount=max(ZERO, total_before_discount - discount_amount),
                promo_id=promotion.id if promotion is not None else None,
                policy_snapshot=snapshot.model_dump(mode="json"),
            )
            if promotion is not None:
                await self._commit_promotion(booking, promotion, payload.promo_code_required)

            await self.booking_repository.add_event(
                booking.id,
                BookingEventTypeEnum.CREATED,
                details={
                    "total_before_discount": str(booking.total_before_discount),
                    "discount_amount": str(booking.discount_amount),
                    "promo_code": promotion.code if booking.promo_id is not None else None,
                },
                amount=booking.final_amount,
                actor_id=actor.id,
            )
        except (Exception, asyncio.CancelledError):
            await compensation.unwind()
            raise
        compensation.clear()

        logger.info("Booking %s created for customer %s on slot %s", booking.id, customer_id, slot.id)
        await self._notify_safely(
            customer_id,
            NotificationKindEnum.CONFIRMATION,
            "Booking created",
            f"Your booking was created. Total: {booking.final_amount}",
            booking.id,
        )
        return await self._load(booking.id)

    async def update_booking(self, booking_id: UUID, payload: BookingUpdate, actor: Actor) -> Booking:
        """Change a pending booking's window, add-ons or promotion and reprice it."""
        return await self._run("update", lambda: self._update_booking(booking_id, payload, actor))

    async def _update_booking(self, booking_id: UUID, payload: BookingUpdate, actor: Actor) -> Booking:
        booking = await self._load(booking_id)
        self._ensure_access(booking, actor)
        if booking.status != BookingStatusEnum.PENDING:
            raise InvalidStateException("Only pending bookings can be updated", status=str(booking.status))

        slot = booking.slot
        changes: dict[str, object] = {}
        compensation = CompensationStack()
        try:
            if payload.start_at is not None or payload.end_at is not None:
                previous_start, previous_end = slot.start_at, slot.end_at
                await self.allocator.reschedule(
                    slot.id,
                    payload.start_at or previous_start,
                    payload.end_at or previous_end,
                )
                compensation.push(
                    "restore slot window",
                    lambda: self.allocator.reschedule(slot.id, previous_start, previous_end),
                )
                changes["window"] = [slot.start_at.isoformat(), slot.end_at.isoformat()]

            if payload.remove_line_item_ids:
                wanted = set(payload.remove_line_item_ids)
                items = {item.id: item for item in await self.booking_repository.list_line_items(booking.id)}
                missing = wanted - items.keys()
                if missing:
                    raise NotFoundException("Line item not found", line_item_ids=sorted(str(item) for item in missing))
                for item_id in payload.remove_line_item_ids:
                    item = items[item_id]
                    if item.item_type == LineItemTypeEnum.EQUIPMENT and item.equipment_id is not None:
                        equipment_id, quantity = item.equipment_id, item.quantity
                        await self.equipment_ledger.release(equipment_id, quantity)
                        compensation.push(
                            f"re-reserve equipment {equipment_id}",
                            lambda equipment_id=equipment_id, quantity=quantity: self.equipment_ledger.reserve(
                                equipment_id,
                                quantity,
                            ),
                        )
                    await self.booking_repository.delete_line_item(item)
                changes["removed_line_items"] = [str(item_id) for item_id in payload.remove_line_item_ids]

            if payload.add_line_items:
                await self._add_line_items(booking.id, payload.add_line_items, compensation)
                changes["added_line_items"] = len(payload.add_line_items)

            total_before_discount = await self._price(booking.id, slot)

            current_promotion = None
            if booking.promo_id is not None:
                current_promotion = await self.promotion_service.get_promotion(booking.promo_id)

            new_promotion: Promotion | None = None
            promo_id = booking.promo_id
            if payload.remove_promo:
                promo_id, discount_amount = None, ZERO
                changes["promo"] = None
            elif payload.promo_code and (
                current_promotion is None or current_promotion.code != payload.promo_code.strip().upper()
            ):
                new_promotion, discount_amount = await self._quote_promotion(
                    payload.promo_code,
                    booking.customer_id,
                    total_before_discount,
                    booking.id,
                    payload.promo_code_required,
                )
                promo_id = new_promotion.id if new_promotion is not None else None
                changes["promo"] = new_promotion.code if new_promotion is not None else None
            elif current_promotion is not None:
                discount_amount = self._repriced_discount(current_promotion, booking, total_before_discount)
            else:
                promo_id, discount_amount = None, ZERO

            await self.booking_repository.update_booking(
                booking,
                total_before_discount=total_before_discount,
                discount_amount=discount_amount,
                final_amount=max(ZERO, total_before_discount - discount_amount),
                promo_id=promo_id,
                notes=payload.notes if payload.notes is not None else booking.notes,
            )
            if new_promotion is not None:
                await self._commit_promotion(booking, new_promotion, payload.promo_code_required)

            await self.booking_repository.add_event(
                booking.id,
                BookingEventTypeEnum.UPDATED,
                details=changes,
                amount=booking.final_amount,
                actor_id=actor.id,
            )
        except (Exception, asyncio.CancelledError):
            await compensation.unwind()
            raise
        compensation.clear()

        logger.info("Booking %s updated: %s", booking.id, sorted(changes))
        return await self._load(booking.id)

    @staticmethod
    def _repriced_discount(promotion: Promotion, booking: Booking, subtotal: Decimal) -> Decimal:
        # The ledger already holds the previous discount, so repricing may only shrink it.
        previous = to_decimal(booking.discount_amount)
        try:
            discount = calculate_discount(promotion, subtotal)
        except PromotionBudgetExhaustedException:
            discount = previous
        return min(discount, previous, subtotal)

    async def confirm_booking(self, booking_id: UUID, actor: Actor | None = None) -> Booking:
        """Move pending booking to confirmed."""
        return await self._run("confirm", lambda: self._confirm_booking(booking_id, actor))

    async def _confirm_booking(self, booking_id: UUID, actor: Actor | None) -> Booking:
        self._ensure_staff(actor)
        booking = await self._load(booking_id)
        if booking.status != BookingStatusEnum.PENDING:
            raise InvalidStateException("Only pending bookings can be confirmed", status=str(booking.status))

        await self.booking_repository.update_booking(
            booking,
            status=BookingStatusEnum.CONFIRMED,
            confirmed_at=utc_now(),
        )
        await self.booking_repository.add_event(
            booking.id,
            BookingEventTypeEnum.CONFIRMED,
            actor_id=actor.id if actor is not None else None,
        )
        logger.info("Booking %s confirmed", booking.id)
        await self._notify_safely(
            booking.customer_id,
            NotificationKindEnum.CONFIRMATION,
            "Booking confirmed",
            "Your booking was confirmed by the studio. Please arrive on time.",
            booking.id,
        )
        return await self._load(booking.id)

    async def cancel_booking(self, booking_id: UUID, reason: str | None, actor: Actor) -> Booking:
        """Cancel booking and compute refund from its own policy snapshot."""
        return await self._run("cancel", lambda: self._cancel_booking(booking_id, reason, actor))

    async def _cancel_booking(self, booking_id: UUID, reason: str | None, actor: Actor) -> Booking:
        booking = await self._load(booking_id)
        self._ensure_access(booking, actor)
        if booking.status not in CANCELLABLE_STATUSES:
            raise InvalidStateException("Booking cannot be cancelled", status=str(booking.status))

        now = utc_now()
        snapshot = load_policy_snapshot(booking.policy_snapshot)
        refund = calculate_refund(snapshot.cancellation, booking.slot.start_at, now, booking.final_amount)

        await self.booking_repository.add_event(
            booking.id,
            BookingEventTypeEnum.CANCELLED,
            details={
                "refund_percentage": refund.refund_percentage,
                "tier": refund.tier.model_dump(mode="json") if refund.tier is not None else None,
                "hours_before_booking": refund.hours_before_booking,
                "reason": reason,
            },
            amount=refund.refund_amount,
            actor_id=actor.id,
        )
        await self.booking_repository.update_booking(
            booking,
            status=BookingStatusEnum.CANCELLED,
            cancelled_at=now,
            cancellation_reason=reason,
            original_amount=booking.final_amount,
            refund_amount=refund.refund_amount,
            net_amount=to_decimal(booking.final_amount) - refund.refund_amount,
        )
        await self.allocator.release(booking.schedule_id)
        await self._release_equipment_best_effort(booking)

        logger.info("Booking %s cancelled with %s%% refund", booking.id, refund.refund_percentage)
        await self._notify_safely(
            booking.customer_id,
            NotificationKindEnum.INFO,
            "Booking cancelled",
            f"Your booking was cancelled. Refund: {refund.refund_amount} ({refund.refund_percentage}%)",
            booking.id,
        )
        return await self._load(booking.id)

    async def mark_no_show(
        self,
        booking_id: UUID,
        check_in_at: datetime | None = None,
        actor: Actor | None = None,
    ) -> Booking:
        """Close a confirmed booking whose customer did not show up in time."""
        return await self._run("no_show", lambda: self._mark_no_show(booking_id, check_in_at, actor))

    async def _mark_no_show(self, booking_id: UUID, check_in_at: datetime | None, actor: Actor | None) -> Booking:
        self._ensure_staff(actor)
        booking = await self._load(booking_id)
        if booking.status != BookingStatusEnum.CONFIRMED:
            raise InvalidStateException("Only confirmed bookings can be marked as no-show", status=str(booking.status))

        snapshot = load_policy_snapshot(booking.policy_snapshot)
        previous_no_shows = await self.booking_repository.count_customer_no_shows(booking.customer_id, booking.id)
        charge = calculate_no_show_charge(
            snapshot.no_show,
            booking.slot.start_at,
            check_in_at,
            booking.final_amount,
            previous_no_shows,
        )

        await self.booking_repository.add_event(
            booking.id,
            BookingEventTypeEnum.NO_SHOW,
            details={
                "charge_type": charge.charge_type,
                "charge_percentage": charge.charge_percentage,
                "minutes_late": charge.minutes_late,
                "previous_no_show_count": charge.previous_no_show_count,
                "forgiven": charge.forgiven,
                "is_no_show": charge.is_no_show,
            },
            amount=charge.charge_amount,
            actor_id=actor.id if actor is not None else None,
        )
        await self.booking_repository.update_booking(
            booking,
            status=BookingStatusEnum.COMPLETED,
            original_amount=booking.final_amount,
            charge_amount=charge.charge_amount,
            net_amount=charge.charge_amount,
        )
        await self._release_equipment_best_effort(booking)

        logger.info("Booking %s marked no-show (%s)", booking.id, charge.charge_type)
        charge_text = (
            f"A no-show fee of {charge.charge_amount} applies."
            if charge.charge_amount > 0
            else "No no-show fee applies."
        )
        await self._notify_safely(
            booking.customer_id,
            NotificationKindEnum.WARNING,
            "No-show recorded",
            f"Your booking was marked as a no-show. {charge_text}",
            booking.id,
        )
        return await self._load(booking.id)

    async def check_in_booking(self, booking_id: UUID, actor: Actor | None = None) -> Booking:
        """Check customer in; repeated calls return the booking unchanged."""
        return await self._run("check_in", lambda: self._check_in_booking(booking_id, actor))

    async def _check_in_booking(self, booking_id: UUID, actor: Actor | None) -> Booking:
        self._ensure_staff(actor)
        booking = await self._load(booking_id)
        if booking.check_in_at is not None:
            return booking
        if booking.status != BookingStatusEnum.CONFIRMED:
            raise InvalidStateException("Only confirmed bookings can be checked in", status=str(booking.status))

        await self.booking_repository.update_booking(
            booking,
            status=BookingStatusEnum.CHECKED_IN,
            check_in_at=utc_now(),
        )
        await self.booking_repository.add_event(
            booking.id,
            BookingEventTypeEnum.CHECK_IN,
            actor_id=actor.id if actor is not None else None,
        )
        await self._notify_safely(
            booking.customer_id,
            NotificationKindEnum.INFO,
            "Checked in",
            f"You were checked in at {booking.check_in_at.isoformat()}",
            booking.id,
        )
        return await self._load(booking.id)

    async def check_out_booking(self, booking_id: UUID, actor: Actor | None = None) -> Booking:
        """Complete a checked-in booking and return its equipment."""
        return await self._run("check_out", lambda: self._check_out_booking(booking_id, actor))

    async def _check_out_booking(self, booking_id: UUID, actor: Actor | None) -> Booking:
        self._ensure_staff(actor)
        booking = await self._load(booking_id)
        if booking.check_out_at is not None:
            return booking
        if booking.status != BookingStatusEnum.CHECKED_IN:
            raise InvalidStateException("Only checked-in bookings can be checked out", status=str(booking.status))

        await self.booking_repository.update_booking(
            booking,
            status=BookingStatusEnum.COMPLETED,
            check_out_at=utc_now(),
        )
        await self.booking_repository.add_event(
            booking.id,
            BookingEventTypeEnum.CHECK_OUT,
            actor_id=actor.id if actor is not None else None,
        )
        await self._release_equipment_best_effort(booking)
        await self._notify_safely(
            booking.customer_id,
            NotificationKindEnum.INFO,
            "Checked out",
            f"You checked out at {booking.check_out_at.isoformat()}",
            booking.id,
        )
        return await self._load(booking.id)

    async def get_max_extension(self, booking_id: UUID, actor: Actor) -> ExtensionInfo:
        """How far the booking's slot can still be extended."""
        booking = await self._load(booking_id)
        self._ensure_access(booking, actor)
        return await self._extension_info(booking)

    async def _extension_info(self, booking: Booking) -> ExtensionInfo:
        current_end = ensure_utc(booking.slot.end_at)
        if booking.status not in EXTENDABLE_STATUSES:
            reason = (
                "Confirm the booking before extending it"
                if booking.status == BookingStatusEnum.PENDING
                else "Booking has already ended"
            )
            return ExtensionInfo(False, current_end, None, 0, reason)

        max_end = await self.allocator.max_extension_end(booking.slot)
        if max_end <= current_end:
            return ExtensionInfo(False, current_end, current_end, 0, "Studio is booked right after this slot")
        available_minutes = int((max_end - current_end).total_seconds() // 60)
        return ExtensionInfo(True, current_end, max_end, available_minutes)

    async def extend_booking(self, booking_id: UUID, new_end_at: datetime, actor: Actor) -> ExtensionResult:
        """Stretch slot end and charge the base rate for the extra time."""
        return await self._run("extend", lambda: self._extend_booking(booking_id, new_end_at, actor))

    async def _extend_booking(self, booking_id: UUID, new_end_at: datetime, actor: Actor) -> ExtensionResult:
        booking = await self._load(booking_id)
        self._ensure_access(booking, actor)
        if booking.status not in EXTENDABLE_STATUSES:
            raise InvalidStateException("Only confirmed or checked-in bookings can be extended")

        slot = booking.slot
        previous_end = ensure_utc(slot.end_at)
        new_end_at = ensure_utc(new_end_at)
        if new_end_at <= previous_end:
            raise BusinessRuleException("New end time must be after the current end time")

        info = await self._extension_info(booking)
        if not info.can_extend:
            raise ConflictException(info.reason or "Booking cannot be extended")
        if new_end_at > info.max_end_at:
            raise ConflictException(
                "Requested end time exceeds the latest possible end",
                max_end_at=info.max_end_at.isoformat(),
            )

        base_rate = await self.catalog_repository.get_base_rate(slot.studio_id)
        if base_rate is None:
            raise NotFoundException("Studio not found")
        additional_hours = duration_hours(previous_end, new_end_at)
        additional_amount = round_whole(additional_hours * to_decimal(base_rate))

        await self.allocator.reschedule(slot.id, slot.start_at, new_end_at)

        # Extra time is charged at the base rate; the original discount stays as is.
        total_before_discount = to_decimal(booking.total_before_discount) + additional_amount
        await self.booking_repository.update_booking(
            booking,
            total_before_discount=total_before_discount,
            final_amount=max(ZERO, total_before_discount - to_decimal(booking.discount_amount)),
        )
        await self.booking_repository.add_event(
            booking.id,
            BookingEventTypeEnum.EXTENDED,
            details={
                "previous_end_at": previous_end.isoformat(),
                "new_end_at": new_end_at.isoformat(),
                "additional_hours": str(additional_hours),
                "additional_amount": str(additional_amount),
            },
            amount=additional_amount,
            actor_id=actor.id,
        )
        logger.info("Booking %s extended to %s (+%s)", booking.id, new_end_at.isoformat(), additional_amount)
        await self._notify_safely(
            booking.customer_id,
            NotificationKindEnum.INFO,
            "Booking extended",
            f"Your booking was extended by {additional_hours} hours. Additional amount: {additional_amount}",
            booking.id,
        )
        return ExtensionResult(
            booking=await self._load(booking.id),
            additional_amount=additional_amount,
            previous_end_at=previous_end,
            new_end_at=new_end_at,
        )

    async def get_booking(self, booking_id: UUID, actor: Actor) -> Booking:
        booking = await self._load(booking_id)
        self._ensure_access(booking, actor)
        return booking

    async def list_bookings(
        self,
        actor: Actor,
        status: BookingStatusEnum | None,
        limit: int,
        offset: int,
        customer_id: UUID | None = None,
        window: TimeWindow | None = None,
    ) -> tuple[list[Booking], int]:
        """Customers see their own bookings; staff may filter by customer."""
        if not actor.is_staff:
            customer_id = actor.id
        return await self.booking_repository.list_bookings(customer_id, status, window or TimeWindow(), limit, offset)


def build_booking_service(session: AsyncSession) -> BookingService:
    """Wire the orchestrator and its collaborators onto one session."""
    return BookingService(
        booking_repository=BookingRepository(session),
        allocator=ScheduleAllocator(SchedulingRepository(session)),
        equipment_ledger=EquipmentLedger(EquipmentRepository(session)),
        promotion_service=PromotionService(PromotionRepository(session)),
        policy_service=PolicyService(PolicyRepository(session)),
        catalog_repository=CatalogRepository(session),
        notifications_service=NotificationsService(NotificationsRepository(session)),
    )


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return build_booking_service(session)
