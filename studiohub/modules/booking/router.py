"""Booking API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from studiohub.core.enums import BookingStatusEnum, RoleEnum
from studiohub.core.security import Actor, get_current_actor, require_roles
from studiohub.modules.booking.schemas import (
    BookingCancelRequest,
    BookingCreate,
    BookingExtendRequest,
    BookingExtensionRead,
    BookingRead,
    BookingUpdate,
    ExtensionInfoRead,
    NoShowRequest,
)
from studiohub.modules.booking.service import BookingService, get_booking_service
from studiohub.shared.listing import ListParams, Page, TimeWindow, build_page, get_list_params, get_time_window

router = APIRouter(prefix="/booking", tags=["booking"])

require_staff = require_roles(RoleEnum.STAFF, RoleEnum.ADMIN)


@router.post("", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    """Create booking in PENDING state."""
    booking = await service.create_booking(payload, current_actor)
    return BookingRead.model_validate(booking)


@router.get("", response_model=Page[BookingRead])
async def list_bookings(
    booking_status: BookingStatusEnum | None = Query(default=None, alias="status"),
    customer_id: UUID | None = Query(default=None),
    window: TimeWindow = Depends(get_time_window),
    params: ListParams = Depends(get_list_params),
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> Page[BookingRead]:
    """List bookings visible to current actor, optionally by slot start window."""
    items, total = await service.list_bookings(
        current_actor,
        booking_status,
        params.limit,
        params.offset,
        customer_id=customer_id,
        window=window,
    )
    serialized = [BookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, params, window)


@router.get("/{booking_id}", response_model=BookingRead)
async def get_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    booking = await service.get_booking(booking_id, current_actor)
    return BookingRead.model_validate(booking)


@router.patch("/{booking_id}", response_model=BookingRead)
async def update_booking(
    booking_id: UUID,
    payload: BookingUpdate,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    """Update window, add-ons or promotion of a pending booking."""
    booking = await service.update_booking(booking_id, payload, current_actor)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/confirm", response_model=BookingRead)
async def confirm_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(require_staff),
) -> BookingRead:
    """Confirm booking from PENDING to CONFIRMED."""
    booking = await service.confirm_booking(booking_id, current_actor)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingRead)
async def cancel_booking(
    booking_id: UUID,
    payload: BookingCancelRequest,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> BookingRead:
    """Cancel booking and apply refund policy snapshot."""
    booking = await service.cancel_booking(booking_id, payload.reason, current_actor)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/no-show", response_model=BookingRead)
async def mark_no_show(
    booking_id: UUID,
    payload: NoShowRequest,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(require_staff),
) -> BookingRead:
    """Record no-show and apply no-show policy snapshot."""
    booking = await service.mark_no_show(booking_id, payload.check_in_at, current_actor)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/check-in", response_model=BookingRead)
async def check_in_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(require_staff),
) -> BookingRead:
    booking = await service.check_in_booking(booking_id, current_actor)
    return BookingRead.model_validate(booking)


@router.post("/{booking_id}/check-out", response_model=BookingRead)
async def check_out_booking(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(require_staff),
) -> BookingRead:
    booking = await service.check_out_booking(booking_id, current_actor)
    return BookingRead.model_validate(booking)


@router.get("/{booking_id}/extension", response_model=ExtensionInfoRead)
async def get_max_extension(
    booking_id: UUID,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> ExtensionInfoRead:
    """Return the latest end time the booking can be extended to."""
    info = await service.get_max_extension(booking_id, current_actor)
    return ExtensionInfoRead.model_validate(info)


@router.post("/{booking_id}/extend", response_model=BookingExtensionRead)
async def extend_booking(
    booking_id: UUID,
    payload: BookingExtendRequest,
    service: BookingService = Depends(get_booking_service),
    current_actor: Actor = Depends(get_current_actor),
) -> BookingExtensionRead:
    """Extend booking end time within the free gap after it."""
    result = await service.extend_booking(booking_id, payload.new_end_at, current_actor)
    return BookingExtensionRead.model_validate(result)
