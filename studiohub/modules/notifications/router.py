"""Notifications API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from studiohub.core.security import get_current_actor
from studiohub.modules.notifications.schemas import NotificationRead, NotificationUpdateStatus
from studiohub.modules.notifications.service import NotificationsService, get_notifications_service
from studiohub.shared.listing import ListParams, Page, build_page, get_list_params

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.patch("/{notification_id}/status", response_model=NotificationRead)
async def update_notification_status(
    notification_id: UUID,
    payload: NotificationUpdateStatus,
    service: NotificationsService = Depends(get_notifications_service),
    current_actor=Depends(get_current_actor),
) -> NotificationRead:
    """Update notification status."""
    notification = await service.update_status(notification_id, payload.status, current_actor)
    return NotificationRead.model_validate(notification)


@router.get("/my", response_model=Page[NotificationRead])
async def list_my_notifications(
    params: ListParams = Depends(get_list_params),
    service: NotificationsService = Depends(get_notifications_service),
    current_actor=Depends(get_current_actor),
) -> Page[NotificationRead]:
    """List notifications for current user."""
    items, total = await service.list_my_notifications(current_actor, params.limit, params.offset)
    serialized = [NotificationRead.model_validate(item) for item in items]
    return build_page(serialized, total, params)
