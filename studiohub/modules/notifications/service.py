"""Notifications business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studiohub.core.database import get_db_session
from studiohub.core.enums import NotificationKindEnum, NotificationStatusEnum
from studiohub.core.security import Actor
from studiohub.modules.notifications.models import Notification
from studiohub.modules.notifications.repository import NotificationsRepository
from studiohub.shared.exceptions import NotFoundException, UnauthorizedException
from studiohub.shared.utils import utc_now


class NotificationsService:
    """Notification sink used by the booking core."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def notify(
        self,
        user_id: UUID,
        kind: NotificationKindEnum,
        title: str,
        body: str,
        booking_id: UUID | None = None,
    ) -> Notification:
        """Queue a notification inside a savepoint.

        A failed insert rolls back only the savepoint, leaving the caller's
        transaction usable.
        """
        async with self.repository.savepoint():
            return await self.repository.create_notification(
                user_id=user_id,
                kind=kind,
                title=title,
                body=body,
                booking_id=booking_id,
            )

    async def update_status(self, notification_id: UUID, status: NotificationStatusEnum, actor: Actor) -> Notification:
        """Update notification status."""
        notification = await self.repository.get_notification_by_id(notification_id)
        if notification is None:
            raise NotFoundException("Notification not found")

        if not actor.is_staff and notification.user_id != actor.id:
            raise UnauthorizedException("Only staff or recipient can update notification")

        sent_at = utc_now() if status == NotificationStatusEnum.SENT else None
        return await self.repository.set_status(notification, status, sent_at)

    async def list_my_notifications(self, actor: Actor, limit: int, offset: int) -> tuple[list[Notification], int]:
        """List notifications for current user."""
        return await self.repository.list_notifications_for_user(actor.id, limit, offset)


async def get_notifications_service(session: AsyncSession = Depends(get_db_session)) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(NotificationsRepository(session))
