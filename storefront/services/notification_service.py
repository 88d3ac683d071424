"""In-app notifications: owner reads, read flags, deletion, and admin-issued messages."""

import logging
from typing import List

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.enums import UserRole
from storefront.core.exceptions import ErrorCode, ResourceNotFoundError
from storefront.core.security import ensure_owner
from storefront.models.notification import Notification
from storefront.models.user import User
from storefront.schemas.notification import NotificationCreate
from storefront.services.user_service import get_user_by_email, require_role

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_owned(self, email: str, notification_id: int) -> Notification:
        user = await get_user_by_email(self.db, email)
        notification = await self.db.get(Notification, notification_id)
        if notification is None:
            raise ResourceNotFoundError(
                error_code=ErrorCode.NOTIFICATION_NOT_FOUND,
                details={"notification_id": notification_id},
            )
        ensure_owner(notification.user_id, user.id, "modify")
        return notification

    async def create_notification(self, email: str, data: NotificationCreate) -> Notification:
        admin = await get_user_by_email(self.db, email)
        require_role(admin, UserRole.ADMIN)

        if await self.db.get(User, data.user_id) is None:
            raise ResourceNotFoundError(error_code=ErrorCode.USER_NOT_FOUND, details={"user_id": data.user_id})

        notification = Notification(
            user_id=data.user_id,
            type=data.type,
            title=data.title,
            content=data.content,
            is_read=False,
        )
        self.db.add(notification)
        await self.db.commit()
        await self.db.refresh(notification)
        logger.info(f"Notification {notification.id} created for user {data.user_id} by {email}")
        return notification

    async def list_mine(self, email: str, unread_only: bool = False, limit: int = 20, offset: int = 0) -> List[Notification]:
        user = await get_user_by_email(self.db, email)
        query = select(Notification).where(Notification.user_id == user.id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())

    async def unread_count(self, email: str) -> int:
        user = await get_user_by_email(self.db, email)
        count = await self.db.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user.id,
                Notification.is_read.is_(False),
            )
        )
        return int(count or 0)

    async def mark_as_read(self, email: str, notification_id: int) -> Notification:
        notification = await self._get_owned(email, notification_id)
        notification.is_read = True
        await self.db.commit()
        return notification

    async def mark_all_as_read(self, email: str) -> int:
        user = await get_user_by_email(self.db, email)
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user.id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def delete_notification(self, email: str, notification_id: int) -> None:
        notification = await self._get_owned(email, notification_id)
        await self.db.delete(notification)
        await self.db.commit()
