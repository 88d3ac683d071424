from datetime import datetime
from typing import Optional

from pydantic import Field

from storefront.core.enums import NotificationType
from storefront.schemas.base import BaseSchema


class NotificationCreate(BaseSchema):
    """Admin-issued notification."""
    user_id: int
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)


class NotificationRead(BaseSchema):
    id: int
    user_id: int
    type: NotificationType
    title: str
    content: str
    is_read: bool
    created_at: Optional[datetime] = None


class UnreadCount(BaseSchema):
    unread: int
