# storefront/models/notification.py
from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, text, TIMESTAMP
from sqlalchemy.dialects.postgresql import ENUM

from storefront.core.enums import NotificationType
from storefront.database import Base


class Notification(Base):
    """
    In-app notification for a single user.

    Written by the restock pipeline, the reorder alert job and admins; only
    the owning user may mark it read or delete it.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(ENUM(NotificationType, name='notificationtype', create_type=True), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False,
        index=True
    )

    def __repr__(self):
        return f"<Notification {self.type} user={self.user_id} read={self.is_read}>"
