# storefront/models/restock.py
from sqlalchemy import Column, Integer, Boolean, ForeignKey, Index, text, TIMESTAMP
from sqlalchemy.orm import relationship

from storefront.database import Base


class RestockSubscription(Base):
    """
    A user's request to be told when a sold-out product comes back.

    Lifecycle is one-way: notified=False -> notified=True. A notified record is
    never reset; the next restock cycle needs a fresh subscription, so only
    the pending (notified=False) record is unique per (product, user).
    """
    __tablename__ = "restock_subscriptions"
    __table_args__ = (
        Index(
            "uq_restock_subscriptions_pending",
            "product_id",
            "user_id",
            unique=True,
            postgresql_where=text("notified = false"),
        ),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    notified = Column(Boolean, nullable=False, default=False)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False
    )

    product = relationship("Product")

    def __repr__(self) -> str:
        return (f"<RestockSubscription id={self.id} product={self.product_id} "
                f"user={self.user_id} notified={self.notified}>")
