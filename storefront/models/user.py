# storefront/models/user.py
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Boolean, Numeric, ForeignKey, text, TIMESTAMP
from sqlalchemy.dialects.postgresql import ENUM
from sqlalchemy.orm import relationship

from storefront.core.enums import UserRole
from storefront.core.exceptions import InvalidStateTransitionError
from storefront.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(ENUM(UserRole, name='userrole', create_type=True), nullable=False, default=UserRole.USER, index=True)
    total_purchase_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False
    )
    updated_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        onupdate=text("timezone('utc', now())"),
        nullable=False
    )

    seller = relationship("Seller", back_populates="user", uselist=False)

    def promote_to_seller(self) -> None:
        """USER -> SELLER. Admins keep their role and may also own a seller profile."""
        if self.role == UserRole.SELLER:
            raise InvalidStateTransitionError("User is already registered as a seller")
        if self.role == UserRole.USER:
            self.role = UserRole.SELLER

    def demote_to_user(self) -> None:
        """SELLER -> USER, run when the seller profile is removed."""
        if self.role == UserRole.USER:
            raise InvalidStateTransitionError("User is not registered as a seller")
        if self.role == UserRole.SELLER:
            self.role = UserRole.USER

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email} role={self.role}>"


class Seller(Base):
    __tablename__ = "sellers"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    business_name = Column(String(255), nullable=False)
    business_number = Column(String(20), unique=True, nullable=False)
    min_stock_threshold = Column(Integer, nullable=False, default=10)

    created_at = Column(
        TIMESTAMP(timezone=False),
        server_default=text("timezone('utc', now())"),
        nullable=False
    )

    user = relationship("User", back_populates="seller")
    products = relationship("Product", back_populates="seller")

    def __repr__(self) -> str:
        return f"<Seller id={self.id} user={self.user_id} business={self.business_name}>"
