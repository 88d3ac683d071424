"""
Lookups shared by every user-scoped service.

The authentication layer hands the core an email; these helpers turn it into
a User (or Seller) row and enforce role requirements.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.enums import UserRole
from storefront.core.exceptions import ErrorCode, ForbiddenError, ResourceNotFoundError
from storefront.models.user import User, Seller


async def get_user_by_email(db: AsyncSession, email: str, for_update: bool = False) -> User:
    query = select(User).where(User.email == email)
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise ResourceNotFoundError(error_code=ErrorCode.USER_NOT_FOUND, details={"email": email})
    return user


async def find_seller_by_user_id(db: AsyncSession, user_id: int) -> Optional[Seller]:
    result = await db.execute(select(Seller).where(Seller.user_id == user_id))
    return result.scalar_one_or_none()


async def get_seller_for_user(db: AsyncSession, user: User) -> Seller:
    seller = await find_seller_by_user_id(db, user.id)
    if seller is None:
        raise ResourceNotFoundError(error_code=ErrorCode.SELLER_NOT_FOUND, details={"user_id": user.id})
    return seller


def require_role(user: User, *roles: UserRole) -> None:
    if user.role not in roles:
        raise ForbiddenError(
            f"This operation requires one of the roles: {', '.join(r.value for r in roles)}",
            error_code=ErrorCode.FORBIDDEN,
        )
