"""
Edge authentication and ownership checks.

HTTP Basic is terminated here: the username is the caller's email and the
password is the shared gateway secret. Roles are never taken from the request;
services read them from the user record.
"""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from storefront.core.config import get_settings
from storefront.core.exceptions import ErrorCode, ForbiddenError

security = HTTPBasic()


def get_current_user_email(credentials: HTTPBasicCredentials = Depends(security)) -> str:
    """
    Simple HTTP Basic Auth - the password must match BASIC_AUTH_PASSWORD.
    """
    settings = get_settings()
    expected_password = settings.BASIC_AUTH_PASSWORD

    # If no password is set in production, refuse to serve
    if not expected_password and settings.ENVIRONMENT == "production":
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Basic auth password not configured"
        )

    # In development, allow a default password
    if not expected_password:
        expected_password = "changeme"

    is_correct_password = secrets.compare_digest(
        credentials.password.encode("utf8"),
        expected_password.encode("utf8")
    )

    if not credentials.username or not is_correct_password:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username.strip().lower()


def ensure_owner(owner_id: Optional[int], user_id: int, action: str = "access") -> None:
    """Raise ForbiddenError unless ``user_id`` owns the entity.

    Applied before every read or mutation of a user-scoped entity (orders,
    notifications, subscriptions, seller products).
    """
    if owner_id is None or owner_id != user_id:
        raise ForbiddenError(
            f"You can only {action} your own resources",
            error_code=ErrorCode.ACCESS_DENIED,
        )
