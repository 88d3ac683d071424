from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.security import get_current_user_email
from storefront.core.utils import model_to_schema, models_to_schemas
from storefront.dependencies import get_db
from storefront.schemas.notification import NotificationCreate, NotificationRead, UnreadCount
from storefront.services.notification_service import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=List[NotificationRead])
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    notifications = await NotificationService(db).list_mine(email, limit=limit, offset=offset)
    return await models_to_schemas(notifications, NotificationRead)


@router.get("/unread", response_model=List[NotificationRead])
async def list_unread_notifications(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    notifications = await NotificationService(db).list_mine(email, unread_only=True, limit=limit, offset=offset)
    return await models_to_schemas(notifications, NotificationRead)


@router.get("/unread-count", response_model=UnreadCount)
async def unread_count(
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCount(unread=await NotificationService(db).unread_count(email))


@router.patch("/read-all")
async def mark_all_as_read(
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    updated = await NotificationService(db).mark_all_as_read(email)
    return {"status": "success", "updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_as_read(
    notification_id: int,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    notification = await NotificationService(db).mark_as_read(email, notification_id)
    return await model_to_schema(notification, NotificationRead)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: int,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    await NotificationService(db).delete_notification(email, notification_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    """Admin-issued notification to a single user."""
    notification = await NotificationService(db).create_notification(email, data)
    return await model_to_schema(notification, NotificationRead)
