# tests/unit/services/test_notification_service.py
from unittest.mock import AsyncMock, MagicMock

import pytest

from storefront.core.enums import NotificationType, UserRole
from storefront.core.exceptions import ErrorCode, ForbiddenError, ResourceNotFoundError
from storefront.models import Notification
from storefront.schemas.notification import NotificationCreate
from storefront.services.notification_service import NotificationService
from tests.mocks.factories import make_user


def notification(id=1, user_id=1, is_read=False):
    return Notification(id=id, user_id=user_id, type=NotificationType.RESTOCK, title="t", content="c", is_read=is_read)


@pytest.fixture
def owner(mocker):
    user = make_user(id=1)
    mocker.patch("storefront.services.notification_service.get_user_by_email", AsyncMock(return_value=user))
    return user


@pytest.mark.asyncio
async def test_mark_as_read(mock_session, owner):
    item = notification(user_id=owner.id)
    mock_session.get.return_value = item

    result = await NotificationService(mock_session).mark_as_read("buyer@example.com", item.id)

    assert result.is_read is True
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_mark_as_read_on_someone_elses_notification_is_forbidden(mock_session, owner):
    item = notification(user_id=owner.id + 1)
    mock_session.get.return_value = item

    with pytest.raises(ForbiddenError):
        await NotificationService(mock_session).mark_as_read("buyer@example.com", item.id)

    assert item.is_read is False
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_delete_missing_notification(mock_session, owner):
    mock_session.get.return_value = None

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await NotificationService(mock_session).delete_notification("buyer@example.com", 9)

    assert exc_info.value.error_code == ErrorCode.NOTIFICATION_NOT_FOUND


@pytest.mark.asyncio
async def test_mark_all_as_read_returns_updated_count(mock_session, owner):
    mock_session.execute.return_value = MagicMock(rowcount=3)

    updated = await NotificationService(mock_session).mark_all_as_read("buyer@example.com")

    assert updated == 3
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_unread_count(mock_session, owner):
    mock_session.scalar.return_value = 4

    assert await NotificationService(mock_session).unread_count("buyer@example.com") == 4


@pytest.mark.asyncio
async def test_create_notification_requires_admin(mock_session, owner):
    data = NotificationCreate(user_id=2, title="Hello", content="World")

    with pytest.raises(ForbiddenError):
        await NotificationService(mock_session).create_notification("buyer@example.com", data)

    mock_session.add.assert_not_called()


@pytest.mark.asyncio
async def test_admin_creates_notification(mocker, mock_session):
    admin = make_user(id=5, email="admin@example.com", role=UserRole.ADMIN)
    mocker.patch("storefront.services.notification_service.get_user_by_email", AsyncMock(return_value=admin))
    mock_session.get.return_value = make_user(id=2)

    created = await NotificationService(mock_session).create_notification(
        "admin@example.com", NotificationCreate(user_id=2, title="Hello", content="World")
    )

    assert created.user_id == 2
    assert created.type == NotificationType.SYSTEM
    assert created.is_read is False
    mock_session.add.assert_called_once_with(created)
