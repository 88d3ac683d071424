# tests/test_routes/test_restock_routes.py
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from storefront.core.exceptions import DuplicateResourceError, ErrorCode
from storefront.core.security import get_current_user_email
from storefront.dependencies import get_cache, get_db
from storefront.main import app
from storefront.models import RestockSubscription
from storefront.schemas.seller import RankingEntry, SellerRanking
from storefront.services.restock_service import RestockService
from storefront.services.seller_service import SellerService
from tests.mocks.mock_cache import InMemoryCache


async def override_get_db():
    yield AsyncMock()


@pytest.fixture
def client():
    cache = InMemoryCache()
    app.dependency_overrides[get_current_user_email] = lambda: "buyer@example.com"
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_subscribe(mocker, client):
    subscription = RestockSubscription(id=1, product_id=3, user_id=10, notified=False)
    mocker.patch.object(RestockService, "subscribe", AsyncMock(return_value=subscription))

    response = client.post("/api/restock-subscriptions", json={"product_id": 3})

    assert response.status_code == 201
    assert response.json()["notified"] is False


def test_duplicate_subscription_is_409(mocker, client):
    mocker.patch.object(
        RestockService, "subscribe",
        AsyncMock(side_effect=DuplicateResourceError(error_code=ErrorCode.DUPLICATE_RESTOCK_SUBSCRIPTION)),
    )

    response = client.post("/api/restock-subscriptions", json={"product_id": 3})

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_RESTOCK_SUBSCRIPTION"


def test_unsubscribe_returns_204(mocker, client):
    unsubscribe = mocker.patch.object(RestockService, "unsubscribe", AsyncMock(return_value=None))

    response = client.delete("/api/restock-subscriptions/1")

    assert response.status_code == 204
    unsubscribe.assert_awaited_once_with("buyer@example.com", 1)


def test_seller_ranking_route(mocker, client):
    ranking = SellerRanking(seller_id=4, entries=[RankingEntry(product_id=10, units_sold=5, revenue="50000.00")])
    mocker.patch.object(SellerService, "get_ranking", AsyncMock(return_value=ranking))

    response = client.get("/api/sellers/me/ranking")

    assert response.status_code == 200
    assert response.json()["entries"][0]["units_sold"] == 5
