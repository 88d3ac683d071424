# tests/test_routes/test_product_routes.py
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from storefront.core.exceptions import ForbiddenError, InvalidStateTransitionError
from storefront.core.security import get_current_user_email
from storefront.dependencies import get_db
from storefront.main import app
from storefront.services.product_service import ProductService
from storefront.services.seller_service import SellerService
from tests.mocks.factories import make_product, make_seller


async def override_get_db():
    yield AsyncMock()


@pytest.fixture
def client():
    app.dependency_overrides[get_current_user_email] = lambda: "seller@example.com"
    app.dependency_overrides[get_db] = override_get_db
    # Unhandled errors are rendered by the app instead of re-raised into the test
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def test_create_product(mocker, client):
    create = mocker.patch.object(ProductService, "create_product", AsyncMock(return_value=make_product(id=9, stock=0)))

    response = client.post("/api/products", json={"name": "Linen Shirt", "price": "39000.00"})

    assert response.status_code == 201
    assert response.json()["id"] == 9
    email, data = create.call_args.args
    assert email == "seller@example.com"
    assert data.price == Decimal("39000.00")
    assert data.stock == 0


def test_create_product_with_zero_price_is_a_validation_error(mocker, client):
    create = mocker.patch.object(ProductService, "create_product", AsyncMock())

    response = client.post("/api/products", json={"name": "Freebie", "price": "0"})

    assert response.status_code == 422
    create.assert_not_awaited()


def test_my_products_is_not_read_as_a_product_id(mocker, client):
    mocker.patch.object(ProductService, "list_my_products", AsyncMock(return_value=[make_product(id=1), make_product(id=2)]))

    response = client.get("/api/products/my")

    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == [1, 2]


def test_delete_product_returns_204(mocker, client):
    delete = mocker.patch.object(ProductService, "delete_product", AsyncMock(return_value=None))

    response = client.delete("/api/products/5")

    assert response.status_code == 204
    delete.assert_awaited_once_with("seller@example.com", 5)


def test_delete_another_sellers_product_is_403(mocker, client):
    mocker.patch.object(ProductService, "delete_product", AsyncMock(side_effect=ForbiddenError()))

    response = client.delete("/api/products/5")

    assert response.status_code == 403
    assert response.json()["code"] == "ACCESS_DENIED"


def test_get_and_update_my_seller_profile(mocker, client):
    seller = make_seller(id=4)
    mocker.patch.object(SellerService, "get_my_seller", AsyncMock(return_value=seller))
    update = mocker.patch.object(SellerService, "update_my_seller", AsyncMock(return_value=seller))

    assert client.get("/api/sellers/me").json()["business_name"] == "Test Shop"

    response = client.put("/api/sellers/me", json={"min_stock_threshold": 5})

    assert response.status_code == 200
    assert update.call_args.args[1].min_stock_threshold == 5
    assert update.call_args.args[1].business_name is None


def test_unregister_seller_with_products_is_422(mocker, client):
    mocker.patch.object(
        SellerService, "unregister_seller",
        AsyncMock(side_effect=InvalidStateTransitionError("Seller still owns products", details={"seller_id": 4})),
    )

    response = client.delete("/api/sellers/me")

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "INVALID_STATE_TRANSITION"
    assert body["details"] == {"seller_id": 4}


def test_database_error_renders_error_body(mocker, client):
    mocker.patch.object(
        SellerService, "unregister_seller",
        AsyncMock(side_effect=IntegrityError("DELETE FROM sellers", {}, Exception("not null violation"))),
    )

    response = client.delete("/api/sellers/me")

    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "DATABASE_ERROR"
    assert body["path"] == "/api/sellers/me"
    assert "not null" not in body["message"]


def test_unexpected_error_renders_error_body(mocker, client):
    mocker.patch.object(ProductService, "get_product", AsyncMock(side_effect=RuntimeError("boom")))

    response = client.get("/api/products/1")

    assert response.status_code == 500
    body = response.json()
    assert body["status"] == 500
    assert body["code"] == "INTERNAL_SERVER_ERROR"
    assert body["path"] == "/api/products/1"
    assert "timestamp" in body
