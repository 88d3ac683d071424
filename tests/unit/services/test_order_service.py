# tests/unit/services/test_order_service.py
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from storefront.core.enums import OrderStatus, UserRole
from storefront.core.exceptions import (
    ErrorCode,
    ForbiddenError,
    InsufficientStockError,
    InvalidOrderStatusError,
    InvalidStateTransitionError,
    ResourceNotFoundError,
)
from storefront.schemas.order import OrderCreate, OrderItemRequest, OrderUpdate
from storefront.services.order_service import OrderService, check_availability, generate_order_number
from tests.mocks.factories import make_order, make_product, make_user


def order_request(*lines, coupon_id=None):
    return OrderCreate(
        items=[OrderItemRequest(product_id=pid, quantity=qty) for pid, qty in lines],
        recipient_name="Kim",
        recipient_phone="010-0000-0000",
        address="1 Main St",
        coupon_id=coupon_id,
    )


@pytest.fixture
def buyer(mocker):
    user = make_user(id=1, total=Decimal("1000.00"))
    mocker.patch("storefront.services.order_service.get_user_by_email", AsyncMock(return_value=user))
    return user


@pytest.fixture
def publisher():
    return MagicMock()


# --- generate_order_number / check_availability ---

def test_generate_order_number_format():
    number = generate_order_number()

    prefix, stamp, suffix = number.split("-")
    assert prefix == "ORD"
    assert len(stamp) == 14 and stamp.isdigit()
    assert len(suffix) == 8


def test_check_availability_counts_repeated_products_against_remaining_stock():
    products = {1: make_product(id=1, stock=5)}
    items = [OrderItemRequest(product_id=1, quantity=3), OrderItemRequest(product_id=1, quantity=3)]

    with pytest.raises(InsufficientStockError) as exc_info:
        check_availability(items, products)

    assert exc_info.value.details["requested"] == 3
    assert exc_info.value.details["available"] == 2


# --- create_order ---

@pytest.mark.asyncio
async def test_create_order_computes_totals_and_decrements_stock(mocker, mock_session, buyer, publisher):
    # 1. Arrange
    product_a = make_product(id=1, seller_id=7, price="10000.00", stock=10, sales_count=4)
    product_b = make_product(id=2, seller_id=8, price="5500.50", stock=1)
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: product_a, 2: product_b}))

    # 2. Act
    service = OrderService(db=mock_session, publisher=publisher)
    order = await service.create_order("buyer@example.com", order_request((1, 2), (2, 1)))

    # 3. Assert
    assert order.total_amount == Decimal("25500.50")
    assert order.final_amount == order.total_amount
    assert order.status == OrderStatus.PENDING
    assert order.order_number.startswith("ORD-")

    assert [item.subtotal for item in order.items] == [Decimal("20000.00"), Decimal("5500.50")]
    assert order.items[0].product_name == product_a.name
    assert order.items[1].seller_id == 8

    assert (product_a.stock, product_a.sales_count) == (8, 6)
    assert (product_b.stock, product_b.sales_count) == (0, 1)
    assert buyer.total_purchase_amount == Decimal("26500.50")

    mock_session.commit.assert_awaited_once()
    mock_session.rollback.assert_not_awaited()

    published = list(publisher.publish_changes.call_args.args[0])
    assert [(c.product_id, c.previous_stock, c.current_stock) for c in published] == [(1, 10, 8), (2, 1, 0)]


@pytest.mark.asyncio
async def test_create_order_insufficient_stock_leaves_everything_untouched(mocker, mock_session, buyer, publisher):
    product_a = make_product(id=1, stock=10)
    product_b = make_product(id=2, name="Scarce", stock=1)
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: product_a, 2: product_b}))

    service = OrderService(db=mock_session, publisher=publisher)
    with pytest.raises(InsufficientStockError) as exc_info:
        await service.create_order("buyer@example.com", order_request((1, 2), (2, 2)))

    assert exc_info.value.status_code == 409
    assert exc_info.value.details == {"product_id": 2, "product_name": "Scarce", "requested": 2, "available": 1}
    assert product_a.stock == 10
    assert product_b.stock == 1
    assert buyer.total_purchase_amount == Decimal("1000.00")
    mock_session.add.assert_not_called()
    mock_session.commit.assert_not_awaited()
    mock_session.rollback.assert_awaited_once()
    publisher.publish_changes.assert_not_called()


@pytest.mark.asyncio
async def test_create_order_unknown_product(mocker, mock_session, buyer):
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={}))

    service = OrderService(db=mock_session)
    with pytest.raises(ResourceNotFoundError) as exc_info:
        await service.create_order("buyer@example.com", order_request((99, 1)))

    assert exc_info.value.error_code == ErrorCode.PRODUCT_NOT_FOUND
    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_order_retries_on_order_number_collision(mocker, mock_session, buyer):
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: make_product(id=1, stock=3)}))
    collision = IntegrityError(
        "INSERT INTO orders ...", {},
        Exception('duplicate key value violates unique constraint "orders_order_number_key"'),
    )
    mock_session.flush.side_effect = [collision, None]

    service = OrderService(db=mock_session)
    order = await service.create_order("buyer@example.com", order_request((1, 1)))

    assert mock_session.flush.await_count == 2
    assert mock_session.begin_nested.call_count == 2
    assert order.order_number.startswith("ORD-")
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_order_publish_failure_does_not_fail_the_order(mocker, mock_session, buyer, publisher):
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: make_product(id=1, stock=3)}))
    publisher.publish_changes.side_effect = RuntimeError("queue gone")

    service = OrderService(db=mock_session, publisher=publisher)
    order = await service.create_order("buyer@example.com", order_request((1, 1)))

    assert order.total_amount == Decimal("10000.00")
    mock_session.commit.assert_awaited_once()


# --- cancel_order ---

@pytest.mark.asyncio
async def test_cancel_order_restores_stock_sales_and_purchase_total(mocker, mock_session, buyer, publisher):
    # Arrange: an order that consumed 2 of product 1 and 1 of product 2
    order = make_order(user_id=buyer.id, status=OrderStatus.PAID, lines=[(1, 7, "10000.00", 2), (2, 8, "5500.50", 1)])
    product_a = make_product(id=1, stock=8, sales_count=6)
    product_b = make_product(id=2, stock=0, sales_count=1)
    buyer.total_purchase_amount = Decimal("26500.50")
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: product_a, 2: product_b}))

    # Act
    service = OrderService(db=mock_session, publisher=publisher)
    result = await service.cancel_order("buyer@example.com", order.id)

    # Assert
    assert result.status == OrderStatus.CANCELLED
    assert (product_a.stock, product_a.sales_count) == (10, 4)
    assert (product_b.stock, product_b.sales_count) == (1, 0)
    assert buyer.total_purchase_amount == Decimal("1000.00")
    mock_session.commit.assert_awaited_once()

    changes = list(publisher.publish_changes.call_args.args[0])
    assert any(c.product_id == 2 and c.is_restock for c in changes)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [OrderStatus.SHIPPED, OrderStatus.DELIVERED, OrderStatus.CANCELLED])
async def test_cancel_order_rejected_after_dispatch(mocker, mock_session, buyer, publisher, status):
    order = make_order(user_id=buyer.id, status=status, lines=[(1, 7, "100.00", 1)])
    product = make_product(id=1, stock=5)
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))
    lock = mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: product}))

    service = OrderService(db=mock_session, publisher=publisher)
    with pytest.raises(InvalidOrderStatusError):
        await service.cancel_order("buyer@example.com", order.id)

    assert order.status == status
    assert product.stock == 5
    lock.assert_not_awaited()
    mock_session.commit.assert_not_awaited()
    publisher.publish_changes.assert_not_called()


@pytest.mark.asyncio
async def test_cancel_order_of_another_user_is_forbidden(mocker, mock_session, buyer):
    order = make_order(user_id=buyer.id + 1, status=OrderStatus.PENDING)
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))

    service = OrderService(db=mock_session)
    with pytest.raises(ForbiddenError) as exc_info:
        await service.cancel_order("buyer@example.com", order.id)

    assert exc_info.value.status_code == 403
    assert order.status == OrderStatus.PENDING
    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_cancel_order_skips_lines_of_deleted_products(mocker, mock_session, buyer):
    order = make_order(user_id=buyer.id, lines=[(1, 7, "100.00", 2), (None, 7, "50.00", 1)])
    product = make_product(id=1, stock=0, sales_count=2)
    buyer.total_purchase_amount = Decimal("250.00")
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))
    mocker.patch.object(OrderService, "_lock_products", AsyncMock(return_value={1: product}))

    service = OrderService(db=mock_session)
    await service.cancel_order("buyer@example.com", order.id)

    assert product.stock == 2
    assert order.status == OrderStatus.CANCELLED
    assert buyer.total_purchase_amount == Decimal("0.00")


# --- get / update / advance ---

@pytest.mark.asyncio
async def test_get_order_of_another_user_is_forbidden(mocker, mock_session, buyer):
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=make_order(user_id=99)))

    with pytest.raises(ForbiddenError):
        await OrderService(db=mock_session).get_order("buyer@example.com", 1)


@pytest.mark.asyncio
async def test_update_order_changes_only_supplied_fields(mocker, mock_session, buyer):
    order = make_order(user_id=buyer.id, status=OrderStatus.PAID)
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))

    result = await OrderService(db=mock_session).update_order(
        "buyer@example.com", order.id, OrderUpdate(address="2 Side St")
    )

    assert result.address == "2 Side St"
    assert result.recipient_name == "Kim"
    mock_session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_update_order_rejected_once_shipped(mocker, mock_session, buyer):
    order = make_order(user_id=buyer.id, status=OrderStatus.SHIPPED)
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))

    with pytest.raises(InvalidOrderStatusError):
        await OrderService(db=mock_session).update_order("buyer@example.com", order.id, OrderUpdate(address="x"))

    assert order.address == "1 Main St"
    mock_session.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_advance_status_requires_admin(mocker, mock_session, buyer):
    with pytest.raises(ForbiddenError):
        await OrderService(db=mock_session).advance_status("buyer@example.com", 1, OrderStatus.PAID)


@pytest.mark.asyncio
async def test_advance_status_follows_forward_transitions(mocker, mock_session):
    admin = make_user(id=5, email="admin@example.com", role=UserRole.ADMIN)
    mocker.patch("storefront.services.order_service.get_user_by_email", AsyncMock(return_value=admin))
    order = make_order(status=OrderStatus.PENDING)
    mocker.patch.object(OrderService, "_get_order", AsyncMock(return_value=order))
    service = OrderService(db=mock_session)

    with pytest.raises(InvalidStateTransitionError):
        await service.advance_status("admin@example.com", order.id, OrderStatus.SHIPPED)

    result = await service.advance_status("admin@example.com", order.id, OrderStatus.PAID)
    assert result.status == OrderStatus.PAID
