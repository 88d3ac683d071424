"""
Order endpoints. The caller is identified by the HTTP Basic username (email).
"""

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.security import get_current_user_email
from storefront.core.utils import model_to_schema, models_to_schemas
from storefront.dependencies import get_db, get_restock_pipeline
from storefront.integrations.restock_pipeline import RestockEventPipeline
from storefront.schemas.order import OrderCreate, OrderRead, OrderStatusUpdate, OrderUpdate
from storefront.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


def get_order_service(
    db: AsyncSession = Depends(get_db),
    pipeline: RestockEventPipeline = Depends(get_restock_pipeline),
) -> OrderService:
    return OrderService(db, publisher=pipeline)


@router.post("", response_model=OrderRead, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    email: str = Depends(get_current_user_email),
    service: OrderService = Depends(get_order_service),
):
    order = await service.create_order(email, order_data)
    return await model_to_schema(order, OrderRead)


@router.get("", response_model=List[OrderRead])
async def list_my_orders(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    email: str = Depends(get_current_user_email),
    service: OrderService = Depends(get_order_service),
):
    orders = await service.list_my_orders(email, limit=limit, offset=offset)
    return await models_to_schemas(orders, OrderRead)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int,
    email: str = Depends(get_current_user_email),
    service: OrderService = Depends(get_order_service),
):
    order = await service.get_order(email, order_id)
    return await model_to_schema(order, OrderRead)


@router.patch("/{order_id}", response_model=OrderRead)
async def update_order(
    order_id: int,
    update_data: OrderUpdate,
    email: str = Depends(get_current_user_email),
    service: OrderService = Depends(get_order_service),
):
    order = await service.update_order(email, order_id, update_data)
    return await model_to_schema(order, OrderRead)


@router.post("/{order_id}/cancel", response_model=OrderRead)
async def cancel_order(
    order_id: int,
    email: str = Depends(get_current_user_email),
    service: OrderService = Depends(get_order_service),
):
    order = await service.cancel_order(email, order_id)
    return await model_to_schema(order, OrderRead)


@router.post("/{order_id}/status", response_model=OrderRead)
async def advance_order_status(
    order_id: int,
    status_update: OrderStatusUpdate,
    email: str = Depends(get_current_user_email),
    service: OrderService = Depends(get_order_service),
):
    """Fulfilment status changes (admin)."""
    order = await service.advance_status(email, order_id, status_update.status)
    return await model_to_schema(order, OrderRead)
