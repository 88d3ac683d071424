from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.security import get_current_user_email
from storefront.core.utils import model_to_schema, models_to_schemas
from storefront.dependencies import get_db
from storefront.schemas.restock import RestockSubscriptionCreate, RestockSubscriptionRead
from storefront.services.restock_service import RestockService

router = APIRouter(prefix="/api/restock-subscriptions", tags=["restock"])


@router.post("", response_model=RestockSubscriptionRead, status_code=status.HTTP_201_CREATED)
async def subscribe(
    data: RestockSubscriptionCreate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    subscription = await RestockService(db).subscribe(email, data.product_id)
    return await model_to_schema(subscription, RestockSubscriptionRead)


@router.get("/my", response_model=List[RestockSubscriptionRead])
async def list_my_subscriptions(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    subscriptions = await RestockService(db).list_mine(email, limit=limit, offset=offset)
    return await models_to_schemas(subscriptions, RestockSubscriptionRead)


@router.get("/products/{product_id}", response_model=List[RestockSubscriptionRead])
async def list_product_subscriptions(
    product_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    """Subscribers of a product owned by the calling seller."""
    subscriptions = await RestockService(db).list_for_product(email, product_id, limit=limit, offset=offset)
    return await models_to_schemas(subscriptions, RestockSubscriptionRead)


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unsubscribe(
    subscription_id: int,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    await RestockService(db).unsubscribe(email, subscription_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
