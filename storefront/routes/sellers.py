from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.security import get_current_user_email
from storefront.core.utils import model_to_schema
from storefront.dependencies import get_cache, get_db
from storefront.schemas.seller import SellerCreate, SellerRanking, SellerRead, SellerUpdate
from storefront.services.cache_service import CacheService
from storefront.services.seller_service import SellerService

router = APIRouter(prefix="/api/sellers", tags=["sellers"])


@router.post("", response_model=SellerRead, status_code=status.HTTP_201_CREATED)
async def register_seller(
    data: SellerCreate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    seller = await SellerService(db).register_seller(email, data)
    return await model_to_schema(seller, SellerRead)


@router.get("/me", response_model=SellerRead)
async def my_seller(
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    seller = await SellerService(db).get_my_seller(email)
    return await model_to_schema(seller, SellerRead)


@router.put("/me", response_model=SellerRead)
async def update_my_seller(
    data: SellerUpdate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    seller = await SellerService(db).update_my_seller(email, data)
    return await model_to_schema(seller, SellerRead)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def unregister_seller(
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    await SellerService(db).unregister_seller(email)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me/ranking", response_model=SellerRanking)
async def my_sales_ranking(
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Last cached 7-day product ranking; empty until the hourly job has run."""
    return await SellerService(db).get_ranking(email, cache)
