from typing import List

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.security import get_current_user_email
from storefront.core.utils import model_to_schema, models_to_schemas
from storefront.dependencies import get_db, get_restock_pipeline
from storefront.integrations.restock_pipeline import RestockEventPipeline
from storefront.schemas.product import ProductCreate, ProductRead, ProductUpdate, StockUpdate
from storefront.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).create_product(email, product_data)
    return await model_to_schema(product, ProductRead)


@router.get("/my", response_model=List[ProductRead])
async def my_products(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    products = await ProductService(db).list_my_products(email, limit=limit, offset=offset)
    return await models_to_schemas(products, ProductRead)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(
    product_id: int,
    _: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).get_product(product_id)
    return await model_to_schema(product, ProductRead)


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    product = await ProductService(db).update_product(email, product_id, product_data)
    return await model_to_schema(product, ProductRead)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
):
    await ProductService(db).delete_product(email, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{product_id}/stock", response_model=ProductRead)
async def update_stock(
    product_id: int,
    stock_update: StockUpdate,
    email: str = Depends(get_current_user_email),
    db: AsyncSession = Depends(get_db),
    pipeline: RestockEventPipeline = Depends(get_restock_pipeline),
):
    """Seller sets the absolute stock level of one of their products."""
    service = ProductService(db, publisher=pipeline)
    product = await service.update_stock(email, product_id, stock_update.stock)
    return await model_to_schema(product, ProductRead)
