# pos_server/api/v1/routes_products.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pos_server.api.deps import get_operator_id
from pos_server.core.errors import NotFoundError
from pos_server.db.base import get_db
from pos_server.db.repositories.products import get_product_by_id, list_products
from pos_server.domain.catalog.schemas import ProductIn, ProductOut
from pos_server.domain.catalog.service import create_product, delete_product, update_product


router = APIRouter(
    prefix="/api/v1/products",
    tags=["products"],
    dependencies=[Depends(get_operator_id)],
)


@router.get("", response_model=List[ProductOut])
async def list_products_endpoint(
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    return await list_products(db, search=search, category=category, page=page, limit=limit)


@router.get("/{product_id}", response_model=ProductOut)
async def get_product_endpoint(product_id: int, db: AsyncSession = Depends(get_db)):
    product = await get_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    return product


@router.post("", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
async def create_product_endpoint(payload: ProductIn, db: AsyncSession = Depends(get_db)):
    return await create_product(db, payload)


@router.put("/{product_id}", response_model=ProductOut)
async def update_product_endpoint(product_id: int, payload: ProductIn, db: AsyncSession = Depends(get_db)):
    return await update_product(db, product_id, payload)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product_endpoint(product_id: int, db: AsyncSession = Depends(get_db)):
    await delete_product(db, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
