from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pos_server.db.models.line_items import LineItem
from pos_server.db.models.products import Product


async def get_product_by_id(db: AsyncSession, product_id: int) -> Optional[Product]:
    result = await db.execute(select(Product).where(Product.id == product_id))
    return result.scalar_one_or_none()


async def get_products_by_ids(db: AsyncSession, product_ids: Iterable[int]) -> Dict[int, Product]:
    ids = set(product_ids)
    if not ids:
        return {}
    result = await db.execute(select(Product).where(Product.id.in_(ids)))
    return {product.id: product for product in result.scalars().all()}


async def list_products(
    db: AsyncSession,
    search: Optional[str] = None,
    category: Optional[str] = None,
    page: int = 1,
    limit: int = 50,
) -> List[Product]:
    query = select(Product)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Product.name.ilike(pattern), Product.barcode.ilike(pattern)))
    elif category:
        query = query.where(Product.category == category)

    query = query.order_by(Product.name).limit(limit).offset((page - 1) * limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def find_by_name(
    db: AsyncSession, name: str, exclude_id: Optional[int] = None
) -> Optional[Product]:
    query = select(Product).where(func.lower(Product.name) == name.lower())
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    result = await db.execute(query)
    return result.scalars().first()


async def find_by_barcode(
    db: AsyncSession, barcode: str, exclude_id: Optional[int] = None
) -> Optional[Product]:
    query = select(Product).where(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.where(Product.id != exclude_id)
    result = await db.execute(query)
    return result.scalars().first()


async def is_referenced_by_ledger(db: AsyncSession, product_id: int) -> bool:
    result = await db.execute(
        select(LineItem.id).where(LineItem.product_id == product_id).limit(1)
    )
    return result.first() is not None


async def decrement_stock(db: AsyncSession, product_id: int, quantity: int) -> bool:
    """Take ``quantity`` units off the product's stock if that many remain.

    The check and the write are one statement, so two sessions racing for the
    last units cannot both succeed. Returns False when no row was changed,
    i.e. the product is gone or has fewer than ``quantity`` units left.
    """
    result = await db.execute(
        update(Product)
        .where(Product.id == product_id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1
