# pos_server/domain/catalog/service.py
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pos_server.core.errors import BusinessError, DuplicateProduct, NotFoundError
from pos_server.db.models.products import Product
from pos_server.db.repositories.products import (
    find_by_barcode,
    find_by_name,
    get_product_by_id,
    is_referenced_by_ledger,
)
from .schemas import ProductIn


async def _check_duplicates(db: AsyncSession, data: ProductIn, exclude_id=None) -> None:
    existing = await find_by_name(db, data.name, exclude_id=exclude_id)
    if existing is not None:
        message = f'Product with name "{existing.name}" already exists'
        if existing.barcode:
            message += f" (Barcode: {existing.barcode})"
        raise DuplicateProduct(message, "name", existing.summary())

    if data.barcode:
        existing = await find_by_barcode(db, data.barcode, exclude_id=exclude_id)
        if existing is not None:
            raise DuplicateProduct(
                f'Barcode "{data.barcode}" is already assigned to product "{existing.name}"',
                "barcode",
                existing.summary(),
            )


async def _commit_or_duplicate(db: AsyncSession) -> None:
    # unique indexes catch a concurrent insert that slipped past the checks
    try:
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise DuplicateProduct("Product name or barcode already exists", "name_or_barcode") from exc


async def create_product(db: AsyncSession, data: ProductIn) -> Product:
    await _check_duplicates(db, data)

    product = Product(**data.model_dump())
    db.add(product)
    await _commit_or_duplicate(db)
    await db.refresh(product)
    return product


async def update_product(db: AsyncSession, product_id: int, data: ProductIn) -> Product:
    product = await get_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    await _check_duplicates(db, data, exclude_id=product_id)

    for field, value in data.model_dump().items():
        setattr(product, field, value)
    await _commit_or_duplicate(db)
    await db.refresh(product)
    return product


async def delete_product(db: AsyncSession, product_id: int) -> None:
    product = await get_product_by_id(db, product_id)
    if product is None:
        raise NotFoundError("Product not found")

    # the ledger keeps pointing at sold products
    if await is_referenced_by_ledger(db, product_id):
        raise BusinessError("Product has recorded sales and cannot be deleted")

    await db.delete(product)
    await db.commit()
