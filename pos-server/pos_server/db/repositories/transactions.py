
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pos_server.db.models.line_items import LineItem
from pos_server.db.models.products import Product
from pos_server.db.models.transactions import Transaction
from pos_server.db.models.users import User


async def add_transaction(
    db: AsyncSession,
    cashier_id: int,
    payment_method: str,
    subtotal: Decimal,
    discount_amount: Decimal,
    total: Decimal,
    currency: str,
    customer_email: Optional[str] = None,
) -> Transaction:
    txn = Transaction(
        cashier_id=cashier_id,
        payment_method=payment_method,
        customer_email=customer_email,
        subtotal=subtotal,
        discount_amount=discount_amount,
        total=total,
        currency=currency,
    )
    db.add(txn)
    await db.flush()
    return txn


async def add_line_item(
    db: AsyncSession,
    transaction_id: UUID,
    line_number: int,
    product_id: int,
    quantity: int,
    unit_price: Decimal,
    subtotal: Decimal,
) -> LineItem:
    line = LineItem(
        transaction_id=transaction_id,
        line_number=line_number,
        product_id=product_id,
        quantity=quantity,
        unit_price=unit_price,
        subtotal=subtotal,
    )
    db.add(line)
    await db.flush()
    return line


async def get_transaction_by_id(
    db: AsyncSession,
    transaction_id: UUID
) -> Optional[Tuple[Transaction, Optional[str]]]:
    result = await db.execute(
        select(Transaction, User.username)
        .outerjoin(User, Transaction.cashier_id == User.id)
        .where(Transaction.id == transaction_id)
    )
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def get_line_items_for_transaction(
    db: AsyncSession,
    transaction_id: UUID
) -> List[Tuple[LineItem, str, Optional[str]]]:
    result = await db.execute(
        select(LineItem, Product.name, Product.barcode)
        .join(Product, LineItem.product_id == Product.id)
        .where(LineItem.transaction_id == transaction_id)
        .order_by(LineItem.line_number)
    )
    return [(row[0], row[1], row[2]) for row in result.all()]


async def list_transactions(
    db: AsyncSession,
    page: int = 1,
    limit: int = 50,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> List[Tuple[Transaction, Optional[str]]]:
    query = select(Transaction, User.username).outerjoin(User, Transaction.cashier_id == User.id)

    if start_date and end_date:
        # inclusive of the whole end day
        query = query.where(
            Transaction.created_at >= datetime.combine(start_date, time.min),
            Transaction.created_at < datetime.combine(end_date + timedelta(days=1), time.min),
        )

    query = query.order_by(Transaction.created_at.desc()).limit(limit).offset((page - 1) * limit)
    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()]

