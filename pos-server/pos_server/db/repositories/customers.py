from typing import Optional

from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pos_server.db.models.customers import Customer

_UPSERT_BY_DIALECT = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


async def get_customer_by_email(db: AsyncSession, email: str) -> Optional[Customer]:
    result = await db.execute(select(Customer).where(Customer.email == email))
    return result.scalar_one_or_none()


async def add_loyalty_points(db: AsyncSession, email: str, points: int) -> None:
    """Add ``points`` to the customer's balance, creating the customer if needed.

    A single ``INSERT ... ON CONFLICT DO UPDATE`` so that two first purchases
    by the same new customer both count.
    """
    insert = _UPSERT_BY_DIALECT[db.get_bind().dialect.name]
    stmt = insert(Customer).values(email=email, points=points)
    stmt = stmt.on_conflict_do_update(
        index_elements=[Customer.email],
        set_={"points": Customer.points + stmt.excluded.points},
    )
    await db.execute(stmt)
