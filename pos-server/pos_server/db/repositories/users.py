from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from pos_server.db.models.users import User


async def ensure_user(db: AsyncSession, username: str, role: str = "cashier") -> User:
    """Return the operator named ``username``, creating it on first use."""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        user = User(username=username, role=role)
        db.add(user)
        await db.flush()
    return user
