"""
Pytest configuration and fixtures.

Every test gets a fresh SQLite file database (a file, not ``:memory:``, so
concurrent sessions use separate connections). Point ``TEST_DATABASE_URL`` at
a PostgreSQL database to run the same suite against asyncpg.
"""
import os
from decimal import Decimal
from typing import Any, AsyncGenerator, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from pos_server.core.config import Settings
from pos_server.db.base import Base, close_db, configure_engine, get_session_factory, init_db
from pos_server.db.models.line_items import LineItem
from pos_server.db.models.products import Product
from pos_server.db.models.transactions import Transaction
from pos_server.db.repositories.users import ensure_user
from pos_server.domain.checkout.schemas import SettlementResult
from pos_server.domain.checkout.service import SettlementEngine, get_settlement_engine
from pos_server.main import app


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.receipts: List[SettlementResult] = []

    async def notify(self, receipt: SettlementResult) -> None:
        if self.fail:
            raise RuntimeError("printer offline")
        self.receipts.append(receipt)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, Any]:
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite+aiosqlite:///{tmp_path / 'pos_test.db'}"
    db_engine = configure_engine(url)

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await init_db()

    yield db_engine

    await close_db()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_session_factory()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, Any]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def operator_id(session_factory) -> int:
    async with session_factory() as session:
        async with session.begin():
            user = await ensure_user(session, "cashier")
        return user.id


@pytest.fixture
def make_product(session_factory):
    counter = {"n": 0}

    async def _make(stock: int, price: str = "2.00", name: str = None, barcode: str = None) -> int:
        counter["n"] += 1
        async with session_factory() as session:
            async with session.begin():
                product = Product(
                    name=name or f"Product {counter['n']}",
                    barcode=barcode,
                    price=Decimal(price),
                    stock=stock,
                )
                session.add(product)
            return product.id

    return _make


@pytest.fixture
def stock_of(session_factory):
    async def _stock(product_id: int) -> int:
        async with session_factory() as session:
            result = await session.execute(select(Product.stock).where(Product.id == product_id))
            return result.scalar_one()

    return _stock


@pytest.fixture
def ledger_counts(session_factory):
    async def _counts():
        async with session_factory() as session:
            transactions = (await session.execute(select(func.count()).select_from(Transaction))).scalar_one()
            lines = (await session.execute(select(func.count()).select_from(LineItem))).scalar_one()
            return transactions, lines

    return _counts


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///unused.db",
        settlement_timeout_seconds=5,
        log_level="DEBUG",
        app_env="test",
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def settlement_engine(test_settings, notifier) -> SettlementEngine:
    return SettlementEngine(settings=test_settings, notifier=notifier)


@pytest_asyncio.fixture
async def client(engine, operator_id, settlement_engine) -> AsyncGenerator[AsyncClient, Any]:
    app.dependency_overrides[get_settlement_engine] = lambda: settlement_engine
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Operator-Id": str(operator_id)},
    ) as ac:
        yield ac
    app.dependency_overrides.clear()
