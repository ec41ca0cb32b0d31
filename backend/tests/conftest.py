import os
import tempfile

# Settings are read at import time, so the environment has to be in place first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("AUTO_SEED", "false")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="ratebook-logs-"))

from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ratebook.database import Base, get_db
from ratebook.main import app
from ratebook.models.billing import Tax
from ratebook.models.currency import Currency
from ratebook.models.loyalty import LoyaltyReward, LoyaltyTier
from ratebook.models.pricing import RatePlan, RoomType


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def room(db):
    """A 100.00 room type with a zero-modifier default rate plan."""
    room = RoomType(name="Standard", base_price=Decimal("100.00"), status="active")
    db.add(room)
    await db.flush()
    db.add(
        RatePlan(
            code="BAR",
            name="Best Available Rate",
            modifier_type="fixed",
            modifier_value=Decimal("0"),
            is_default=True,
            status="active",
        )
    )
    await db.commit()
    return room


@pytest.fixture
async def vat(db):
    tax = Tax(name="VAT", rate=Decimal("15"), type="percentage", applies_to="all", is_active=True, sort_order=0)
    db.add(tax)
    await db.commit()
    return tax


@pytest.fixture
async def currencies(db):
    rows = [
        Currency(code="USD", name="US Dollar", symbol="$", exchange_rate=Decimal("1"), decimal_places=2, is_default=True),
        Currency(code="SAR", name="Saudi Riyal", symbol="SAR ", exchange_rate=Decimal("3.75"), decimal_places=2),
        Currency(code="JPY", name="Japanese Yen", symbol="¥", exchange_rate=Decimal("151.50"), decimal_places=0),
    ]
    db.add_all(rows)
    await db.commit()
    return rows


@pytest.fixture
async def tiers(db):
    rows = [
        LoyaltyTier(name="Bronze", min_points=0, discount_percent=Decimal("0"), sort_order=0),
        LoyaltyTier(name="Silver", min_points=1000, discount_percent=Decimal("5"), sort_order=1),
        LoyaltyTier(name="Gold", min_points=5000, discount_percent=Decimal("10"), sort_order=2),
    ]
    db.add_all(rows)
    await db.commit()
    return rows


@pytest.fixture
async def reward(db):
    row = LoyaltyReward(name="Late checkout", points_cost=600, reward_type="amenity", reward_value=Decimal("0"), is_active=True)
    db.add(row)
    await db.commit()
    return row
