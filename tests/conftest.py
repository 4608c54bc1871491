"""
Pytest configuration and fixtures.

The store runs on in-memory SQLite (aiosqlite) with the same models and
stock triggers as production; the cache is a fakeredis async client.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import AsyncGenerator, Optional

import fakeredis.aioredis
import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.database import Base, create_engine, create_sessionmaker
from app.models.product import Product
from app.schemas.product import ProductResponse
from app.services.background import TaskScheduler
from app.services.bulk_ingestor import BulkIngestor
from app.services.catalog_reader import CatalogReader
from app.services.product_cache import ProductCache


# ============================================================================
# STORE FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database for each test."""
    engine = create_engine("sqlite+aiosqlite://")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_sessionmaker(engine)


# ============================================================================
# CACHE FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache(redis_client) -> ProductCache:
    return ProductCache(redis_client, ttl_seconds=300)


# ============================================================================
# SERVICE FIXTURES
# ============================================================================

@pytest_asyncio.fixture
async def scheduler() -> AsyncGenerator[TaskScheduler, None]:
    scheduler = TaskScheduler()
    yield scheduler
    await scheduler.shutdown()


@pytest.fixture
def reader(cache, session_factory, scheduler) -> CatalogReader:
    return CatalogReader(cache, session_factory, scheduler)


@pytest.fixture
def ingestor(cache, session_factory) -> BulkIngestor:
    return BulkIngestor(session_factory, cache)


# ============================================================================
# HELPERS
# ============================================================================

def make_product(
    name: str,
    qty: int = 1,
    price: str = "1.00",
    product_id: Optional[str] = None,
    image: Optional[str] = None,
) -> ProductResponse:
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return ProductResponse(
        id=product_id or str(uuid.uuid4()),
        name=name,
        image=image,
        price=Decimal(price),
        qty=qty,
        out_of_stock=qty == 0,
        created_at=now,
        updated_at=now,
    )


def make_csv(*rows) -> bytes:
    lines = ["id,name,image,price,qty"]
    lines.extend(",".join(row) for row in rows)
    return ("\n".join(lines) + "\n").encode("utf-8")


async def count_products(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(func.count()).select_from(Product))
        return result.scalar_one()
