"""
Pytest configuration and fixtures.
"""

import sys
import datetime
from pathlib import Path
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from timebill.infra.db import Base
from timebill.infra.repository import SqlEntryStore
from timebill.services.clock import FixedClock

# Monday of ISO week 2, 2026
MONDAY = datetime.datetime(2026, 1, 5, 9, 0, tzinfo=datetime.timezone.utc)


@pytest_asyncio.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing"""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Create a new session for a test"""
    async_session = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def store(db_session):
    """EntryStore pinned to the test session"""
    return SqlEntryStore(session=db_session)


@pytest.fixture
def clock():
    return FixedClock(MONDAY)
