"""Tests for SQLAlchemy ORM models."""

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from browsestate.models.db import Base, SessionSnapshotDB, StoredPreferenceDB


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session(async_engine) -> AsyncSession:
    """Provide a database session for tests."""
    async_session = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


class TestSessionSnapshotDB:
    async def test_create_snapshot(self, session: AsyncSession) -> None:
        """Can store a snapshot row."""
        session.add(
            SessionSnapshotDB(
                session_id="tab-1", storage_key="mtgcb_search_state_cards", payload="{}"
            )
        )
        await session.commit()

        result = await session.execute(
            select(SessionSnapshotDB).where(SessionSnapshotDB.session_id == "tab-1")
        )
        saved = result.scalar_one()

        assert saved.id is not None
        assert saved.updated_at is not None
        assert "tab-1" in repr(saved)

    async def test_key_unique_per_session(self, session: AsyncSession) -> None:
        """A session holds one row per storage key."""
        session.add(SessionSnapshotDB(session_id="tab-1", storage_key="k", payload="a"))
        session.add(SessionSnapshotDB(session_id="tab-1", storage_key="k", payload="b"))

        with pytest.raises(IntegrityError):
            await session.commit()

    async def test_same_key_in_other_session(self, session: AsyncSession) -> None:
        """Different sessions may use the same storage key."""
        session.add(SessionSnapshotDB(session_id="tab-1", storage_key="k", payload="a"))
        session.add(SessionSnapshotDB(session_id="tab-2", storage_key="k", payload="b"))
        await session.commit()

        result = await session.execute(select(SessionSnapshotDB))

        assert len(result.scalars().all()) == 2


class TestStoredPreferenceDB:
    async def test_key_unique_per_user(self, session: AsyncSession) -> None:
        """A user holds one row per preference key."""
        session.add(StoredPreferenceDB(user_id="user-1", storage_key="cardsPageSize", payload="20"))
        session.add(StoredPreferenceDB(user_id="user-1", storage_key="cardsPageSize", payload="60"))

        with pytest.raises(IntegrityError):
            await session.commit()
