"""
Database CRUD operations.

Rows are plain storage entries (key -> JSON text) owned by a browsing
session or a user. The HTTP layer loads an owner's rows into a
MemoryStore, runs the synchronous browse core against it, then writes
back only the keys that changed.
"""

from collections.abc import Mapping

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from browsestate.models.db import SessionSnapshotDB, StoredPreferenceDB

# --- Session snapshot operations ---


async def get_session_items(session: AsyncSession, session_id: str) -> dict[str, str]:
    """Every storage entry of one browsing session."""
    result = await session.execute(
        select(SessionSnapshotDB).where(SessionSnapshotDB.session_id == session_id)
    )
    return {row.storage_key: row.payload for row in result.scalars()}


async def get_session_item(
    session: AsyncSession, session_id: str, storage_key: str
) -> SessionSnapshotDB | None:
    """One session entry, or None if it does not exist."""
    result = await session.execute(
        select(SessionSnapshotDB).where(
            SessionSnapshotDB.session_id == session_id,
            SessionSnapshotDB.storage_key == storage_key,
        )
    )
    return result.scalar_one_or_none()


async def put_session_item(
    session: AsyncSession, session_id: str, storage_key: str, payload: str
) -> SessionSnapshotDB:
    """Insert or overwrite one session entry."""
    existing = await get_session_item(session, session_id, storage_key)
    if existing:
        existing.payload = payload
        await session.flush()
        return existing

    row = SessionSnapshotDB(session_id=session_id, storage_key=storage_key, payload=payload)
    session.add(row)
    await session.flush()
    return row


async def delete_session_item(session: AsyncSession, session_id: str, storage_key: str) -> bool:
    """
    Delete one session entry.

    Returns True if an entry was deleted.
    """
    existing = await get_session_item(session, session_id, storage_key)
    if not existing:
        return False

    await session.delete(existing)
    await session.flush()
    return True


async def delete_session_items(session: AsyncSession, session_id: str) -> int:
    """
    Delete every entry of one browsing session.

    Returns the number of entries deleted.
    """
    result = await session.execute(
        delete(SessionSnapshotDB).where(SessionSnapshotDB.session_id == session_id)
    )
    await session.flush()
    return int(result.rowcount)  # type: ignore[attr-defined]


async def sync_session_items(
    session: AsyncSession,
    session_id: str,
    before: Mapping[str, str],
    after: Mapping[str, str],
) -> int:
    """
    Persist the difference between two views of a session's entries.

    Returns the number of entries written or deleted.
    """
    changed = 0
    for key, payload in after.items():
        if before.get(key) != payload:
            await put_session_item(session, session_id, key, payload)
            changed += 1
    for key in before.keys() - after.keys():
        await delete_session_item(session, session_id, key)
        changed += 1
    return changed


# --- Preference operations ---


async def get_preference_items(session: AsyncSession, user_id: str) -> dict[str, str]:
    """Every stored preference of one user."""
    result = await session.execute(
        select(StoredPreferenceDB).where(StoredPreferenceDB.user_id == user_id)
    )
    return {row.storage_key: row.payload for row in result.scalars()}


async def get_preference_item(
    session: AsyncSession, user_id: str, storage_key: str
) -> StoredPreferenceDB | None:
    result = await session.execute(
        select(StoredPreferenceDB).where(
            StoredPreferenceDB.user_id == user_id,
            StoredPreferenceDB.storage_key == storage_key,
        )
    )
    return result.scalar_one_or_none()


async def put_preference_item(
    session: AsyncSession, user_id: str, storage_key: str, payload: str
) -> StoredPreferenceDB:
    """Insert or overwrite one preference."""
    existing = await get_preference_item(session, user_id, storage_key)
    if existing:
        existing.payload = payload
        await session.flush()
        return existing

    row = StoredPreferenceDB(user_id=user_id, storage_key=storage_key, payload=payload)
    session.add(row)
    await session.flush()
    return row



# --- Storage status ---


async def count_storage_rows(session: AsyncSession) -> dict[str, int]:
    """Row count of each storage table, keyed by table name."""
    counts: dict[str, int] = {}
    for model in (SessionSnapshotDB, StoredPreferenceDB):
        result = await session.execute(select(func.count()).select_from(model))
        counts[model.__tablename__] = int(result.scalar_one())
    return counts
