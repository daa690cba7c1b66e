"""
SQLAlchemy ORM models for persistent storage.

Rows mirror browser storage one-to-one: each row is one storage key and
its JSON text, owned either by a browsing session (snapshots) or by a
user (preferences).
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class SessionSnapshotDB(Base):
    """
    Session-scoped storage entry.

    Holds the serialized search state for one catalog of one browsing
    session. Removed on explicit reset or logout.
    """

    __tablename__ = "session_snapshots"
    __table_args__ = (UniqueConstraint("session_id", "storage_key", name="uq_session_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[str] = mapped_column(String(255), index=True)
    storage_key: Mapped[str] = mapped_column(String(255))
    payload: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<SessionSnapshotDB(session={self.session_id}, key={self.storage_key})>"


class StoredPreferenceDB(Base):
    """
    Long-lived preference entry.

    One scalar (sort field, sort direction, page size, toggle) per row.
    Written by the settings UI, read at startup and on reset.
    """

    __tablename__ = "stored_preferences"
    __table_args__ = (UniqueConstraint("user_id", "storage_key", name="uq_user_key"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), index=True)
    storage_key: Mapped[str] = mapped_column(String(255))
    payload: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<StoredPreferenceDB(user={self.user_id}, key={self.storage_key})>"
