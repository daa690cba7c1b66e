"""
Key/value storage backends.

The snapshot and preference layers talk to storage through the same three
calls the browser's Web Storage API offers. Backends may raise
`StorageUnavailableError`; callers degrade to defaults.
"""

from collections.abc import Iterator, Mapping
from typing import Protocol, runtime_checkable

from browsestate.models.failure import StorageUnavailableError


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key/value store."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """
    In-process store.

    Used for tests, for server-side rendering of one request, and as the
    working copy the HTTP layer loads from and flushes to the database.
    """

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def items(self) -> dict[str, str]:
        """Copy of every stored entry."""
        return dict(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"MemoryStore(keys={sorted(self._items)})"


class UnavailableStore:
    """Stands in for disabled storage: every call raises."""

    def __init__(self, reason: str = "storage is disabled") -> None:
        self.reason = reason

    def get_item(self, key: str) -> str | None:
        raise StorageUnavailableError(self.reason)

    def set_item(self, key: str, value: str) -> None:
        raise StorageUnavailableError(self.reason)

    def remove_item(self, key: str) -> None:
        raise StorageUnavailableError(self.reason)
