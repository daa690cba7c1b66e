import pytest

from browsestate.storage.backends import MemoryStore, UnavailableStore


@pytest.fixture
def session_store() -> MemoryStore:
    """Empty session-scoped store."""
    return MemoryStore()


@pytest.fixture
def preference_store() -> MemoryStore:
    """Empty long-lived preference store."""
    return MemoryStore()


@pytest.fixture
def unavailable_store() -> UnavailableStore:
    """Store that fails every call, like disabled browser storage."""
    return UnavailableStore("storage disabled for test")
