from browsestate.storage.backends import KeyValueStore, MemoryStore, UnavailableStore
from browsestate.storage.preferences import (
    BrowsePreferences,
    CardsPreferences,
    SetsPreferences,
    default_preferences,
    load_preferences,
    preference_keys,
    store_preference,
)
from browsestate.storage.snapshot import (
    clear_all_snapshots,
    clear_snapshot,
    clear_snapshot_field,
    load_snapshot,
    read_snapshot,
    save_snapshot,
    snapshot_key,
    snapshot_payload,
    state_from_json,
    state_to_json,
)

__all__ = [
    # Backends
    "KeyValueStore",
    "MemoryStore",
    "UnavailableStore",
    # Preferences
    "BrowsePreferences",
    "CardsPreferences",
    "SetsPreferences",
    "default_preferences",
    "load_preferences",
    "preference_keys",
    "store_preference",
    # Snapshots
    "clear_all_snapshots",
    "clear_snapshot",
    "clear_snapshot_field",
    "load_snapshot",
    "read_snapshot",
    "save_snapshot",
    "snapshot_key",
    "snapshot_payload",
    "state_from_json",
    "state_to_json",
]
