"""
Session snapshot layer.

Persists each catalog's search criteria in the session-scoped store so a
reload restores the active search while a closed tab forgets it.

Only entries flagged `in_snapshot` are stored, and only when they differ
from their default. Pagination, sort and display toggles belong to the
URL and the preference store; keeping them out of the snapshot means a
changed preference is picked up on the next reload.

FAIL-SAFE: nothing here raises. Missing, corrupt or unavailable storage
reads as "no snapshot"; failed writes are logged and skipped.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from browsestate.config import settings
from browsestate.models.failure import (
    DecodeError,
    DecodeFailureKind,
    Decoded,
    StorageUnavailableError,
    merge_decoded,
)
from browsestate.models.filters import CatalogMode
from browsestate.models.state import SearchState
from browsestate.schema.codecs import (
    coerce_value,
    is_empty_value,
    is_suppressed,
    value_from_json,
    value_to_json,
)
from browsestate.schema.registry import get_parameters_for_mode, get_snapshot_parameters
from browsestate.storage.backends import KeyValueStore

logger = logging.getLogger(__name__)


def snapshot_key(mode: CatalogMode | str) -> str:
    """Storage key holding the snapshot for one catalog."""
    return f"{settings.storage_key_prefix}_search_state_{CatalogMode(mode).value}"


def state_to_json(state: SearchState, mode: CatalogMode | str) -> dict[str, Any]:
    """
    JSON-ready form of every part of `state` that applies to `mode`.

    Empty values, values of the wrong shape and keys outside the registry
    are dropped. Default-equal values are kept, so the result describes
    the resolved state in full.
    """
    out: dict[str, Any] = {}
    for config in get_parameters_for_mode(mode).values():
        decoded = coerce_value(config, state.get(config.key))
        if decoded.present:
            out[config.key] = value_to_json(config, decoded.value)
    return out


def snapshot_payload(state: SearchState, mode: CatalogMode | str) -> dict[str, Any]:
    """The non-default search criteria of `state`, ready to be stored."""
    out: dict[str, Any] = {}
    for config in get_snapshot_parameters(mode).values():
        decoded = coerce_value(config, state.get(config.key))
        if not decoded.present or is_suppressed(config, decoded.value):
            continue
        out[config.key] = value_to_json(config, decoded.value)
    return out


def state_from_json(
    raw: Mapping[str, Any], mode: CatalogMode | str, snapshot_only: bool = False
) -> tuple[SearchState, list[DecodeError]]:
    """
    Validate a JSON object field by field against the registry.

    Args:
        raw: Decoded JSON object
        mode: Catalog whose entries apply
        snapshot_only: Ignore entries the snapshot does not hold

    Returns:
        Tuple of (state, errors). Invalid fields are dropped and reported;
        unknown keys are ignored.
    """
    configs = get_snapshot_parameters(mode) if snapshot_only else get_parameters_for_mode(mode)
    results: dict[str, Decoded[Any]] = {}
    for config in configs.values():
        if config.key not in raw:
            continue
        decoded = value_from_json(config, raw[config.key])
        if decoded.present and is_empty_value(config, decoded.value):
            decoded = Decoded.absent()
        results[config.key] = decoded

    state: SearchState = {}
    errors = merge_decoded(state, results)
    return state, errors


def read_snapshot(store: KeyValueStore, mode: CatalogMode | str) -> Decoded[SearchState]:
    """
    Read and validate the snapshot for `mode`.

    Absent when nothing usable is stored. Failed when the store is
    unavailable or the text is not a JSON object. Individual invalid fields
    are dropped without failing the whole snapshot.
    """
    key = snapshot_key(mode)
    try:
        text = store.get_item(key)
    except StorageUnavailableError as e:
        return Decoded.failed(DecodeFailureKind.STORAGE_UNAVAILABLE, key, str(e))

    if not text:
        return Decoded.absent()

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as e:
        return Decoded.failed(DecodeFailureKind.STORAGE_CORRUPTION, key, f"invalid JSON: {e.msg}")

    if not isinstance(raw, dict):
        return Decoded.failed(
            DecodeFailureKind.STORAGE_CORRUPTION, key, f"expected object, got {type(raw).__name__}"
        )

    state, _ = state_from_json(raw, mode, snapshot_only=True)
    if not state:
        return Decoded.absent()
    return Decoded.ok(state)


def load_snapshot(store: KeyValueStore, mode: CatalogMode | str) -> SearchState | None:
    """The stored search state for `mode`, or None if missing or unusable."""
    key = snapshot_key(mode)
    loaded: dict[str, SearchState] = {}
    merge_decoded(loaded, {key: read_snapshot(store, mode)})
    return loaded.get(key)


def save_snapshot(
    store: KeyValueStore,
    mode: CatalogMode | str,
    state: SearchState,
    active_mode: CatalogMode | str | None = None,
) -> bool:
    """
    Persist the search criteria of `state` as the snapshot for `mode`.

    A state without criteria is not written. It removes the existing
    snapshot only when `mode` is the active catalog (or no active catalog
    is given), so switching views never wipes the other view's saved search.

    Returns:
        True if a snapshot was written.
    """
    catalog = CatalogMode(mode)
    key = snapshot_key(catalog)
    payload = snapshot_payload(state, catalog)

    try:
        if not payload:
            if active_mode is None or CatalogMode(active_mode) == catalog:
                store.remove_item(key)
            return False

        store.set_item(key, json.dumps(payload, separators=(",", ":")))
        return True
    except StorageUnavailableError as e:
        logger.warning("snapshot_save_failed", extra={"mode": catalog.value, "reason": str(e)})
        return False


def clear_snapshot(store: KeyValueStore, mode: CatalogMode | str) -> None:
    """Remove the snapshot for `mode` (explicit reset)."""
    try:
        store.remove_item(snapshot_key(mode))
    except StorageUnavailableError as e:
        logger.warning(
            "snapshot_clear_failed",
            extra={"mode": CatalogMode(mode).value, "reason": str(e)},
        )


def clear_all_snapshots(store: KeyValueStore) -> None:
    """
    Remove every catalog's snapshot.

    Use on logout or user switch so user-specific filters (goal, location)
    do not leak into the next session.
    """
    for mode in CatalogMode:
        clear_snapshot(store, mode)


def clear_snapshot_field(store: KeyValueStore, mode: CatalogMode | str, state_key: str) -> None:
    """
    Drop one field from the stored snapshot.

    Used for contextual filters, e.g. the implicit set filter on a set
    page. Removes the snapshot entirely if nothing else is left.
    """
    key = snapshot_key(mode)
    try:
        text = store.get_item(key)
        if not text:
            return
        raw = json.loads(text)
        if not isinstance(raw, dict):
            store.remove_item(key)
            return

        raw.pop(state_key, None)
        if raw:
            store.set_item(key, json.dumps(raw, separators=(",", ":")))
        else:
            store.remove_item(key)
    except (StorageUnavailableError, json.JSONDecodeError) as e:
        logger.warning(
            "snapshot_field_clear_failed",
            extra={"mode": CatalogMode(mode).value, "field": state_key, "reason": str(e)},
        )
