"""Tests for the session snapshot layer."""

import json
import logging

from browsestate.models.failure import DecodeFailureKind
from browsestate.models.filters import CatalogMode, ColorFilter, InclusionExclusion
from browsestate.storage.backends import MemoryStore, UnavailableStore
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


class TestSnapshotKey:
    def test_key_per_mode(self) -> None:
        """Each catalog has its own storage key."""
        assert snapshot_key(CatalogMode.CARDS) == "mtgcb_search_state_cards"
        assert snapshot_key("sets") == "mtgcb_search_state_sets"


class TestStateJson:
    def test_empty_values_dropped(self) -> None:
        """Empty values are not stored."""
        state = {"name": "", "rarities": InclusionExclusion(), "artist": "Rush"}

        assert state_to_json(state, CatalogMode.CARDS) == {"artist": "Rush"}

    def test_full_form_keeps_defaults(self) -> None:
        """The full JSON form keeps default-equal values."""
        state = {"sort_order": "asc", "current_page": 1}

        assert state_to_json(state, CatalogMode.SETS) == {"sort_order": "asc", "current_page": 1}

    def test_full_form_accepts_mappings(self) -> None:
        """Composite values given as mappings are rendered like models."""
        state = {"rarities": {"include": ["rare"]}}

        assert state_to_json(state, CatalogMode.CARDS) == {
            "rarities": {"include": ["rare"], "exclude": []}
        }

    def test_other_catalog_keys_dropped(self) -> None:
        """Keys that do not apply to the catalog are not stored."""
        state = {"stats": {"power": ["gte1"]}, "show_subsets": False}

        assert state_to_json(state, CatalogMode.SETS) == {"show_subsets": False}

    def test_invalid_field_dropped_individually(self) -> None:
        """One invalid field does not discard the rest."""
        raw = {"artist": "Rush", "current_page": "three", "colors": {"colors": ["W"]}}

        state, errors = state_from_json(raw, CatalogMode.CARDS)

        assert state == {"artist": "Rush", "colors": ColorFilter(colors=["W"])}
        assert [error.key for error in errors] == ["current_page"]
        assert errors[0].kind == DecodeFailureKind.STORAGE_CORRUPTION


class TestSnapshotPayload:
    def test_search_criteria_only(self) -> None:
        """Pagination, sort and display toggles stay out of the snapshot."""
        state = {
            "current_page": 3,
            "page_size": 60,
            "sort_by": "name",
            "sort_order": "asc",
            "show_subsets": False,
            "code": "lea",
        }

        assert snapshot_payload(state, CatalogMode.SETS) == {"code": "lea"}

    def test_default_criteria_dropped(self) -> None:
        """Criteria equal to their default are not stored."""
        state = {"show_goals": "all", "include_child_locations": False, "artist": "Rush"}

        assert snapshot_payload(state, CatalogMode.CARDS) == {"artist": "Rush"}

    def test_mappings_and_bad_shapes(self) -> None:
        """Mapping composites are stored; values of the wrong shape are skipped."""
        state = {"types": {"exclude": ["Land"]}, "stats": "power>1"}

        assert snapshot_payload(state, CatalogMode.CARDS) == {
            "types": {"include": [], "exclude": ["Land"]}
        }


class TestSaveAndLoad:
    def test_round_trip(self, session_store: MemoryStore) -> None:
        """A saved snapshot loads back equal."""
        state = {
            "artist": "Rush",
            "colors": ColorFilter(colors=["U"], include_colorless=True),
            "types": InclusionExclusion(include=["Creature"], exclude=["Land"]),
            "stats": {"cmc": ["lte2"]},
        }

        assert save_snapshot(session_store, CatalogMode.CARDS, state)
        assert load_snapshot(session_store, CatalogMode.CARDS) == state

    def test_default_state_writes_nothing(self, session_store: MemoryStore) -> None:
        """A state holding only pagination and sort leaves the store empty."""
        state = {"current_page": 1, "page_size": 20, "sort_by": "releasedAt", "sort_order": "asc"}

        assert not save_snapshot(
            session_store, CatalogMode.CARDS, state, active_mode=CatalogMode.CARDS
        )
        assert len(session_store) == 0

    def test_stored_sort_and_pagination_ignored(self, session_store: MemoryStore) -> None:
        """Sort and pagination left in an older snapshot are not restored."""
        session_store.set_item(
            snapshot_key(CatalogMode.CARDS),
            json.dumps({"sort_by": "name", "current_page": 4, "artist": "Rush"}),
        )
        session_store.set_item(snapshot_key(CatalogMode.SETS), json.dumps({"sort_by": "name"}))

        assert load_snapshot(session_store, CatalogMode.CARDS) == {"artist": "Rush"}
        assert load_snapshot(session_store, CatalogMode.SETS) is None

    def test_missing_snapshot(self, session_store: MemoryStore) -> None:
        """Nothing stored reads as no snapshot."""
        assert load_snapshot(session_store, CatalogMode.SETS) is None
        assert not read_snapshot(session_store, CatalogMode.SETS).is_failure

    def test_modes_are_independent(self, session_store: MemoryStore) -> None:
        """Saving one catalog never touches the other."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})

        assert load_snapshot(session_store, CatalogMode.SETS) is None

    def test_empty_state_clears_active_snapshot(self, session_store: MemoryStore) -> None:
        """An empty state removes the snapshot of the active catalog."""
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        stored = save_snapshot(
            session_store, CatalogMode.SETS, {}, active_mode=CatalogMode.SETS
        )

        assert not stored
        assert load_snapshot(session_store, CatalogMode.SETS) is None

    def test_empty_state_keeps_inactive_snapshot(self, session_store: MemoryStore) -> None:
        """An empty state for a background catalog leaves its snapshot alone."""
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        save_snapshot(session_store, CatalogMode.SETS, {}, active_mode=CatalogMode.CARDS)

        assert load_snapshot(session_store, CatalogMode.SETS) == {"code": "lea"}


class TestCorruption:
    def test_invalid_json(self, session_store: MemoryStore, caplog) -> None:
        """Unparseable text reads as no snapshot and logs a warning."""
        session_store.set_item(snapshot_key(CatalogMode.SETS), "{not json")

        with caplog.at_level(logging.WARNING):
            assert load_snapshot(session_store, CatalogMode.SETS) is None

        assert "decode_recovered" in caplog.text

    def test_non_object_json(self, session_store: MemoryStore) -> None:
        """A JSON value that is not an object is corruption."""
        session_store.set_item(snapshot_key(CatalogMode.CARDS), json.dumps([1, 2]))

        result = read_snapshot(session_store, CatalogMode.CARDS)

        assert result.error is not None
        assert result.error.kind == DecodeFailureKind.STORAGE_CORRUPTION

    def test_unavailable_store(self, unavailable_store: UnavailableStore) -> None:
        """Unavailable storage reads as no snapshot."""
        result = read_snapshot(unavailable_store, CatalogMode.CARDS)

        assert result.error is not None
        assert result.error.kind == DecodeFailureKind.STORAGE_UNAVAILABLE
        assert load_snapshot(unavailable_store, CatalogMode.CARDS) is None

    def test_unavailable_store_writes_skipped(self, unavailable_store: UnavailableStore) -> None:
        """Writes to unavailable storage are skipped without raising."""
        assert not save_snapshot(unavailable_store, CatalogMode.CARDS, {"artist": "Rush"})
        clear_snapshot(unavailable_store, CatalogMode.CARDS)
        clear_all_snapshots(unavailable_store)
        clear_snapshot_field(unavailable_store, CatalogMode.CARDS, "artist")


class TestClearing:
    def test_clear_snapshot(self, session_store: MemoryStore) -> None:
        """Clearing removes only that catalog's snapshot."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        clear_snapshot(session_store, CatalogMode.CARDS)

        assert load_snapshot(session_store, CatalogMode.CARDS) is None
        assert load_snapshot(session_store, CatalogMode.SETS) == {"code": "lea"}

    def test_clear_all_snapshots(self, session_store: MemoryStore) -> None:
        """Clearing all removes both catalogs' snapshots."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        clear_all_snapshots(session_store)

        assert len(session_store) == 0

    def test_clear_one_field(self, session_store: MemoryStore) -> None:
        """Clearing a field keeps the rest of the snapshot."""
        save_snapshot(
            session_store,
            CatalogMode.CARDS,
            {"artist": "Rush", "sets": InclusionExclusion(include=["lea"])},
        )

        clear_snapshot_field(session_store, CatalogMode.CARDS, "sets")

        assert load_snapshot(session_store, CatalogMode.CARDS) == {"artist": "Rush"}

    def test_clearing_last_field_removes_snapshot(self, session_store: MemoryStore) -> None:
        """A snapshot left empty is removed."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})

        clear_snapshot_field(session_store, CatalogMode.CARDS, "artist")

        assert session_store.get_item(snapshot_key(CatalogMode.CARDS)) is None
