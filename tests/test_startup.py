"""Tests for the startup resolver."""

import json
from unittest.mock import patch

from browsestate.models.filters import CatalogMode, InclusionExclusion
from browsestate.schema.url_adapter import state_to_query_string
from browsestate.services.startup import (
    StartupSource,
    build_default_search_state,
    initial_state,
    resolve_startup,
)
from browsestate.storage.backends import MemoryStore, UnavailableStore
from browsestate.storage.snapshot import load_snapshot, save_snapshot, snapshot_key

CARDS_DEFAULTS = {
    "current_page": 1,
    "page_size": 20,
    "sort_by": "releasedAt",
    "sort_order": "asc",
}
SETS_DEFAULTS = {
    "current_page": 1,
    "page_size": 20,
    "sort_by": "releasedAt",
    "sort_order": "desc",
    "show_subsets": True,
    "include_subsets_in_sets": False,
}


class TestNoUrl:
    def test_none_gives_literal_defaults(self) -> None:
        """Without a URL only literal defaults are used."""
        state = initial_state(None)

        assert state.cards_search_state == CARDS_DEFAULTS
        assert state.sets_search_state == SETS_DEFAULTS
        assert state.active_mode == CatalogMode.SETS

    def test_none_ignores_stores(self, session_store: MemoryStore) -> None:
        """Without a URL no store is consulted."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})

        state = initial_state(None, session_store)

        assert "artist" not in state.cards_search_state


class TestUrlPrecedence:
    def test_url_filters_beat_snapshot(self, session_store: MemoryStore) -> None:
        """URL filter keys win over a conflicting snapshot."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush", "current_page": 5})

        state = initial_state("?contentType=cards&artist=Guay", session_store)

        assert state.cards_search_state["artist"] == "Guay"
        assert state.cards_search_state["current_page"] == 1

    def test_url_is_authoritative_for_both_catalogs(self, session_store: MemoryStore) -> None:
        """With URL filters, neither catalog restores its snapshot."""
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        resolution = resolve_startup("?contentType=cards&artist=Guay", session_store)

        assert "code" not in resolution.state.sets_search_state
        assert resolution.sources == {
            CatalogMode.CARDS: StartupSource.URL,
            CatalogMode.SETS: StartupSource.URL,
        }

    def test_url_values_merge_over_defaults(self) -> None:
        """URL values are layered over the catalog defaults."""
        state = initial_state("?contentType=cards&includeRarities=rare|mythic")

        assert state.active_mode == CatalogMode.CARDS
        assert state.cards_search_state == {
            **CARDS_DEFAULTS,
            "rarities": InclusionExclusion(include=["rare", "mythic"]),
        }

    def test_shared_ascending_sets_link(self) -> None:
        """An ascending sets link keeps its sort order through encode and resolve."""
        sets_state = {**SETS_DEFAULTS, "name": "Alpha", "sort_order": "asc"}
        link = state_to_query_string(sets_state, CatalogMode.SETS)

        state = initial_state(link)

        assert "sortOrder=asc" in link
        assert state.sets_search_state["sort_order"] == "asc"

    def test_malformed_tokens_reported(self) -> None:
        """Dropped URL tokens are reported and replaced by defaults."""
        resolution = resolve_startup("?contentType=cards&cardsPage=abc")

        assert resolution.state.cards_search_state["current_page"] == 1
        assert [error.key for error in resolution.errors] == ["current_page"]


class TestSnapshotPrecedence:
    def test_snapshot_merged_over_defaults(self, session_store: MemoryStore) -> None:
        """Without URL filters the snapshot is restored over defaults."""
        rarities = InclusionExclusion(include=["rare"])
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush", "rarities": rarities})

        state = initial_state("?contentType=cards", session_store)

        assert state.cards_search_state == {
            **CARDS_DEFAULTS,
            "artist": "Rush",
            "rarities": rarities,
        }

    def test_mode_only_url_uses_snapshot_path(self, session_store: MemoryStore) -> None:
        """A URL naming only the catalog takes the snapshot-or-defaults path."""
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        resolution = resolve_startup("?contentType=sets", session_store)

        assert resolution.state.active_mode == CatalogMode.SETS
        assert resolution.state.sets_search_state == {**SETS_DEFAULTS, "code": "lea"}
        assert resolution.sources[CatalogMode.SETS] == StartupSource.SNAPSHOT
        assert resolution.sources[CatalogMode.CARDS] == StartupSource.DEFAULTS

    def test_corrupt_snapshot_isolated(self, session_store: MemoryStore) -> None:
        """A corrupt snapshot affects only its own catalog."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})
        session_store.set_item(snapshot_key(CatalogMode.SETS), "{corrupt")

        state = initial_state("", session_store)

        assert state.sets_search_state == SETS_DEFAULTS
        assert state.cards_search_state == {**CARDS_DEFAULTS, "artist": "Rush"}

    def test_unavailable_session_store(self, unavailable_store: UnavailableStore) -> None:
        """Unavailable storage falls back to defaults."""
        state = initial_state("?contentType=cards", unavailable_store, unavailable_store)

        assert state.cards_search_state == CARDS_DEFAULTS
        assert state.sets_search_state == SETS_DEFAULTS

    def test_missing_mode_uses_configured_default(self) -> None:
        """Without a mode indicator the configured catalog is active."""
        assert initial_state("").active_mode == CatalogMode.SETS

    def test_unknown_mode_uses_configured_default(self) -> None:
        """An unknown mode indicator falls back to the configured catalog."""
        assert initial_state("?contentType=decks").active_mode == CatalogMode.SETS


class TestPreferences:
    def test_preferences_in_defaults(self, preference_store: MemoryStore) -> None:
        """Stored preferences replace literal defaults."""
        preference_store.set_item("mtgcb_preferred_sort_by_cards", json.dumps("name"))
        preference_store.set_item("cardsPageSize", "100")

        state = initial_state("?contentType=cards", None, preference_store)

        assert state.cards_search_state["sort_by"] == "name"
        assert state.cards_search_state["page_size"] == 100

    def test_url_beats_preferences(self, preference_store: MemoryStore) -> None:
        """URL values override stored preferences."""
        preference_store.set_item("mtgcb_preferred_sort_by_cards", json.dumps("name"))

        state = initial_state("?contentType=cards&sortBy=market", None, preference_store)

        assert state.cards_search_state["sort_by"] == "market"

    def test_preference_change_beats_earlier_snapshot(
        self, session_store: MemoryStore, preference_store: MemoryStore
    ) -> None:
        """A preference changed after a snapshot was saved applies on reload."""
        preference_store.set_item("mtgcb_preferred_sort_by_cards", json.dumps("name"))
        loaded = initial_state("?contentType=cards", session_store, preference_store)
        save_snapshot(
            session_store, CatalogMode.CARDS, {**loaded.cards_search_state, "artist": "Rush"}
        )

        preference_store.set_item("mtgcb_preferred_sort_by_cards", json.dumps("market"))
        state = initial_state("?contentType=cards", session_store, preference_store)

        assert state.cards_search_state["sort_by"] == "market"
        assert state.cards_search_state["artist"] == "Rush"

    def test_startup_never_writes(
        self, session_store: MemoryStore, preference_store: MemoryStore
    ) -> None:
        """Resolving the initial state writes to no store."""
        initial_state("?contentType=cards&artist=Guay", session_store, preference_store)
        initial_state("?contentType=sets", session_store, preference_store)

        assert len(session_store) == 0
        assert len(preference_store) == 0


class TestFailSafe:
    def test_same_inputs_same_state(self, session_store: MemoryStore) -> None:
        """Resolution is idempotent."""
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})

        first = initial_state("?contentType=cards", session_store)
        second = initial_state("?contentType=cards", session_store)

        assert first == second

    def test_unexpected_error_falls_back_per_mode(
        self, session_store: MemoryStore, preference_store: MemoryStore
    ) -> None:
        """An unexpected failure in one catalog leaves the other intact."""
        preference_store.set_item("mtgcb_preferred_sort_by_sets", json.dumps("name"))
        preference_store.set_item("setsPageSize", "60")
        save_snapshot(session_store, CatalogMode.CARDS, {"artist": "Rush"})
        save_snapshot(session_store, CatalogMode.SETS, {"code": "lea"})

        def flaky_load(store, mode):
            if mode == CatalogMode.SETS:
                raise RuntimeError("boom")
            return load_snapshot(store, mode)

        with patch("browsestate.services.startup.load_snapshot", side_effect=flaky_load):
            resolution = resolve_startup("", session_store, preference_store)

        assert resolution.state.sets_search_state == {
            **SETS_DEFAULTS,
            "sort_by": "name",
            "page_size": 60,
        }
        assert resolution.state.sets_search_state == build_default_search_state(
            CatalogMode.SETS, preference_store
        )
        assert resolution.state.cards_search_state["artist"] == "Rush"
        assert resolution.sources[CatalogMode.SETS] == StartupSource.DEFAULTS
