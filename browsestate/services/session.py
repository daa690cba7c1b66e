"""
Browse session.

Owns the BrowseState for one tab. Rendering code reads through the
accessors and mutates through the setters; `settle()` is called once a
mutation has been applied and produces the two side effects of a change:
the rewritten query string and the snapshot write.

INVARIANT: the state is only ever replaced per catalog, never mutated in
place, so values handed out earlier stay valid.
"""

import logging
from typing import Any

from browsestate.config import FALLBACK_CURRENT_PAGE, FALLBACK_PAGE_SIZE
from browsestate.models.failure import InvalidValueError
from browsestate.models.filters import CatalogMode
from browsestate.models.state import BrowseState, SearchState
from browsestate.schema.codecs import coerce_value
from browsestate.schema.registry import parameter_for_state_key
from browsestate.schema.url_adapter import convert_state_to_url_params, state_to_query_string
from browsestate.services.startup import build_default_search_state, initial_state
from browsestate.storage.backends import KeyValueStore
from browsestate.storage.snapshot import clear_snapshot, save_snapshot

logger = logging.getLogger(__name__)

PAGINATION_KEYS = frozenset({"current_page", "page_size"})

# User context follows the user across both catalogs
SHARED_CONTEXT_KEYS = frozenset(
    {"selected_goal_id", "selected_location_id", "include_child_locations", "show_goals"}
)


class BrowseSession:
    """Search state for both catalogs plus the stores it persists to."""

    def __init__(
        self,
        state: BrowseState,
        session_store: KeyValueStore | None = None,
        preference_store: KeyValueStore | None = None,
    ) -> None:
        self._state = state
        self._session_store = session_store
        self._preference_store = preference_store

    @classmethod
    def start(
        cls,
        url_text: str | None,
        session_store: KeyValueStore | None = None,
        preference_store: KeyValueStore | None = None,
    ) -> "BrowseSession":
        """Resolve the initial state for a page load and wrap it."""
        return cls(
            initial_state(url_text, session_store, preference_store),
            session_store,
            preference_store,
        )

    # --- Reads ---

    @property
    def state(self) -> BrowseState:
        """Independent copy of the whole state."""
        return self._state.clone()

    @property
    def active_mode(self) -> CatalogMode:
        return self._state.active_mode

    def search_state(self, mode: CatalogMode | str) -> SearchState:
        return dict(self._state.search_state(mode))

    def current_search_state(self) -> SearchState:
        return dict(self._state.current())

    @property
    def current_page(self) -> int:
        return self._state.current().get("current_page", FALLBACK_CURRENT_PAGE)

    @property
    def page_size(self) -> int:
        return self._state.current().get("page_size", FALLBACK_PAGE_SIZE)

    @property
    def sort_by(self) -> str | None:
        return self._state.current().get("sort_by")

    @property
    def sort_order(self) -> str | None:
        return self._state.current().get("sort_order")

    @property
    def show_goals(self) -> str:
        return self._state.current().get("show_goals", "all")

    @property
    def include_child_locations(self) -> bool:
        return self._state.current().get("include_child_locations", False)

    # --- Mutations ---

    def set_active_mode(self, mode: str) -> None:
        """Switch catalogs. Unknown values select the cards catalog."""
        try:
            catalog = CatalogMode(mode)
        except ValueError:
            logger.debug("unknown_mode_coerced", extra={"mode": repr(mode)})
            catalog = CatalogMode.CARDS

        if catalog == self._state.active_mode:
            return
        self._state.active_mode = catalog

    def set_value(self, key: str, value: Any, mode: CatalogMode | str | None = None) -> None:
        """
        Set one field, or delete it when `value` is empty for its shape.

        Composite filters may be given as models or as plain mappings such
        as `{"include": ["rare"], "exclude": []}`. User-context fields are
        written to both catalogs. Changing any field other than pagination
        sends the catalog back to page 1.

        Raises:
            KeyError: If `key` is not a field of the target catalog
            InvalidValueError: If `value` does not fit the field's shape
        """
        if key in SHARED_CONTEXT_KEYS:
            targets = list(CatalogMode)
        else:
            targets = [CatalogMode(mode) if mode is not None else self._state.active_mode]

        for catalog in targets:
            config = parameter_for_state_key(catalog, key)
            if config is None:
                raise KeyError(f"{key!r} is not a {catalog.value} search field")

            decoded = coerce_value(config, value)
            if decoded.error is not None:
                raise InvalidValueError(
                    f"Invalid {catalog.value} value for {key!r}: {decoded.error.detail}"
                )

            previous = self._state.search_state(catalog)
            updated = dict(previous)
            if decoded.present:
                updated[key] = decoded.value
            else:
                updated.pop(key, None)

            if updated == previous:
                continue
            if key not in PAGINATION_KEYS:
                updated["current_page"] = FALLBACK_CURRENT_PAGE
            self._state.replace(catalog, updated)

    def set_pagination(self, current_page: int | None = None, page_size: int | None = None) -> None:
        """Update pagination for the active catalog without touching criteria."""
        updated = dict(self._state.current())
        if current_page is not None:
            updated["current_page"] = current_page
        if page_size is not None:
            updated["page_size"] = page_size
        self._state.replace(self._state.active_mode, updated)

    def clear_selected_goal(self) -> None:
        """Drop the goal and its visibility filter from both catalogs."""
        for catalog in CatalogMode:
            updated = dict(self._state.search_state(catalog))
            updated.pop("selected_goal_id", None)
            updated.pop("show_goals", None)
            self._state.replace(catalog, updated)

    def reset_search(self, preserve_goal: bool = False, preserve_location: bool = False) -> None:
        """
        Clear the active catalog's search.

        Pagination is kept and preferences are restored; everything else
        goes, along with the catalog's snapshot. Goal and location are
        cleared in both catalogs unless preserved.
        """
        catalog = self._state.active_mode
        current = self._state.current()

        fresh = build_default_search_state(catalog, self._preference_store)
        fresh["current_page"] = current.get("current_page", FALLBACK_CURRENT_PAGE)
        fresh["page_size"] = current.get("page_size", FALLBACK_PAGE_SIZE)
        if preserve_goal and "selected_goal_id" in current:
            fresh["selected_goal_id"] = current["selected_goal_id"]
        if preserve_location and "selected_location_id" in current:
            fresh["selected_location_id"] = current["selected_location_id"]
        self._state.replace(catalog, fresh)

        other = next(mode for mode in CatalogMode if mode != catalog)
        updated = dict(self._state.search_state(other))
        if not preserve_goal:
            updated.pop("selected_goal_id", None)
        if not preserve_location:
            updated.pop("selected_location_id", None)
        self._state.replace(other, updated)

        if self._session_store is not None:
            clear_snapshot(self._session_store, catalog)
        logger.info("search_reset", extra={"mode": catalog.value})

    def reset_all_searches(self) -> None:
        """Return both catalogs to pagination plus preferences. Snapshots stay."""
        for catalog in CatalogMode:
            current = self._state.search_state(catalog)
            fresh = build_default_search_state(catalog, self._preference_store)
            fresh["current_page"] = current.get("current_page", FALLBACK_CURRENT_PAGE)
            fresh["page_size"] = current.get("page_size", FALLBACK_PAGE_SIZE)
            self._state.replace(catalog, fresh)

    # --- Side effects ---

    def url_params(self) -> dict[str, str]:
        return convert_state_to_url_params(self._state.current(), self._state.active_mode)

    def query_string(self) -> str:
        return state_to_query_string(self._state.current(), self._state.active_mode)

    def settle(self) -> str:
        """
        Apply the side effects of the latest change.

        Writes the active catalog's snapshot and returns the query string
        the address bar should show. Calling it twice is harmless.
        """
        catalog = self._state.active_mode
        if self._session_store is not None:
            save_snapshot(self._session_store, catalog, self._state.current(), active_mode=catalog)
        return self.query_string()
