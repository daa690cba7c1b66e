"""
Browse state owned by one session/tab.

A SearchState holds only the values the user (or the URL, snapshot or
preferences) actually set. A missing key means "use the default", never
"use None".
"""

import copy
from dataclasses import dataclass, field
from typing import Any

from browsestate.models.filters import CatalogMode

SearchState = dict[str, Any]


@dataclass
class BrowseState:
    """Both catalogs' search states plus which one is current."""

    cards_search_state: SearchState = field(default_factory=dict)
    sets_search_state: SearchState = field(default_factory=dict)
    active_mode: CatalogMode = CatalogMode.SETS

    def search_state(self, mode: CatalogMode | str) -> SearchState:
        """Search state for a specific catalog."""
        if CatalogMode(mode) == CatalogMode.CARDS:
            return self.cards_search_state
        return self.sets_search_state

    def current(self) -> SearchState:
        """Search state for the active catalog."""
        return self.search_state(self.active_mode)

    def replace(self, mode: CatalogMode | str, state: SearchState) -> None:
        """Swap in a new search state for one catalog."""
        if CatalogMode(mode) == CatalogMode.CARDS:
            self.cards_search_state = state
        else:
            self.sets_search_state = state

    def clone(self) -> "BrowseState":
        # StatFilters are plain dicts of lists
        return BrowseState(
            cards_search_state=copy.deepcopy(self.cards_search_state),
            sets_search_state=copy.deepcopy(self.sets_search_state),
            active_mode=self.active_mode,
        )
