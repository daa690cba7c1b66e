"""
Startup resolver.

Builds the initial browse state from the sources available on a cold
start, in priority order:

1. URL parameters (shared links)
2. Session snapshot (reload of an active search)
3. Stored preferences (sort, page size, toggles)
4. Literal fallbacks

The URL wins outright when it carries any key besides the mode
indicator; otherwise each catalog independently uses its snapshot, if
one exists, over its defaults.

FAIL-SAFE: a failure while resolving one catalog is logged and that
catalog falls back to its defaults. Startup never fails.
INVARIANT: the same inputs always produce the same state.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from browsestate.config import FALLBACK_CURRENT_PAGE, FALLBACK_PAGE_SIZE, settings
from browsestate.models.failure import DecodeError
from browsestate.models.filters import CatalogMode
from browsestate.models.state import BrowseState, SearchState
from browsestate.schema.url_adapter import decode_url, has_filter_params, read_mode
from browsestate.storage.backends import KeyValueStore
from browsestate.storage.preferences import load_preferences
from browsestate.storage.snapshot import load_snapshot

logger = logging.getLogger(__name__)


class StartupSource(str, Enum):
    """Where a catalog's initial state came from."""

    DEFAULTS = "defaults"
    URL = "url"
    SNAPSHOT = "snapshot"


@dataclass
class StartupResolution:
    """Resolved state plus how each catalog was resolved."""

    state: BrowseState
    sources: dict[CatalogMode, StartupSource] = field(default_factory=dict)
    errors: list[DecodeError] = field(default_factory=list)


def build_default_search_state(
    mode: CatalogMode | str,
    preference_store: KeyValueStore | None = None,
) -> SearchState:
    """Preferences layered over literal fallbacks for one catalog."""
    state: SearchState = {
        "current_page": FALLBACK_CURRENT_PAGE,
        "page_size": FALLBACK_PAGE_SIZE,
    }
    state.update(load_preferences(preference_store, mode).to_search_state())
    return state


def build_default_state(
    preference_store: KeyValueStore | None = None,
    active_mode: CatalogMode | None = None,
) -> BrowseState:
    """Default state for both catalogs."""
    return BrowseState(
        cards_search_state=build_default_search_state(CatalogMode.CARDS, preference_store),
        sets_search_state=build_default_search_state(CatalogMode.SETS, preference_store),
        active_mode=active_mode or CatalogMode(settings.default_mode),
    )


def _resolve_mode(
    mode: CatalogMode,
    url_text: str,
    url_authoritative: bool,
    session_store: KeyValueStore | None,
    preference_store: KeyValueStore | None,
) -> tuple[SearchState, StartupSource, list[DecodeError]]:
    defaults = build_default_search_state(mode, preference_store)

    if url_authoritative:
        from_url, errors = decode_url(url_text, mode)
        return {**defaults, **from_url}, StartupSource.URL, errors

    if session_store is None:
        return defaults, StartupSource.DEFAULTS, []

    snapshot = load_snapshot(session_store, mode)
    if snapshot is None:
        return defaults, StartupSource.DEFAULTS, []
    return {**defaults, **snapshot}, StartupSource.SNAPSHOT, []


def resolve_startup(
    url_text: str | None,
    session_store: KeyValueStore | None = None,
    preference_store: KeyValueStore | None = None,
) -> StartupResolution:
    """
    Resolve the initial browse state.

    Args:
        url_text: Current query string, or None outside a browser context
            (server render, no URL). None short-circuits to literal
            defaults without consulting any store.
        session_store: Session-scoped store holding snapshots, if available
        preference_store: Long-lived store holding preferences, if available

    Returns:
        StartupResolution with the state, the source used per catalog and
        any malformed URL tokens that were dropped.
    """
    if url_text is None:
        return StartupResolution(
            state=build_default_state(),
            sources={mode: StartupSource.DEFAULTS for mode in CatalogMode},
        )

    active_mode = read_mode(url_text) or CatalogMode(settings.default_mode)
    url_authoritative = has_filter_params(url_text)
    resolution = StartupResolution(state=BrowseState(active_mode=active_mode))

    for mode in CatalogMode:
        try:
            search_state, source, errors = _resolve_mode(
                mode, url_text, url_authoritative, session_store, preference_store
            )
        except Exception:
            logger.exception("startup_mode_fallback", extra={"mode": mode.value})
            search_state = build_default_search_state(mode, preference_store)
            source, errors = StartupSource.DEFAULTS, []

        resolution.state.replace(mode, search_state)
        resolution.sources[mode] = source
        resolution.errors.extend(errors)

    logger.info(
        "startup_resolved",
        extra={
            "active_mode": active_mode.value,
            "cards_source": resolution.sources[CatalogMode.CARDS].value,
            "sets_source": resolution.sources[CatalogMode.SETS].value,
            "dropped_tokens": len(resolution.errors),
        },
    )
    return resolution


def initial_state(
    url_text: str | None,
    session_store: KeyValueStore | None = None,
    preference_store: KeyValueStore | None = None,
) -> BrowseState:
    """Initial browse state for one page load. See `resolve_startup`."""
    return resolve_startup(url_text, session_store, preference_store).state
