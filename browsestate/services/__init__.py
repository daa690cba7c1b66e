from browsestate.services.session import BrowseSession
from browsestate.services.startup import (
    StartupResolution,
    StartupSource,
    build_default_search_state,
    build_default_state,
    initial_state,
    resolve_startup,
)

__all__ = [
    # Session
    "BrowseSession",
    # Startup
    "StartupResolution",
    "StartupSource",
    "build_default_search_state",
    "build_default_state",
    "initial_state",
    "resolve_startup",
]
