from browsestate.api.browse import router as browse_router
from browsestate.api.health import router as health_router

__all__ = [
    "browse_router",
    "health_router",
]
