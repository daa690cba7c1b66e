from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="BROWSESTATE_")

    app_name: str = "BrowseState"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/browsestate"

    # Prefix shared by every session/preference storage key.
    # Existing browser stores use "mtgcb", so changing it orphans saved state.
    storage_key_prefix: str = "mtgcb"

    # Catalog shown when the URL does not name one
    default_mode: Literal["cards", "sets"] = "sets"


settings = Settings()


# =============================================================================
# LITERAL FALLBACKS
# =============================================================================

# Used when neither the URL, the snapshot nor the preferences supply a value
FALLBACK_CURRENT_PAGE = 1
FALLBACK_PAGE_SIZE = 20

# Query-string key naming the active catalog; never a registry entry
MODE_URL_PARAM = "contentType"
