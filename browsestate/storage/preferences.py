"""
Stored browse preferences.

Preferences describe how the user likes to browse (sort, page size,
display toggles), not what they are searching for. They live in the
long-lived store, are scalar only, and are read field by field: one bad
value falls back to its own default without disturbing the others.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from browsestate.config import FALLBACK_PAGE_SIZE, settings
from browsestate.models.failure import (
    DecodeFailureKind,
    Decoded,
    StorageUnavailableError,
    merge_decoded,
)
from browsestate.models.filters import CatalogMode
from browsestate.models.state import SearchState
from browsestate.schema.registry import SORT_BY_OPTIONS
from browsestate.storage.backends import KeyValueStore


class _BrowsePreferences(BaseModel):
    sort_by: str = "releasedAt"
    sort_order: Literal["asc", "desc"] = "asc"
    page_size: int = Field(default=FALLBACK_PAGE_SIZE, gt=0)

    @field_validator("sort_by")
    @classmethod
    def _known_sort(cls, value: str) -> str:
        if value not in SORT_BY_OPTIONS:
            raise ValueError(f"unknown sort field: {value}")
        return value

    def to_search_state(self) -> SearchState:
        return {
            "sort_by": self.sort_by,
            "sort_order": self.sort_order,
            "page_size": self.page_size,
        }


class CardsPreferences(_BrowsePreferences):
    """Preferences for the cards catalog."""

    one_result_per_card_name: bool = False

    def to_search_state(self) -> SearchState:
        state = super().to_search_state()
        # Only present when on, so a cleared toggle reads as absent
        if self.one_result_per_card_name:
            state["one_result_per_card_name"] = True
        return state


class SetsPreferences(_BrowsePreferences):
    """Preferences for the sets catalog."""

    sort_order: Literal["asc", "desc"] = "desc"
    show_subsets: bool = True
    include_subsets_in_sets: bool = False

    def to_search_state(self) -> SearchState:
        state = super().to_search_state()
        state["show_subsets"] = self.show_subsets
        state["include_subsets_in_sets"] = self.include_subsets_in_sets
        return state


BrowsePreferences = CardsPreferences | SetsPreferences

_MODELS: dict[CatalogMode, type[CardsPreferences] | type[SetsPreferences]] = {
    CatalogMode.CARDS: CardsPreferences,
    CatalogMode.SETS: SetsPreferences,
}


def preference_keys(mode: CatalogMode | str) -> dict[str, str]:
    """Field name -> storage key for one catalog's preferences."""
    catalog = CatalogMode(mode)
    prefix = settings.storage_key_prefix
    keys = {
        "sort_by": f"{prefix}_preferred_sort_by_{catalog.value}",
        "sort_order": f"{prefix}_preferred_sort_order_{catalog.value}",
        "page_size": f"{catalog.value}PageSize",
    }
    if catalog == CatalogMode.CARDS:
        keys["one_result_per_card_name"] = f"{prefix}_preferred_one_result_per_card"
    else:
        keys["show_subsets"] = f"{prefix}_preferred_show_subsets"
        keys["include_subsets_in_sets"] = f"{prefix}_preferred_include_subsets_in_sets"
    return keys


def default_preferences(mode: CatalogMode | str) -> BrowsePreferences:
    """Preferences with every field at its fallback."""
    return _MODELS[CatalogMode(mode)]()


def _validate_field(
    model: type[CardsPreferences] | type[SetsPreferences], field: str, value: Any
) -> Any:
    """Validate one field in isolation. Raises ValidationError."""
    return getattr(model.model_validate({field: value}, strict=True), field)


def _read_field(
    store: KeyValueStore,
    model: type[CardsPreferences] | type[SetsPreferences],
    field: str,
    key: str,
) -> Decoded[Any]:
    try:
        text = store.get_item(key)
    except StorageUnavailableError as e:
        return Decoded.failed(DecodeFailureKind.STORAGE_UNAVAILABLE, key, str(e))

    if text is None:
        return Decoded.absent()

    try:
        return Decoded.ok(_validate_field(model, field, json.loads(text)))
    except json.JSONDecodeError as e:
        return Decoded.failed(DecodeFailureKind.STORAGE_CORRUPTION, key, f"invalid JSON: {e.msg}")
    except ValidationError as e:
        return Decoded.failed(
            DecodeFailureKind.STORAGE_CORRUPTION, key, f"{e.error_count()} validation errors"
        )


def load_preferences(store: KeyValueStore | None, mode: CatalogMode | str) -> BrowsePreferences:
    """
    Read one catalog's preferences.

    Each field falls back to its default independently when missing,
    corrupt or unreadable. Never raises.
    """
    catalog = CatalogMode(mode)
    model = _MODELS[catalog]
    if store is None:
        return model()

    results = {
        field: _read_field(store, model, field, key)
        for field, key in preference_keys(catalog).items()
    }
    values: dict[str, Any] = {}
    merge_decoded(values, results)
    return model(**values)


def store_preference(
    store: KeyValueStore, mode: CatalogMode | str, field: str, value: Any
) -> None:
    """
    Validate and write one preference.

    Used by the settings surface; the startup path never writes here.

    Raises:
        KeyError: If `field` is not a preference of `mode`
        ValidationError: If `value` is not valid for `field`
        StorageUnavailableError: If the store cannot be written
    """
    catalog = CatalogMode(mode)
    key = preference_keys(catalog)[field]
    validated = _validate_field(_MODELS[catalog], field, value)
    store.set_item(key, json.dumps(validated))
