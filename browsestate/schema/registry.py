"""
Parameter schema registry.

The static table of every filterable attribute, its value shape, the
catalog(s) it applies to, and its URL encoding.

INVARIANT: within one catalog, no two entries share a state key or a URL
key, and no entry claims the mode-indicator key. Checked at import by
`validate_registry()`.
"""

from browsestate.config import FALLBACK_CURRENT_PAGE, FALLBACK_PAGE_SIZE, MODE_URL_PARAM
from browsestate.models.failure import SchemaError
from browsestate.models.filters import CatalogMode
from browsestate.models.parameter import (
    BooleanParameter,
    ColorFilterKeys,
    ColorFilterParameter,
    EnumParameter,
    InclusionExclusionKeys,
    InclusionExclusionParameter,
    NumberParameter,
    ParameterConfig,
    ParameterScope,
    StatFilterParameter,
    StringParameter,
)

SORT_BY_OPTIONS: tuple[str, ...] = (
    "name",
    "releasedAt",
    "collectorNumber",
    "mtgcbCollectorNumber",
    "rarityNumeric",
    "powerNumeric",
    "toughnessNumeric",
    "loyaltyNumeric",
    "convertedManaCost",
    "market",
    "low",
    "average",
    "high",
    "foil",
    "code",
    "cardCount",
    "setType",
)

SORT_ORDER_OPTIONS: tuple[str, ...] = ("asc", "desc")

SHOW_GOALS_OPTIONS: tuple[str, ...] = ("all", "complete", "incomplete")


def _include_exclude(
    name: str, mode: ParameterScope, include: str, exclude: str
) -> InclusionExclusionParameter:
    return InclusionExclusionParameter(
        name=name,
        mode=mode,
        url_params=InclusionExclusionKeys(include=include, exclude=exclude),
        separator="|",
    )


_ENTRIES: tuple[ParameterConfig, ...] = (
    # --- Pagination ---
    NumberParameter(
        name="cards_page",
        mode=ParameterScope.CARDS,
        state_key="current_page",
        url_param="cardsPage",
        default_value=FALLBACK_CURRENT_PAGE,
        in_snapshot=False,
    ),
    NumberParameter(
        name="cards_page_size",
        mode=ParameterScope.CARDS,
        state_key="page_size",
        url_param="cardsPageSize",
        default_value=FALLBACK_PAGE_SIZE,
        in_snapshot=False,
    ),
    NumberParameter(
        name="sets_page",
        mode=ParameterScope.SETS,
        state_key="current_page",
        url_param="setsPage",
        default_value=FALLBACK_CURRENT_PAGE,
        in_snapshot=False,
    ),
    NumberParameter(
        name="sets_page_size",
        mode=ParameterScope.SETS,
        state_key="page_size",
        url_param="setsPageSize",
        default_value=FALLBACK_PAGE_SIZE,
        in_snapshot=False,
    ),
    # --- Sorting ---
    EnumParameter(
        name="sort_by",
        mode=ParameterScope.BOTH,
        url_param="sortBy",
        options=SORT_BY_OPTIONS,
        default_value="releasedAt",
        in_snapshot=False,
    ),
    # Per catalog so each default matches its preference fallback
    EnumParameter(
        name="cards_sort_order",
        mode=ParameterScope.CARDS,
        state_key="sort_order",
        url_param="sortOrder",
        options=SORT_ORDER_OPTIONS,
        default_value="asc",
        in_snapshot=False,
    ),
    EnumParameter(
        name="sets_sort_order",
        mode=ParameterScope.SETS,
        state_key="sort_order",
        url_param="sortOrder",
        options=SORT_ORDER_OPTIONS,
        default_value="desc",
        in_snapshot=False,
    ),
    # --- Card search ---
    StringParameter(
        name="card_name",
        mode=ParameterScope.CARDS,
        state_key="name",
        url_param="name",
    ),
    StringParameter(name="oracle_text", mode=ParameterScope.CARDS, url_param="oracleText"),
    StringParameter(name="artist", mode=ParameterScope.CARDS, url_param="artist"),
    BooleanParameter(
        name="one_result_per_card_name",
        mode=ParameterScope.CARDS,
        url_param="oneResultPerCardName",
        default_value=False,
        in_snapshot=False,
    ),
    # Tri-state: absent, reserved only, or non-reserved only
    BooleanParameter(name="is_reserved", mode=ParameterScope.CARDS, url_param="isReserved"),
    BooleanParameter(
        name="include_bad_data_only",
        mode=ParameterScope.CARDS,
        url_param="includeBadDataOnly",
        default_value=False,
    ),
    ColorFilterParameter(
        name="colors",
        mode=ParameterScope.CARDS,
        url_params=ColorFilterKeys(
            colors="colors",
            match_type="colorMatchType",
            colorless="colorless",
        ),
        separator=",",
    ),
    _include_exclude("types", ParameterScope.CARDS, "includeTypes", "excludeTypes"),
    _include_exclude("layouts", ParameterScope.CARDS, "includeLayouts", "excludeLayouts"),
    _include_exclude("rarities", ParameterScope.CARDS, "includeRarities", "excludeRarities"),
    _include_exclude("sets", ParameterScope.CARDS, "includeSets", "excludeSets"),
    StatFilterParameter(
        name="stats",
        mode=ParameterScope.CARDS,
        url_param="stats",
        separator=",",
        condition_separator="|",
        assignment="=",
    ),
    # --- Set search ---
    StringParameter(
        name="set_name",
        mode=ParameterScope.SETS,
        state_key="name",
        url_param="setName",
    ),
    StringParameter(
        name="set_code",
        mode=ParameterScope.SETS,
        state_key="code",
        url_param="code",
    ),
    _include_exclude(
        "set_categories", ParameterScope.SETS, "includeCategories", "excludeCategories"
    ),
    _include_exclude("set_types", ParameterScope.SETS, "includeSetTypes", "excludeSetTypes"),
    _include_exclude(
        "completion_status",
        ParameterScope.SETS,
        "includeCompletionStatus",
        "excludeCompletionStatus",
    ),
    BooleanParameter(
        name="show_subsets",
        mode=ParameterScope.SETS,
        url_param="showSubsets",
        default_value=True,
        in_snapshot=False,
    ),
    BooleanParameter(
        name="include_subsets_in_sets",
        mode=ParameterScope.SETS,
        url_param="includeSubsetsInSets",
        default_value=False,
        in_snapshot=False,
    ),
    # --- User context, shared by both catalogs ---
    NumberParameter(name="selected_goal_id", mode=ParameterScope.BOTH, url_param="goalId"),
    EnumParameter(
        name="show_goals",
        mode=ParameterScope.BOTH,
        url_param="showGoals",
        options=SHOW_GOALS_OPTIONS,
        default_value="all",
    ),
    NumberParameter(
        name="selected_location_id",
        mode=ParameterScope.BOTH,
        url_param="locationId",
    ),
    BooleanParameter(
        name="include_child_locations",
        mode=ParameterScope.BOTH,
        url_param="includeChildLocations",
        default_value=False,
    ),
)

BROWSE_PARAMETER_SCHEMA: dict[str, ParameterConfig] = {entry.name: entry for entry in _ENTRIES}


def get_parameters_for_mode(mode: CatalogMode | str) -> dict[str, ParameterConfig]:
    """
    Entries that apply to `mode`: its own plus those scoped to both catalogs.

    Iteration order follows the registry and only affects the order of keys
    in emitted URLs.
    """
    catalog = CatalogMode(mode)
    return {
        name: config
        for name, config in BROWSE_PARAMETER_SCHEMA.items()
        if config.applies_to(catalog)
    }


def get_snapshot_parameters(mode: CatalogMode | str) -> dict[str, ParameterConfig]:
    """The search-criteria entries of `mode` that the session snapshot holds."""
    return {
        name: config
        for name, config in get_parameters_for_mode(mode).items()
        if config.in_snapshot
    }


def parameter_for_state_key(mode: CatalogMode | str, state_key: str) -> ParameterConfig | None:
    """The entry that owns `state_key` in `mode`, if any."""
    for config in get_parameters_for_mode(mode).values():
        if config.key == state_key:
            return config
    return None


def validate_registry(schema: dict[str, ParameterConfig] | None = None) -> None:
    """
    Check the per-catalog uniqueness invariants.

    Raises:
        SchemaError: If a state key or URL key is claimed twice within a
            catalog, an entry reuses the mode-indicator key, or a registry
            key does not match its entry's name.
    """
    if schema is None:
        schema = BROWSE_PARAMETER_SCHEMA

    for name, config in schema.items():
        if name != config.name:
            raise SchemaError(f"Registry key {name!r} does not match entry name {config.name!r}")

    for mode in CatalogMode:
        state_keys: dict[str, str] = {}
        url_keys: dict[str, str] = {}
        for name, config in schema.items():
            if not config.applies_to(mode):
                continue

            if config.key in state_keys:
                raise SchemaError(
                    f"State key {config.key!r} used by both {state_keys[config.key]!r} "
                    f"and {name!r} in {mode.value} mode"
                )
            state_keys[config.key] = name

            for url_key in config.url_keys():
                if url_key == MODE_URL_PARAM:
                    raise SchemaError(f"{name!r} uses the reserved key {MODE_URL_PARAM!r}")
                if url_key in url_keys:
                    raise SchemaError(
                        f"URL key {url_key!r} used by both {url_keys[url_key]!r} "
                        f"and {name!r} in {mode.value} mode"
                    )
                url_keys[url_key] = name


validate_registry()
