from browsestate.models.failure import (
    DecodeError,
    DecodeFailureKind,
    Decoded,
    InvalidValueError,
    SchemaError,
    StorageUnavailableError,
    merge_decoded,
)
from browsestate.models.filters import (
    CatalogMode,
    ColorFilter,
    ColorMatchType,
    InclusionExclusion,
    StatFilters,
    stat_filters_empty,
)
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
    ParameterType,
    StatFilterParameter,
    StringParameter,
)
from browsestate.models.state import BrowseState, SearchState

__all__ = [
    "BooleanParameter",
    "BrowseState",
    "CatalogMode",
    "ColorFilter",
    "ColorFilterKeys",
    "ColorFilterParameter",
    "ColorMatchType",
    "DecodeError",
    "DecodeFailureKind",
    "Decoded",
    "InvalidValueError",
    "EnumParameter",
    "InclusionExclusion",
    "InclusionExclusionKeys",
    "InclusionExclusionParameter",
    "NumberParameter",
    "ParameterConfig",
    "ParameterScope",
    "ParameterType",
    "SchemaError",
    "SearchState",
    "StatFilterParameter",
    "StatFilters",
    "StorageUnavailableError",
    "StringParameter",
    "merge_decoded",
    "stat_filters_empty",
]
