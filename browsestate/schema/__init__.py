"""
Declarative browse parameter schema and the adapters built from it.

Registry: what every filterable attribute looks like.
Codecs: how one value shape is written to and read from a URL.
URL adapter: the codecs applied across the registry for one catalog.
"""

from browsestate.schema.codecs import (
    CODECS,
    codec_for,
    coerce_value,
    decode_parameter,
    encode_parameter,
    is_empty_value,
    is_suppressed,
    value_from_json,
    value_to_json,
)
from browsestate.schema.registry import (
    BROWSE_PARAMETER_SCHEMA,
    SHOW_GOALS_OPTIONS,
    SORT_BY_OPTIONS,
    SORT_ORDER_OPTIONS,
    get_parameters_for_mode,
    get_snapshot_parameters,
    parameter_for_state_key,
    validate_registry,
)
from browsestate.schema.url_adapter import (
    convert_state_to_url_params,
    decode_url,
    has_filter_params,
    parse_url_to_state,
    query_lookup,
    read_mode,
    state_to_query_string,
)

__all__ = [
    # Registry
    "BROWSE_PARAMETER_SCHEMA",
    "SHOW_GOALS_OPTIONS",
    "SORT_BY_OPTIONS",
    "SORT_ORDER_OPTIONS",
    "get_parameters_for_mode",
    "get_snapshot_parameters",
    "parameter_for_state_key",
    "validate_registry",
    # Codecs
    "CODECS",
    "codec_for",
    "coerce_value",
    "decode_parameter",
    "encode_parameter",
    "is_empty_value",
    "is_suppressed",
    "value_from_json",
    "value_to_json",
    # URL adapter
    "convert_state_to_url_params",
    "decode_url",
    "has_filter_params",
    "parse_url_to_state",
    "query_lookup",
    "read_mode",
    "state_to_query_string",
]
