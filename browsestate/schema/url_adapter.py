"""
URL state adapter.

Applies the type codecs across the whole registry:
- `parse_url_to_state`: query string -> search state for one catalog
- `convert_state_to_url_params`: search state -> query parameters

INVARIANT: defaults are a fixed point. For any state produced by
`parse_url_to_state`, encoding and decoding again yields an equal state.

Unrecognized query keys are ignored on decode and never written back.
"""

import logging
from collections.abc import Mapping
from urllib.parse import parse_qsl, urlencode

from browsestate.config import MODE_URL_PARAM
from browsestate.models.failure import DecodeError, merge_decoded
from browsestate.models.filters import CatalogMode
from browsestate.models.state import SearchState
from browsestate.schema.codecs import (
    coerce_value,
    decode_parameter,
    encode_parameter,
    is_suppressed,
)
from browsestate.schema.registry import get_parameters_for_mode

logger = logging.getLogger(__name__)

UrlSource = str | Mapping[str, str] | None


def query_lookup(source: UrlSource) -> dict[str, str]:
    """
    Normalize a query string or mapping into a first-value-per-key lookup.

    Accepts text with or without the leading "?". Repeated keys keep their
    first value, matching how browsers read a single parameter.
    """
    if source is None:
        return {}
    if not isinstance(source, str):
        return dict(source)

    text = source[1:] if source.startswith("?") else source
    lookup: dict[str, str] = {}
    for key, value in parse_qsl(text, keep_blank_values=True):
        lookup.setdefault(key, value)
    return lookup


def read_mode(source: UrlSource) -> CatalogMode | None:
    """The catalog named by the mode indicator, or None if missing/unknown."""
    raw = query_lookup(source).get(MODE_URL_PARAM)
    try:
        return CatalogMode(raw)
    except ValueError:
        return None


def has_filter_params(source: UrlSource) -> bool:
    """True when the URL carries any key besides the mode indicator."""
    return any(key != MODE_URL_PARAM for key in query_lookup(source))


def decode_url(source: UrlSource, mode: CatalogMode | str) -> tuple[SearchState, list[DecodeError]]:
    """
    Decode every parameter that applies to `mode`.

    Returns:
        Tuple of (state, errors) where state holds only the values present
        in the URL and errors lists the malformed tokens that were dropped.
    """
    lookup = query_lookup(source)
    results = {
        config.key: decode_parameter(lookup, config)
        for config in get_parameters_for_mode(mode).values()
    }
    state: SearchState = {}
    errors = merge_decoded(state, results)
    return state, errors


def parse_url_to_state(source: UrlSource, mode: CatalogMode | str) -> SearchState:
    """Query string -> search state for `mode`. Never raises on bad input."""
    state, _ = decode_url(source, mode)
    return state


def convert_state_to_url_params(state: SearchState, mode: CatalogMode | str) -> dict[str, str]:
    """
    Search state -> ordered query parameters for `mode`.

    The mode indicator always comes first so links describe themselves.
    Composite values may be models or plain mappings. Values that are None,
    equal to their default, empty for their shape or of the wrong shape are
    left out, as are keys that do not apply to `mode`.
    """
    catalog = CatalogMode(mode)
    params: dict[str, str] = {MODE_URL_PARAM: catalog.value}

    for config in get_parameters_for_mode(catalog).values():
        decoded = coerce_value(config, state.get(config.key))
        if decoded.is_failure:
            logger.debug("encode_skipped", extra={"key": config.key, "detail": str(decoded.error)})
            continue
        if is_suppressed(config, decoded.value):
            continue
        params.update(encode_parameter(decoded.value, config))

    return params


def state_to_query_string(state: SearchState, mode: CatalogMode | str) -> str:
    """Encoded query string (without "?") for `state`."""
    return urlencode(convert_state_to_url_params(state, mode))
