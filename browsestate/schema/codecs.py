"""
Type codecs: one encode/decode pair per parameter value shape.

Each codec converts between a value of its shape and the query-string
text that represents it, and also owns:
- the shape's emptiness rule (values that encode to nothing)
- the JSON form used by snapshots and the HTTP surface

Decoding never raises. A value that is present but unusable comes back
as `Decoded.failed(...)`; the caller applies it through `merge_decoded()`.

Composite tokens are joined with schema-configured separators. Inside a
token, "%" and the separators that would split it are percent-escaped
before joining and unescaped after splitting, so tokens without those
characters produce exactly the same text as before escaping existed.
"""

import logging
import re
from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, unquote

from pydantic import TypeAdapter, ValidationError

from browsestate.models.failure import DecodeFailureKind, Decoded, SchemaError
from browsestate.models.filters import (
    ColorFilter,
    ColorMatchType,
    InclusionExclusion,
    StatFilters,
    stat_filters_empty,
)
from browsestate.models.parameter import (
    BooleanParameter,
    ColorFilterParameter,
    EnumParameter,
    InclusionExclusionParameter,
    NumberParameter,
    ParameterConfig,
    ParameterType,
    StatFilterParameter,
    StringParameter,
)

logger = logging.getLogger(__name__)

# First value per key, the way URLSearchParams.get() reads a query string
QueryLookup = Mapping[str, str]

# Leading base-10 integer; trailing garbage is ignored ("12abc" -> 12)
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

_STAT_FILTERS_ADAPTER: TypeAdapter[StatFilters] = TypeAdapter(StatFilters)


def _escape_token(token: str, reserved: str) -> str:
    escaped = token.replace("%", "%25")
    for char in reserved:
        escaped = escaped.replace(char, quote(char, safe=""))
    return escaped


def _unescape_token(token: str) -> str:
    return unquote(token) if "%" in token else token


def _split_tokens(text: str, separator: str) -> list[str]:
    """Split a joined list, dropping empty tokens."""
    return [_unescape_token(token) for token in text.split(separator) if token]


def _join_tokens(tokens: list[str], separator: str, reserved: str = "") -> str:
    reserved = reserved or separator
    return separator.join(_escape_token(token, reserved) for token in tokens)


class ShapeCodec:
    """Encode/decode pair for one value shape."""

    def decode(self, params: QueryLookup, config: Any) -> Decoded[Any]:
        raise NotImplementedError

    def encode(self, value: Any, config: Any) -> dict[str, str]:
        """Query keys to write. Empty when the value encodes to nothing."""
        raise NotImplementedError

    def is_empty(self, value: Any) -> bool:
        raise NotImplementedError

    def to_json(self, value: Any) -> Any:
        return value

    def from_json(self, raw: Any, config: Any) -> Decoded[Any]:
        raise NotImplementedError


class StringCodec(ShapeCodec):
    def decode(self, params: QueryLookup, config: StringParameter) -> Decoded[str]:
        raw = params.get(config.url_param)
        if not raw:
            return Decoded.absent()
        return Decoded.ok(raw)

    def encode(self, value: str, config: StringParameter) -> dict[str, str]:
        if not value:
            return {}
        return {config.url_param: value}

    def is_empty(self, value: Any) -> bool:
        return value is None or value == ""

    def from_json(self, raw: Any, config: StringParameter) -> Decoded[str]:
        if not isinstance(raw, str):
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"expected text, got {raw!r}"
            )
        return Decoded.ok(raw)


class NumberCodec(ShapeCodec):
    def decode(self, params: QueryLookup, config: NumberParameter) -> Decoded[int]:
        raw = params.get(config.url_param)
        if not raw:
            return Decoded.absent()

        match = _LEADING_INT.match(raw)
        if not match:
            return Decoded.failed(
                DecodeFailureKind.MALFORMED_TOKEN, config.key, f"not an integer: {raw!r}"
            )
        return Decoded.ok(int(match.group(1)))

    def encode(self, value: int, config: NumberParameter) -> dict[str, str]:
        if isinstance(value, bool) or not isinstance(value, int):
            logger.debug("encode_skipped", extra={"key": config.key, "value": repr(value)})
            return {}
        return {config.url_param: str(value)}

    def is_empty(self, value: Any) -> bool:
        return value is None

    def from_json(self, raw: Any, config: NumberParameter) -> Decoded[int]:
        if isinstance(raw, bool) or not isinstance(raw, int):
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"expected integer, got {raw!r}"
            )
        return Decoded.ok(raw)


class BooleanCodec(ShapeCodec):
    def decode(self, params: QueryLookup, config: BooleanParameter) -> Decoded[bool]:
        raw = params.get(config.url_param)
        if not raw:
            return Decoded.absent()
        if raw == "true":
            return Decoded.ok(True)
        if raw == "false":
            return Decoded.ok(False)
        return Decoded.failed(
            DecodeFailureKind.MALFORMED_TOKEN, config.key, f"not a boolean: {raw!r}"
        )

    def encode(self, value: bool, config: BooleanParameter) -> dict[str, str]:
        if not isinstance(value, bool):
            logger.debug("encode_skipped", extra={"key": config.key, "value": repr(value)})
            return {}
        return {config.url_param: "true" if value else "false"}

    def is_empty(self, value: Any) -> bool:
        return value is None

    def from_json(self, raw: Any, config: BooleanParameter) -> Decoded[bool]:
        if not isinstance(raw, bool):
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"expected boolean, got {raw!r}"
            )
        return Decoded.ok(raw)


class EnumCodec(ShapeCodec):
    def decode(self, params: QueryLookup, config: EnumParameter) -> Decoded[str]:
        raw = params.get(config.url_param)
        if not raw:
            return Decoded.absent()
        if raw not in config.options:
            return Decoded.failed(
                DecodeFailureKind.MALFORMED_TOKEN, config.key, f"unknown option: {raw!r}"
            )
        return Decoded.ok(raw)

    def encode(self, value: str, config: EnumParameter) -> dict[str, str]:
        if value not in config.options:
            logger.debug("encode_skipped", extra={"key": config.key, "value": repr(value)})
            return {}
        return {config.url_param: value}

    def is_empty(self, value: Any) -> bool:
        return value is None or value == ""

    def from_json(self, raw: Any, config: EnumParameter) -> Decoded[str]:
        if not isinstance(raw, str) or raw not in config.options:
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"unknown option: {raw!r}"
            )
        return Decoded.ok(raw)


class InclusionExclusionCodec(ShapeCodec):
    def decode(
        self, params: QueryLookup, config: InclusionExclusionParameter
    ) -> Decoded[InclusionExclusion]:
        include_raw = params.get(config.url_params.include)
        exclude_raw = params.get(config.url_params.exclude)
        if not include_raw and not exclude_raw:
            return Decoded.absent()

        value = InclusionExclusion(
            include=_split_tokens(include_raw, config.separator) if include_raw else [],
            exclude=_split_tokens(exclude_raw, config.separator) if exclude_raw else [],
        )
        if value.is_empty():
            return Decoded.failed(
                DecodeFailureKind.MALFORMED_TOKEN, config.key, "separators without tokens"
            )
        return Decoded.ok(value)

    def encode(
        self, value: InclusionExclusion, config: InclusionExclusionParameter
    ) -> dict[str, str]:
        written: dict[str, str] = {}
        if value.include:
            written[config.url_params.include] = _join_tokens(value.include, config.separator)
        if value.exclude:
            written[config.url_params.exclude] = _join_tokens(value.exclude, config.separator)
        return written

    def is_empty(self, value: Any) -> bool:
        return value is None or value.is_empty()

    def to_json(self, value: InclusionExclusion) -> Any:
        return value.model_dump(mode="json")

    def from_json(
        self, raw: Any, config: InclusionExclusionParameter
    ) -> Decoded[InclusionExclusion]:
        try:
            return Decoded.ok(InclusionExclusion.model_validate(raw))
        except ValidationError as e:
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"{e.error_count()} errors"
            )


class ColorFilterCodec(ShapeCodec):
    def decode(self, params: QueryLookup, config: ColorFilterParameter) -> Decoded[ColorFilter]:
        colors_raw = params.get(config.url_params.colors)
        match_type_raw = params.get(config.url_params.match_type)
        colorless_raw = params.get(config.url_params.colorless)
        include_colorless = colorless_raw == "true"

        if not colors_raw and not include_colorless:
            return Decoded.absent()

        colors = _split_tokens(colors_raw, config.separator) if colors_raw else []
        if not colors and not include_colorless:
            return Decoded.failed(
                DecodeFailureKind.MALFORMED_TOKEN, config.key, "separators without colors"
            )

        try:
            match_type = ColorMatchType(match_type_raw)
        except ValueError:
            match_type = ColorMatchType.EXACTLY

        return Decoded.ok(
            ColorFilter(colors=colors, match_type=match_type, include_colorless=include_colorless)
        )

    def encode(self, value: ColorFilter, config: ColorFilterParameter) -> dict[str, str]:
        written: dict[str, str] = {}
        # match type is meaningless without colors
        if value.colors:
            written[config.url_params.colors] = _join_tokens(value.colors, config.separator)
            written[config.url_params.match_type] = ColorMatchType(value.match_type).value
        if value.include_colorless:
            written[config.url_params.colorless] = "true"
        return written

    def is_empty(self, value: Any) -> bool:
        return value is None or value.is_empty()

    def to_json(self, value: ColorFilter) -> Any:
        return value.model_dump(mode="json", by_alias=True)

    def from_json(self, raw: Any, config: ColorFilterParameter) -> Decoded[ColorFilter]:
        try:
            return Decoded.ok(ColorFilter.model_validate(raw))
        except ValidationError as e:
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"{e.error_count()} errors"
            )


class StatFilterCodec(ShapeCodec):
    def _reserved(self, config: StatFilterParameter) -> str:
        return config.separator + config.assignment + config.condition_separator

    def decode(self, params: QueryLookup, config: StatFilterParameter) -> Decoded[StatFilters]:
        raw = params.get(config.url_param)
        if not raw:
            return Decoded.absent()

        filters: StatFilters = {}
        for group in raw.split(config.separator):
            attribute, found, conditions_raw = group.partition(config.assignment)
            if not found or not attribute:
                continue
            conditions = _split_tokens(conditions_raw, config.condition_separator)
            if not conditions:
                continue
            filters[_unescape_token(attribute)] = conditions

        if not filters:
            return Decoded.failed(
                DecodeFailureKind.MALFORMED_TOKEN, config.key, f"no usable stat groups: {raw!r}"
            )
        return Decoded.ok(filters)

    def encode(self, value: StatFilters, config: StatFilterParameter) -> dict[str, str]:
        reserved = self._reserved(config)
        groups = [
            _escape_token(attribute, reserved)
            + config.assignment
            + _join_tokens(conditions, config.condition_separator, reserved)
            for attribute, conditions in value.items()
            if conditions
        ]
        if not groups:
            return {}
        return {config.url_param: config.separator.join(groups)}

    def is_empty(self, value: Any) -> bool:
        return value is None or stat_filters_empty(value)

    def to_json(self, value: StatFilters) -> Any:
        return {attribute: list(conditions) for attribute, conditions in value.items()}

    def from_json(self, raw: Any, config: StatFilterParameter) -> Decoded[StatFilters]:
        try:
            return Decoded.ok(_STAT_FILTERS_ADAPTER.validate_python(raw, strict=True))
        except ValidationError as e:
            return Decoded.failed(
                DecodeFailureKind.STORAGE_CORRUPTION, config.key, f"{e.error_count()} errors"
            )


CODECS: dict[ParameterType, ShapeCodec] = {
    ParameterType.STRING: StringCodec(),
    ParameterType.NUMBER: NumberCodec(),
    ParameterType.BOOLEAN: BooleanCodec(),
    ParameterType.ENUM: EnumCodec(),
    ParameterType.INCLUSION_EXCLUSION: InclusionExclusionCodec(),
    ParameterType.COLOR_FILTER: ColorFilterCodec(),
    ParameterType.STAT_FILTER: StatFilterCodec(),
}

_missing_codecs = set(ParameterType) - CODECS.keys()
if _missing_codecs:
    raise SchemaError(f"No codec for parameter types: {sorted(t.value for t in _missing_codecs)}")


def codec_for(config: ParameterConfig) -> ShapeCodec:
    return CODECS[config.type]


def decode_parameter(params: QueryLookup, config: ParameterConfig) -> Decoded[Any]:
    """Decode one parameter from a query lookup."""
    return codec_for(config).decode(params, config)


def encode_parameter(value: Any, config: ParameterConfig) -> dict[str, str]:
    """Query keys for one parameter value; empty if it encodes to nothing."""
    if is_suppressed(config, value):
        return {}
    return codec_for(config).encode(value, config)


def is_empty_value(config: ParameterConfig, value: Any) -> bool:
    return codec_for(config).is_empty(value)


def is_suppressed(config: ParameterConfig, value: Any) -> bool:
    """
    True when `value` must not appear in a URL or snapshot: missing,
    equal to the parameter's default, or empty for its shape.
    """
    if value is None:
        return True
    if value == config.default_value:
        return True
    return is_empty_value(config, value)


def value_to_json(config: ParameterConfig, value: Any) -> Any:
    return codec_for(config).to_json(value)


def value_from_json(config: ParameterConfig, raw: Any) -> Decoded[Any]:
    """Validate a JSON value against the parameter's shape."""
    if raw is None:
        return Decoded.absent()
    return codec_for(config).from_json(raw, config)


def coerce_value(config: ParameterConfig, value: Any) -> Decoded[Any]:
    """
    Normalize a caller-supplied value to the parameter's shape.

    Composite values may arrive as plain mappings, e.g.
    `{"include": ["rare"], "exclude": []}`, and come back as their model.
    None and values that are empty for the shape are absent; anything that
    does not fit the shape is failed.
    """
    decoded = value_from_json(config, value)
    if decoded.present and is_empty_value(config, decoded.value):
        return Decoded.absent()
    return decoded
