"""
Declarative parameter configuration.

Each filterable attribute is described by exactly one ParameterConfig.
The variants form a tagged union discriminated on `type`; the codec table
in `browsestate.schema.codecs` must cover every ParameterType member.

Configs are frozen and defined once in the registry. They are never
mutated at runtime.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from browsestate.models.filters import (
    CatalogMode,
    ColorFilter,
    InclusionExclusion,
    StatFilters,
)


class ParameterType(str, Enum):
    """Value shape of a parameter."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    INCLUSION_EXCLUSION = "inclusionExclusion"
    COLOR_FILTER = "colorFilter"
    STAT_FILTER = "statFilter"


class ParameterScope(str, Enum):
    """Which catalog(s) a parameter applies to."""

    CARDS = "cards"
    SETS = "sets"
    BOTH = "both"


class _BaseParameter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    mode: ParameterScope
    # Key inside SearchState; defaults to `name`. Mode-specific entries may
    # share one (card_name and set_name both live under "name").
    state_key: str = ""
    is_required: bool = False
    # Search criteria are restored from the session snapshot. Pagination,
    # sort and display toggles are not; they come from the URL or preferences.
    in_snapshot: bool = True

    @property
    def key(self) -> str:
        return self.state_key or self.name

    def applies_to(self, mode: CatalogMode) -> bool:
        return self.mode == ParameterScope.BOTH or self.mode.value == CatalogMode(mode).value

    def url_keys(self) -> tuple[str, ...]:
        raise NotImplementedError


class _SingleKeyParameter(_BaseParameter):
    url_param: str

    def url_keys(self) -> tuple[str, ...]:
        return (self.url_param,)


class StringParameter(_SingleKeyParameter):
    type: Literal[ParameterType.STRING] = ParameterType.STRING
    default_value: str = ""


class NumberParameter(_SingleKeyParameter):
    type: Literal[ParameterType.NUMBER] = ParameterType.NUMBER
    default_value: int | None = None


class BooleanParameter(_SingleKeyParameter):
    type: Literal[ParameterType.BOOLEAN] = ParameterType.BOOLEAN
    default_value: bool | None = None


class EnumParameter(_SingleKeyParameter):
    type: Literal[ParameterType.ENUM] = ParameterType.ENUM
    options: tuple[str, ...]
    default_value: str | None = None


class InclusionExclusionKeys(BaseModel):
    model_config = ConfigDict(frozen=True)

    include: str
    exclude: str


class InclusionExclusionParameter(_BaseParameter):
    type: Literal[ParameterType.INCLUSION_EXCLUSION] = ParameterType.INCLUSION_EXCLUSION
    url_params: InclusionExclusionKeys
    separator: str = "|"
    default_value: InclusionExclusion = Field(default_factory=InclusionExclusion)

    def url_keys(self) -> tuple[str, ...]:
        return (self.url_params.include, self.url_params.exclude)


class ColorFilterKeys(BaseModel):
    model_config = ConfigDict(frozen=True)

    colors: str
    match_type: str
    colorless: str


class ColorFilterParameter(_BaseParameter):
    type: Literal[ParameterType.COLOR_FILTER] = ParameterType.COLOR_FILTER
    url_params: ColorFilterKeys
    separator: str = ","
    default_value: ColorFilter = Field(default_factory=ColorFilter)

    def url_keys(self) -> tuple[str, ...]:
        return (self.url_params.colors, self.url_params.match_type, self.url_params.colorless)


class StatFilterParameter(_SingleKeyParameter):
    """
    Stat conditions packed into one key: `power=gte1|lte3,toughness=gte2`.

    `separator` joins attribute groups, `assignment` splits an attribute
    from its conditions and `condition_separator` joins the conditions.
    """

    type: Literal[ParameterType.STAT_FILTER] = ParameterType.STAT_FILTER
    separator: str = ","
    condition_separator: str = "|"
    assignment: str = "="
    default_value: StatFilters = Field(default_factory=dict)


ParameterConfig = Annotated[
    StringParameter
    | NumberParameter
    | BooleanParameter
    | EnumParameter
    | InclusionExclusionParameter
    | ColorFilterParameter
    | StatFilterParameter,
    Field(discriminator="type"),
]
