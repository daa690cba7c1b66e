"""
Composite filter values held in a search state.

Values are immutable: consumers replace them wholesale instead of editing
the lists in place, so equality against a parameter's default stays sound.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# Attribute name -> ordered condition tokens, e.g. {"power": ["gte1", "lte3"]}.
# Tokens are opaque to this package; the query layer interprets them.
StatFilters = dict[str, list[str]]


class CatalogMode(str, Enum):
    """Which catalog is being browsed."""

    CARDS = "cards"
    SETS = "sets"


class ColorMatchType(str, Enum):
    """How selected colors are compared against a card's color identity."""

    EXACTLY = "exactly"
    AT_LEAST = "atLeast"
    AT_MOST = "atMost"


class InclusionExclusion(BaseModel):
    """
    Two sets of tokens: results must match one of `include` and none of
    `exclude`.

    A token must never appear on both sides. Producers guarantee this;
    the codecs do not check it.
    """

    model_config = ConfigDict(frozen=True)

    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.include and not self.exclude


class ColorFilter(BaseModel):
    """Color-identity filter."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    colors: list[str] = Field(default_factory=list)
    match_type: ColorMatchType = Field(default=ColorMatchType.EXACTLY, alias="matchType")
    include_colorless: bool = Field(default=False, alias="includeColorless")

    def is_empty(self) -> bool:
        """match_type alone never narrows results."""
        return not self.colors and not self.include_colorless


def stat_filters_empty(value: StatFilters) -> bool:
    """True when no attribute carries a condition."""
    return not any(conditions for conditions in value.values())
