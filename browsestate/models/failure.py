"""
Decode outcomes and the single degrade-to-default merge point.

Nothing in this package raises on bad URL or stored input. A hand-edited
URL, a stale snapshot or a disabled store must still produce a usable
search state.

Every decode/load step returns a `Decoded` result:
- ok: a value of the declared shape
- absent: nothing was there to decode
- failed: something was there but could not be used

AUTHORITY BOUNDARY:
Results are applied to a state only through `merge_decoded()`. It is the
one place where a failure turns into "key absent, use default", so the
recovery policy can be audited and tested as a single function.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DecodeFailureKind(str, Enum):
    """Classification of recoverable failures."""

    # A value present in the URL that does not parse into its shape
    MALFORMED_TOKEN = "malformed_token"

    # Snapshot or preference text that is not the expected structure
    STORAGE_CORRUPTION = "storage_corruption"

    # No usable store (disabled storage, non-browser render)
    STORAGE_UNAVAILABLE = "storage_unavailable"


class SchemaError(Exception):
    """The static parameter registry violates one of its invariants."""


class StorageUnavailableError(Exception):
    """Raised by a storage backend that cannot be read or written."""


class InvalidValueError(ValueError):
    """A value handed to the state does not fit its parameter's shape."""


@dataclass(frozen=True, slots=True)
class DecodeError:
    """Why a value was dropped."""

    kind: DecodeFailureKind
    key: str
    detail: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.key}: {self.detail}"


@dataclass(frozen=True, slots=True)
class Decoded(Generic[T]):
    """Outcome of decoding one value."""

    value: T | None = None
    error: DecodeError | None = None
    present: bool = False

    @classmethod
    def ok(cls, value: T) -> "Decoded[T]":
        return cls(value=value, present=True)

    @classmethod
    def absent(cls) -> "Decoded[T]":
        return cls()

    @classmethod
    def failed(cls, kind: DecodeFailureKind, key: str, detail: str) -> "Decoded[T]":
        return cls(error=DecodeError(kind=kind, key=key, detail=detail))

    @property
    def is_failure(self) -> bool:
        return self.error is not None

    def value_or(self, fallback: T | None = None) -> T | None:
        """The decoded value, or `fallback` when absent or failed."""
        return self.value if self.present else fallback


def merge_decoded(
    target: dict[str, Any],
    results: Mapping[str, Decoded[Any]],
) -> list[DecodeError]:
    """
    Apply decode results to `target` in place.

    Present values are written under their key. Absent and failed results
    leave the key untouched, which means "use default".

    Returns:
        The failures that were recovered, in input order.
    """
    errors: list[DecodeError] = []
    for key, result in results.items():
        if result.present:
            target[key] = result.value
            continue
        if result.error is None:
            continue

        errors.append(result.error)
        if result.error.kind == DecodeFailureKind.MALFORMED_TOKEN:
            # Hand-edited links are common; not worth a warning
            logger.debug(
                "decode_recovered",
                extra={"kind": result.error.kind.value, "key": key, "detail": result.error.detail},
            )
        else:
            logger.warning(
                "decode_recovered",
                extra={"kind": result.error.kind.value, "key": key, "detail": result.error.detail},
            )
    return errors
