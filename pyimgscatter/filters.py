"""Per-byte pixel filters.

Every filter is a pure function of a single byte value, so it is represented
as a 256-entry lookup table and applied to whole slabs at once. Alpha
channels are transformed like any other channel.
"""

from __future__ import annotations

import logging
from enum import Enum
from fractions import Fraction
from functools import lru_cache
from typing import Callable, Dict, Literal

import numpy as np
from numpy.typing import NDArray

from pyimgscatter.errors import UnknownFilterError

logger = logging.getLogger(__name__)

UnknownFilterPolicy = Literal["error", "identity"]

BRIGHTNESS_DELTA = 50
CONTRAST_FACTOR = Fraction(6, 5)
CONTRAST_PIVOT = 128


class FilterKind(str, Enum):
    """Closed set of supported filters."""

    INVERT = "invert"
    BRIGHTNESS = "brightness"
    CONTRAST = "contrast"
    IDENTITY = "identity"


def _invert(values: NDArray) -> NDArray:
    return 255 - values


def _brightness(values: NDArray) -> NDArray:
    return np.clip(values + BRIGHTNESS_DELTA, 0, 255)


def _contrast(values: NDArray) -> NDArray:
    # trunc((v - pivot) * factor + pivot), then clamped. Truncation, not
    # rounding: contrast(131) is 131.
    # Floor and truncation only differ below zero, where the clamp wins.
    scaled = (values - CONTRAST_PIVOT) * CONTRAST_FACTOR.numerator // CONTRAST_FACTOR.denominator
    return np.clip(scaled + CONTRAST_PIVOT, 0, 255)


def _identity(values: NDArray) -> NDArray:
    return values


_TRANSFORMS: Dict[FilterKind, Callable[[NDArray], NDArray]] = {
    FilterKind.INVERT: _invert,
    FilterKind.BRIGHTNESS: _brightness,
    FilterKind.CONTRAST: _contrast,
    FilterKind.IDENTITY: _identity,
}


def available_filters() -> list[str]:
    return [kind.value for kind in FilterKind]


def parse_filter(
    name: str | FilterKind,
    *,
    on_unknown: UnknownFilterPolicy = "error",
) -> FilterKind:
    """Resolve a filter name (case and surrounding whitespace are ignored).

    With ``on_unknown="identity"`` an unrecognized name falls back to the
    identity filter and a warning is logged; by default it raises
    `UnknownFilterError`.
    """

    if isinstance(name, FilterKind):
        return name

    key = str(name).strip().lower()
    try:
        return FilterKind(key)
    except ValueError:
        if on_unknown == "identity":
            logger.warning(
                "Unknown filter %r; passing pixels through unchanged (on_unknown='identity')",
                name,
            )
            return FilterKind.IDENTITY
        if on_unknown != "error":
            raise ValueError(
                f"Unknown on_unknown policy: {on_unknown!r}. Choose from: error, identity"
            ) from None
        raise UnknownFilterError(str(name), available_filters()) from None


@lru_cache(maxsize=None)
def filter_lut(kind: FilterKind) -> NDArray:
    """The 256-entry lookup table of a filter (read-only)."""

    values = np.arange(256, dtype=np.int32)
    lut = np.asarray(_TRANSFORMS[FilterKind(kind)](values), dtype=np.int32)
    out = lut.astype(np.uint8)
    out.flags.writeable = False
    return out


def apply_filter(pixels: NDArray, kind: str | FilterKind) -> NDArray:
    """Apply a filter to a ``uint8`` array in place and return the same array."""

    if not isinstance(pixels, np.ndarray) or pixels.dtype != np.uint8:
        raise TypeError(f"Expected a uint8 numpy array, got {type(pixels).__name__}")

    resolved = parse_filter(kind)
    if pixels.size == 0 or resolved is FilterKind.IDENTITY:
        return pixels

    pixels[...] = filter_lut(resolved)[pixels]
    return pixels
