"""Visible x-range model and bound coercion.

``Range`` is immutable: pan/zoom produces a new instance. Bounds may be given
as numbers or as short numeric strings (``"-2*pi"``), which are evaluated with
SymPy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Tuple, Union

import sympy as sp

from .errors import RangeInvalid

__all__ = ["Range", "DEFAULT_RANGE", "coerce_bound", "coerce_range", "clamp_range"]

NumberLikeOrStr = Union[int, float, str]
RangeLike = Tuple[NumberLikeOrStr, NumberLikeOrStr]


@dataclass(frozen=True)
class Range:
    """Visible horizontal extent ``[left, right]`` with ``left < right``.

    Raises
    ------
    RangeInvalid
        If a bound is not finite or ``left >= right``.
    """

    left: float
    right: float

    def __post_init__(self) -> None:
        try:
            left, right = float(self.left), float(self.right)
        except (TypeError, ValueError) as e:
            raise RangeInvalid(f"range bounds must be numbers, got ({self.left!r}, {self.right!r})") from e
        if not (math.isfinite(left) and math.isfinite(right)):
            raise RangeInvalid(f"range bounds must be finite, got ({self.left!r}, {self.right!r})")
        if left >= right:
            raise RangeInvalid(f"range requires left < right, got ({left}, {right})")
        object.__setattr__(self, "left", left)
        object.__setattr__(self, "right", right)

    @property
    def width(self) -> float:
        return self.right - self.left

    def contains(self, x: float) -> bool:
        return self.left <= x <= self.right

    def as_tuple(self) -> tuple[float, float]:
        return (self.left, self.right)


DEFAULT_RANGE = Range(-10.0, 10.0)


def coerce_bound(value: Any) -> float:
    """Convert a number or numeric string to ``float``.

    Strings that are not plain floats are evaluated with SymPy, so ``"pi/2"``
    works. Booleans, complex values and anything non-numeric raise
    :class:`RangeInvalid`.
    """
    if isinstance(value, bool):
        raise RangeInvalid(f"boolean is not a range bound: {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise RangeInvalid("empty string is not a range bound")
        try:
            return float(s)
        except ValueError:
            pass
        try:
            number = complex(sp.sympify(s).evalf())
        except Exception as e:
            raise RangeInvalid(f"could not convert {value!r} to a range bound") from e
        if number.imag != 0:
            raise RangeInvalid(f"range bound must be real, got {value!r}")
        return number.real
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise RangeInvalid(f"could not convert {value!r} to a range bound") from e


def coerce_range(value: Union[Range, RangeLike]) -> Range:
    """Return ``value`` as a :class:`Range` (validated)."""
    if isinstance(value, Range):
        return value
    try:
        raw_min, raw_max = value
    except (TypeError, ValueError) as e:
        raise RangeInvalid(f"range must be a (min, max) pair, got {value!r}") from e
    return Range(coerce_bound(raw_min), coerce_bound(raw_max))


def clamp_range(value: Range, limits: Range) -> Range:
    """Intersect ``value`` with ``limits``.

    Raises
    ------
    RangeInvalid
        If the two ranges do not overlap.
    """
    return Range(max(value.left, limits.left), min(value.right, limits.right))
