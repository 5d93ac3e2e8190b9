from __future__ import annotations

import math

import pytest

from graphbuilder.errors import RangeInvalid
from graphbuilder.palette import DEFAULT_PALETTE, ColorAssigner
from graphbuilder.viewport import Range, clamp_range, coerce_bound, coerce_range


def test_color_assigner_cycles_through_palette() -> None:
    colors = ColorAssigner()
    handed_out = [colors.next() for _ in range(len(DEFAULT_PALETTE) + 1)]

    assert handed_out[: len(DEFAULT_PALETTE)] == list(DEFAULT_PALETTE)
    assert handed_out[-1] == handed_out[0]


def test_default_palette_has_twelve_distinct_colors() -> None:
    assert len(DEFAULT_PALETTE) == 12
    assert len(set(DEFAULT_PALETTE)) == 12


def test_color_assigner_rejects_empty_palette() -> None:
    with pytest.raises(ValueError):
        ColorAssigner(())


def test_range_requires_left_below_right() -> None:
    with pytest.raises(RangeInvalid):
        Range(1.0, 1.0)
    with pytest.raises(RangeInvalid):
        Range(2.0, -2.0)


@pytest.mark.parametrize("bad", [math.nan, math.inf, -math.inf])
def test_range_rejects_non_finite_bounds(bad: float) -> None:
    with pytest.raises(RangeInvalid):
        Range(bad, 1.0)


def test_range_invalid_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        Range(0.0, 0.0)


def test_coerce_bound_accepts_symbolic_strings() -> None:
    assert coerce_bound("2.5") == 2.5
    assert coerce_bound("pi/2") == pytest.approx(math.pi / 2)


@pytest.mark.parametrize("bad", [True, "", "I", "not a number", None])
def test_coerce_bound_rejects_non_real_values(bad) -> None:
    with pytest.raises(RangeInvalid):
        coerce_bound(bad)


def test_coerce_range_passes_ranges_through() -> None:
    r = Range(-1.0, 1.0)
    assert coerce_range(r) is r
    assert coerce_range(("-2*pi", 3)).as_tuple() == pytest.approx((-2 * math.pi, 3.0))


def test_clamp_range_intersects_with_limits() -> None:
    limits = Range(-10000.0, 10000.0)

    assert clamp_range(Range(-1e6, 5.0), limits).as_tuple() == (-10000.0, 5.0)
    with pytest.raises(RangeInvalid):
        clamp_range(Range(20000.0, 30000.0), limits)
