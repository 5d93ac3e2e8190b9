from __future__ import annotations

import numpy as np
import pytest

from graphbuilder.equation import DEFAULT_BASE_SAMPLES, Equation
from graphbuilder.errors import SampleEvaluationError
from graphbuilder.viewport import Range


def _eq(text: str, color: str = "red", step_multiplier: float = 2.0) -> Equation:
    return Equation.from_text(text, color, step_multiplier)


def test_from_text_builds_label_and_defaults() -> None:
    eq = _eq("  x^2 ")

    assert eq.label == "x^2= y"
    assert eq.text == "x^2"
    assert eq.color == "red"
    assert eq.enabled is True


def test_sample_count_uses_step_multiplier() -> None:
    assert _eq("x").sample_count() == 2 * DEFAULT_BASE_SAMPLES + 1
    assert _eq("x", step_multiplier=0.001).sample_count(10) == 3


def test_samples_cover_range_inclusively() -> None:
    series = _eq("x").sample_over_range(Range(-2.0, 3.0))

    assert series.x_bounds == (-2.0, 3.0)
    assert len(series) == _eq("x").sample_count()
    np.testing.assert_allclose(series.x, series.y)
    assert np.all(np.diff(series.x) > 0)


def test_reciprocal_keeps_both_branches_and_drops_pole() -> None:
    series = _eq("1/x").sample_over_range(Range(-1.0, 1.0))

    assert len(series) > 0
    assert np.all(np.isfinite(series.y))
    assert 0.0 not in series.x.tolist()
    assert series.x.min() < 0 < series.x.max()


def test_function_undefined_on_whole_range_yields_empty_series() -> None:
    series = _eq("log(x)").sample_over_range(Range(-5.0, -1.0))

    assert len(series) == 0
    assert series.x_bounds is None


def test_series_arrays_are_read_only() -> None:
    series = _eq("x").sample_over_range(Range(0.0, 1.0))

    with pytest.raises(ValueError):
        series.y[0] = 42.0


def test_series_carries_equation_identity() -> None:
    eq = _eq("sin(x)", color="blue")
    series = eq.sample_over_range(Range(0.0, 1.0))

    assert series.equation is eq
    assert series.color == "blue"
    assert series.label == "sin(x)= y"
    assert series.sampled_range == Range(0.0, 1.0)


def test_pointwise_fallback_isolates_failing_points() -> None:
    def picky(x):
        if np.ndim(x):
            raise TypeError("scalars only")
        if x < 0:
            raise ArithmeticError("negative")
        return x * 2.0

    series = Equation("picky", picky, "green").sample_over_range(Range(-1.0, 1.0), base_samples=4)

    assert series.x.tolist() == [0.0, 0.25, 0.5, 0.75, 1.0]
    np.testing.assert_allclose(series.y, 2 * series.x)


def test_expression_failing_everywhere_raises() -> None:
    def broken(_x):
        raise RuntimeError("nope")

    with pytest.raises(SampleEvaluationError):
        Equation("broken", broken, "black").sample_over_range(Range(0.0, 1.0))


def test_step_multiplier_must_be_positive() -> None:
    with pytest.raises(ValueError):
        Equation("bad", lambda x: x, "red", 0.0)
