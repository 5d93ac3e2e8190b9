from __future__ import annotations

import math

import numpy as np
import pytest
import sympy as sp

from graphbuilder.errors import EquationCompileError, EquationDefinitionError, EquationParseError
from graphbuilder.expression import (
    X,
    build_expression,
    compile_expression,
    optimize_expression,
    parse_equation,
)
from graphbuilder.numpify import numpify, numpify_cached


def test_parse_supports_caret_implicit_multiplication_and_constants() -> None:
    assert sp.simplify(parse_equation("2x^2") - 2 * X**2) == 0
    assert sp.simplify(parse_equation("ln(e)") - 1) == 0
    assert parse_equation("  sin(x)  ") == sp.sin(X)


@pytest.mark.parametrize("text", ["", "   ", "sin(x", "x +* 2", "x = 2"])
def test_parse_rejects_invalid_text(text: str) -> None:
    with pytest.raises(EquationParseError):
        parse_equation(text)


def test_compile_rejects_unknown_symbols() -> None:
    with pytest.raises(EquationCompileError, match="unbound symbols"):
        compile_expression(parse_equation("x + y"))


def test_compile_rejects_functions_without_numpy_translation() -> None:
    with pytest.raises(EquationCompileError):
        compile_expression(parse_equation("foo(x)"))


def test_definition_errors_share_a_base_class() -> None:
    with pytest.raises(EquationDefinitionError):
        build_expression("x + y")
    with pytest.raises(EquationDefinitionError):
        build_expression("(")


def test_vectorized_call_matches_numpy() -> None:
    expr = build_expression("x^2 + 2x + 1")
    xs = np.linspace(-3.0, 3.0, 13)

    np.testing.assert_allclose(expr(xs), xs**2 + 2 * xs + 1)


def test_vectorized_call_maps_undefined_points_to_non_finite() -> None:
    expr = build_expression("1/x")
    ys = expr(np.array([-1.0, 0.0, 1.0]))

    assert ys[0] == -1.0
    assert not math.isfinite(ys[1])
    assert ys[2] == 1.0


def test_evaluate_reports_failures_without_raising() -> None:
    expr = build_expression("1/x")

    ok = expr.evaluate(0.5)
    bad = expr.evaluate(0.0)

    assert ok.ok and ok.value == pytest.approx(2.0)
    assert not bad.ok
    assert bad.value is None


def test_evaluate_rejects_non_real_values() -> None:
    result = build_expression("sqrt(x)").evaluate(-4.0)

    assert not result.ok


def test_optimize_keeps_values_and_marks_expression() -> None:
    plain = compile_expression(parse_equation("sin(x)^2 + sin(x)"))
    optimized = optimize_expression(plain)
    xs = np.linspace(-2.0, 2.0, 9)

    assert not plain.is_optimized
    assert optimized.is_optimized
    assert optimize_expression(optimized) is optimized
    np.testing.assert_allclose(optimized(xs), plain(xs))
    assert "_cse0" in optimized.source


def test_constant_expression_broadcasts_over_grid() -> None:
    expr = build_expression("5")

    np.testing.assert_array_equal(expr(np.zeros(4)), np.full(4, 5.0))


def test_numpify_uses_cache_by_default() -> None:
    x = sp.Symbol("x")
    numpify_cached.cache_clear()

    f1 = numpify(x + 1, vars=x)
    f2 = numpify(x + 1, vars=x)

    assert f1 is f2


def test_numpify_cache_false_forces_recompile() -> None:
    x = sp.Symbol("x")

    f1 = numpify(x + 1, vars=x, cache=False)
    f2 = numpify(x + 1, vars=x, cache=False)

    assert f1 is not f2


def test_numpified_function_checks_argument_count() -> None:
    x = sp.Symbol("x")
    f = numpify(x + 1, vars=x, cache=False)

    assert f.var_names == ("x",)
    with pytest.raises(TypeError):
        f(1.0, 2.0)


@pytest.mark.parametrize(
    ("text", "x", "expected"),
    [
        ("gamma(x)", 4.0, 6.0),
        ("factorial(x)", 3.0, 6.0),
        ("erf(x)", 0.0, 0.0),
        ("Max(x, 0)", -2.0, 0.0),
        ("Max(x, 0)", 3.0, 3.0),
        ("Min(x, 1)", 3.0, 1.0),
    ],
)
def test_functions_printed_outside_numpy_still_evaluate(text: str, x: float, expected: float) -> None:
    result = build_expression(text).evaluate(x)

    assert result.ok, result.error
    assert result.value == pytest.approx(expected)


def test_generated_code_imports_helper_modules() -> None:
    expr = build_expression("gamma(x) + Max(x, 0)")

    assert "math." in expr.source
    assert expr.evaluate(2.0).value == pytest.approx(3.0)
