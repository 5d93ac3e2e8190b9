"""Text -> evaluable expression pipeline.

Purpose
-------
This module is the boundary between equation text and the numeric callables
the rest of the package samples. It runs three steps, each with its own
failure type:

1. :func:`parse_equation` turns text into a SymPy expression in ``x``
   (:class:`~graphbuilder.errors.EquationParseError`).
2. :func:`compile_expression` generates a NumPy callable via
   :func:`~graphbuilder.numpify.numpify_cached`
   (:class:`~graphbuilder.errors.EquationCompileError`).
3. :func:`optimize_expression` recompiles with common-subexpression
   elimination. Values do not change.

:func:`build_expression` runs all three atomically.

Grammar
-------
Lines use SymPy's Python-like syntax with a few conveniences: ``^`` is a power,
implicit multiplication is allowed (``2x``, ``x sin(x)``), ``e`` is Euler's
number and ``ln`` is the natural logarithm. The only free variable is ``x``.

Examples
--------
>>> expr = build_expression("1/x + sin(2x)")
>>> expr.evaluate(0.5).value  # doctest: +SKIP
2.8414709848078967
>>> expr.evaluate(0.0).ok
False
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from .errors import EquationCompileError, EquationParseError
from .numpify import NumpifiedFunction, numpify_cached

__all__ = [
    "X",
    "EvalResult",
    "NumericExpression",
    "parse_equation",
    "compile_expression",
    "optimize_expression",
    "build_expression",
]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

X = sp.Symbol("x", real=True)

_TRANSFORMATIONS = standard_transformations + (implicit_multiplication_application, convert_xor)
_LOCALS = {"x": X, "e": sp.E, "ln": sp.log}


@dataclass(frozen=True)
class EvalResult:
    """Tagged outcome of evaluating an expression at one point.

    Exactly one of ``value`` and ``error`` is set. A non-finite value is
    reported as an error so callers can skip it like any other failure;
    ``raised`` tells the two apart.
    """

    x: float
    value: Optional[float] = None
    error: Optional[str] = None
    raised: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


class NumericExpression:
    """Compiled real function of ``x``.

    Calling the object evaluates a whole array at once (NumPy semantics, so
    ``1/0`` becomes ``inf`` rather than an exception). :meth:`evaluate` is the
    scalar, never-raising variant used for per-sample isolation.
    """

    __slots__ = ("_compiled",)

    def __init__(self, compiled: NumpifiedFunction) -> None:
        self._compiled = compiled

    @property
    def symbolic(self) -> sp.Basic:
        return self._compiled.symbolic

    @property
    def source(self) -> str:
        return self._compiled.source

    @property
    def is_optimized(self) -> bool:
        return self._compiled.cse

    def __call__(self, x_values: Any) -> np.ndarray:
        with np.errstate(all="ignore"):
            values = np.asarray(self._compiled(np.asarray(x_values, dtype=float)))
        if np.iscomplexobj(values):
            real = values.real.astype(float)
            real[values.imag != 0] = np.nan
            return real
        return values.astype(float, copy=False)

    def evaluate(self, x: float) -> EvalResult:
        x = float(x)
        try:
            with np.errstate(all="ignore"):
                raw = self._compiled(x)
            value = complex(np.asarray(raw).item())
        except Exception as exc:
            return EvalResult(x=x, error=f"{type(exc).__name__}: {exc}", raised=True)
        if value.imag != 0:
            return EvalResult(x=x, error="non-real result")
        if not math.isfinite(value.real):
            return EvalResult(x=x, error="non-finite result")
        return EvalResult(x=x, value=value.real)

    def __repr__(self) -> str:
        return f"NumericExpression({self.symbolic!r}, optimized={self.is_optimized})"


def parse_equation(text: str) -> sp.Expr:
    """Parse one line of equation text into a SymPy expression.

    Raises
    ------
    EquationParseError
        If the text is empty, not valid syntax, or not a scalar expression.
    """
    source = text.strip()
    if not source:
        raise EquationParseError("empty equation", text=text)
    try:
        expr = parse_expr(source, local_dict=dict(_LOCALS), transformations=_TRANSFORMATIONS)
    except Exception as exc:
        raise EquationParseError(f"cannot parse {source!r}: {type(exc).__name__}: {exc}", text=text) from exc
    if not isinstance(expr, sp.Expr):
        raise EquationParseError(
            f"{source!r} is not a scalar expression (got {type(expr).__name__})", text=text
        )
    return expr


def compile_expression(expr: sp.Expr) -> NumericExpression:
    """Compile a parsed expression of ``x`` to a :class:`NumericExpression`.

    Raises
    ------
    EquationCompileError
        If the expression uses symbols other than ``x`` or functions that have
        no NumPy translation.
    """
    # math.factorial only takes integers; gamma(n + 1) covers the real line.
    expr = expr.replace(sp.factorial, lambda arg: sp.gamma(arg + 1))
    try:
        compiled = numpify_cached(expr, vars=(X,))
    except (TypeError, ValueError, NotImplementedError) as exc:
        raise EquationCompileError(f"cannot compile {expr}: {exc}", text=str(expr)) from exc
    return NumericExpression(compiled)


def optimize_expression(expression: NumericExpression) -> NumericExpression:
    """Return an equivalent expression with common subexpressions hoisted."""
    if expression.is_optimized:
        return expression
    compiled = numpify_cached(expression.symbolic, vars=(X,), cse=True)
    return NumericExpression(compiled)


def build_expression(text: str) -> NumericExpression:
    """Run parse, compile and optimize on one line of text."""
    expr = parse_equation(text)
    optimized = optimize_expression(compile_expression(expr))
    logger.debug("built expression %r from %r", optimized.symbolic, text)
    return optimized
