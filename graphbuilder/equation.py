"""Per-equation model: one compiled expression and its display identity.

Purpose
-------
Defines ``Equation`` (label, expression, color, enabled flag, density) and
``PointSeries``, the sampled ``(x, y)`` data produced for one equation over
one :class:`~graphbuilder.viewport.Range`.

Sampling
--------
``Equation.sample_over_range`` evaluates the expression on ``N + 1`` evenly
spaced points from ``left`` to ``right`` inclusive. The whole grid is evaluated
in one vectorized call first. If that call raises, every point is evaluated on
its own through :meth:`NumericExpression.evaluate`. Either way, points whose
value is not a finite real number are dropped, so ``1/x`` keeps both branches
and only loses the sample at ``x = 0``.

Important gotchas
-----------------
- ``enabled`` is read-only here; it changes through
  :meth:`EquationRegistry.toggle_enabled` so listeners are notified.
- ``PointSeries`` arrays are read-only copies.
- Sampling never checks ``enabled``; callers skip disabled equations.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Union

import numpy as np

from .errors import SampleEvaluationError
from .expression import EvalResult, NumericExpression, build_expression
from .viewport import Range

__all__ = ["DEFAULT_BASE_SAMPLES", "DEFAULT_STEP_MULTIPLIER", "Equation", "PointSeries"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

DEFAULT_BASE_SAMPLES = 250
DEFAULT_STEP_MULTIPLIER = 2.0

ExpressionLike = Union[NumericExpression, Callable[[np.ndarray], np.ndarray]]


def _readonly(values: np.ndarray) -> np.ndarray:
    out = np.array(values, dtype=float)
    out.flags.writeable = False
    return out


@dataclass(frozen=True, eq=False)
class PointSeries:
    """Sampled points of one equation, tagged with the equation itself.

    Parameters
    ----------
    x, y : numpy.ndarray
        Read-only sample coordinates of equal length, ordered by ``x``.
    color : str
        Line color copied from the equation.
    label : str
        Legend label copied from the equation.
    equation : Equation
        Back-reference for lookups (e.g. point-click selection).
    sampled_range : Range
        Range the samples were taken over.
    """

    x: np.ndarray
    y: np.ndarray
    color: str
    label: str
    equation: "Equation"
    sampled_range: Range

    def __len__(self) -> int:
        return int(self.x.shape[0])

    def __iter__(self) -> Iterator[tuple[float, float]]:
        return iter(zip(self.x.tolist(), self.y.tolist()))

    @property
    def points(self) -> list[tuple[float, float]]:
        return list(self)

    @property
    def x_bounds(self) -> Optional[tuple[float, float]]:
        """Return ``(min x, max x)`` of the kept samples, or ``None`` if empty."""
        if len(self) == 0:
            return None
        return (float(self.x[0]), float(self.x[-1]))

    def same_points(self, other: "PointSeries") -> bool:
        return np.array_equal(self.x, other.x) and np.array_equal(self.y, other.y)

    def __repr__(self) -> str:
        return f"PointSeries(label={self.label!r}, points={len(self)}, range={self.sampled_range.as_tuple()})"


class Equation:
    """One loaded equation.

    Parameters
    ----------
    label : str
        Display label, conventionally the source text followed by ``"= y"``.
    expression : NumericExpression or callable
        Real function of ``x``. Plain callables are evaluated vectorized and
        per point with exceptions captured.
    color : str
        Line color; fixed for the lifetime of the equation.
    step_multiplier : float, optional
        Sample density factor (see :mod:`graphbuilder.settings`).
    text : str, optional
        Original equation text.
    """

    __slots__ = ("_label", "_expression", "_color", "_step_multiplier", "_enabled", "_text")

    def __init__(
        self,
        label: str,
        expression: ExpressionLike,
        color: str,
        step_multiplier: float = DEFAULT_STEP_MULTIPLIER,
        *,
        text: str = "",
    ) -> None:
        if not step_multiplier > 0:
            raise ValueError("step_multiplier must be > 0")
        self._label = str(label)
        self._expression = expression
        self._color = str(color)
        self._step_multiplier = float(step_multiplier)
        self._enabled = True
        self._text = text

    @classmethod
    def from_text(
        cls,
        text: str,
        color: str,
        step_multiplier: float = DEFAULT_STEP_MULTIPLIER,
    ) -> "Equation":
        """Build an equation from one line of text (parse, compile, optimize).

        Raises
        ------
        EquationParseError, EquationCompileError
            Propagated from :func:`~graphbuilder.expression.build_expression`.
        """
        expression = build_expression(text)
        return cls(f"{text.strip()}= y", expression, color, step_multiplier, text=text.strip())

    @property
    def label(self) -> str:
        return self._label

    @property
    def text(self) -> str:
        return self._text

    @property
    def expression(self) -> ExpressionLike:
        return self._expression

    @property
    def color(self) -> str:
        return self._color

    @property
    def step_multiplier(self) -> float:
        return self._step_multiplier

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _set_enabled(self, value: bool) -> None:
        self._enabled = bool(value)

    def sample_count(self, base_samples: int = DEFAULT_BASE_SAMPLES) -> int:
        """Return the number of grid points used per sampling pass."""
        return max(2, int(round(base_samples * self._step_multiplier))) + 1

    def sample_over_range(self, viewport: Range, base_samples: int = DEFAULT_BASE_SAMPLES) -> PointSeries:
        """Sample the expression over ``viewport``.

        Returns
        -------
        PointSeries
            Finite samples only; may be empty if the function is undefined on
            the whole range.

        Raises
        ------
        SampleEvaluationError
            If the expression raised for every sample point.
        """
        x_grid = np.linspace(viewport.left, viewport.right, num=self.sample_count(base_samples))
        y_grid = self._evaluate_grid(x_grid)
        keep = np.isfinite(y_grid)
        return PointSeries(
            x=_readonly(x_grid[keep]),
            y=_readonly(y_grid[keep]),
            color=self._color,
            label=self._label,
            equation=self,
            sampled_range=viewport,
        )

    def _evaluate_grid(self, x_grid: np.ndarray) -> np.ndarray:
        try:
            with np.errstate(all="ignore"):
                y_grid = np.asarray(self._expression(x_grid), dtype=float)
            if y_grid.shape == x_grid.shape:
                return y_grid
            if y_grid.ndim == 0:
                return np.full(x_grid.shape, float(y_grid))
            logger.debug("%s: vectorized result has shape %s, evaluating pointwise", self._label, y_grid.shape)
        except Exception as exc:
            logger.debug("%s: vectorized evaluation failed (%s), evaluating pointwise", self._label, exc)
        return self._evaluate_pointwise(x_grid)

    def _evaluate_pointwise(self, x_grid: np.ndarray) -> np.ndarray:
        results = [self._evaluate_one(float(x)) for x in x_grid]
        raised = [r for r in results if r.raised]
        if results and len(raised) == len(results):
            raise SampleEvaluationError(f"{self._label}: evaluation failed at every sample ({raised[0].error})")
        return np.array([r.value if r.ok else np.nan for r in results], dtype=float)

    def _evaluate_one(self, x: float) -> EvalResult:
        evaluate = getattr(self._expression, "evaluate", None)
        if callable(evaluate):
            return evaluate(x)
        try:
            with np.errstate(all="ignore"):
                value = complex(np.asarray(self._expression(x)).item())
        except Exception as exc:
            return EvalResult(x=x, error=f"{type(exc).__name__}: {exc}", raised=True)
        if value.imag != 0 or not np.isfinite(value.real):
            return EvalResult(x=x, error="non-finite result")
        return EvalResult(x=x, value=value.real)

    def __repr__(self) -> str:
        state = "enabled" if self._enabled else "disabled"
        return f"Equation({self._label!r}, color={self._color!r}, {state})"
