"""UI-facing coordinator for the equation pipeline.

Purpose
-------
``ViewCoordinator`` turns user intents (load file, append file, pan/zoom,
toggle, point click, pointer move) into calls on the registry, color assigner
and synchronizer. It owns those three objects and wires the synchronizer to
the registry; rendering surfaces subscribe to ``coordinator.synchronizer``.

Examples
--------
>>> coordinator = ViewCoordinator()
>>> coordinator.load_lines(["x^2", "sin(x)"])
>>> [s.label for s in coordinator.series]
['x^2= y', 'sin(x)= y']
>>> coordinator.rerange_x(-1, 1)
True
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Sequence

from .equation import Equation, PointSeries
from .errors import RangeInvalid
from .loader import PathLike, build_equations, iter_equation_lines, load_equations
from .palette import ColorAssigner
from .registry import EquationRegistry
from .settings import DEFAULT_SETTINGS, GraphSettings
from .synchronizer import SeriesSynchronizer
from .viewport import Range, clamp_range, coerce_bound, coerce_range

__all__ = ["ViewCoordinator", "PointSelection", "PointerReadout"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class PointSelection:
    """A clicked sample and the equation it belongs to."""

    equation: Equation
    x: float
    y: float


@dataclass(frozen=True)
class PointerReadout:
    """Pointer position formatted for display (two decimals)."""

    x: str
    y: str


class ViewCoordinator:
    """Own the registry/synchronizer pair and expose user-level operations.

    Parameters
    ----------
    settings : GraphSettings, optional
        Range, density, palette and axis limits.
    """

    def __init__(self, settings: GraphSettings = DEFAULT_SETTINGS) -> None:
        self._settings = settings
        self._colors = ColorAssigner(settings.palette)
        self._registry = EquationRegistry()
        self._synchronizer = SeriesSynchronizer(self._registry, settings)
        self._selection: Optional[PointSelection] = None
        self._pointer = PointerReadout(x=_format_coordinate(0.0), y=_format_coordinate(0.0))

    @property
    def settings(self) -> GraphSettings:
        return self._settings

    @property
    def registry(self) -> EquationRegistry:
        return self._registry

    @property
    def synchronizer(self) -> SeriesSynchronizer:
        return self._synchronizer

    @property
    def colors(self) -> ColorAssigner:
        return self._colors

    @property
    def equations(self) -> tuple[Equation, ...]:
        return self._registry.equations

    @property
    def series(self) -> tuple[PointSeries, ...]:
        return self._synchronizer.series

    @property
    def current_range(self) -> Range:
        return self._synchronizer.current_range

    @property
    def selection(self) -> Optional[PointSelection]:
        return self._selection

    @property
    def pointer(self) -> PointerReadout:
        return self._pointer

    # --- Loading ---

    def load_file(self, path: PathLike) -> None:
        """Replace all equations with the contents of ``path``.

        Raises
        ------
        EquationFileError
            If any line fails; the registry is left unchanged.
        OSError
            If the file cannot be read.
        """
        equations = load_equations(path, self._colors, step_multiplier=self._settings.step_multiplier)
        self._selection = None
        self._registry.replace_all(equations)

    def append_file(self, path: PathLike) -> None:
        """Append the equations of ``path`` after the existing ones."""
        equations = load_equations(path, self._colors, step_multiplier=self._settings.step_multiplier)
        self._registry.append(equations)

    def load_lines(self, lines: Iterable[str]) -> None:
        """Replace all equations with one equation per non-blank line."""
        equations = self._build(lines)
        self._selection = None
        self._registry.replace_all(equations)

    def append_lines(self, lines: Iterable[str]) -> None:
        """Append one equation per non-blank line."""
        self._registry.append(self._build(lines))

    def _build(self, lines: Iterable[str]) -> list[Equation]:
        if isinstance(lines, str):
            lines = lines.splitlines()
        return build_equations(
            iter_equation_lines(lines),
            self._colors,
            step_multiplier=self._settings.step_multiplier,
        )

    # --- Equation state ---

    def set_enabled(self, equation: Equation, enabled: bool) -> None:
        if not enabled and self._selection is not None and self._selection.equation is equation:
            self._selection = None
        self._registry.toggle_enabled(equation, enabled)

    def remove(self, equations: Sequence[Equation]) -> None:
        if self._selection is not None and any(eq is self._selection.equation for eq in equations):
            self._selection = None
        self._registry.remove(equations)

    # --- Viewport ---

    def rerange_x(self, min_x: Any, max_x: Any) -> bool:
        """Apply a pan/zoom, clamped to ``settings.axis_limits``.

        Returns ``False`` (and keeps the previous range) for invalid bounds.
        """
        try:
            requested = coerce_range((min_x, max_x))
            clamped = clamp_range(requested, self._settings.axis_limits)
        except RangeInvalid as e:
            logger.warning("ignoring range change (%r, %r): %s", min_x, max_x, e)
            return False
        return self._synchronizer.set_range(clamped.left, clamped.right)

    def refresh(self) -> None:
        self._synchronizer.refresh()

    # --- Pointer / selection ---

    def select_point(self, equation: Equation, x: Any, y: Any) -> PointSelection:
        """Record a clicked sample of ``equation``."""
        if equation not in self._registry:
            raise KeyError(f"Equation not in registry: {equation!r}")
        self._selection = PointSelection(equation=equation, x=float(x), y=float(y))
        logger.debug("selected %r at (%s, %s)", equation.label, x, y)
        return self._selection

    def select_series_point(self, series_index: int, x: Any, y: Any) -> PointSelection:
        """Record a clicked sample addressed by its position in the series list."""
        return self.select_point(self._synchronizer.equation_at(series_index), x, y)

    def pointer_moved(self, x: Any, y: Any) -> PointerReadout:
        """Update the pointer readout; unconvertible coordinates read as zero."""
        self._pointer = PointerReadout(x=_format_coordinate(x), y=_format_coordinate(y))
        return self._pointer


def _format_coordinate(value: Any) -> str:
    try:
        number = coerce_bound(value)
    except RangeInvalid:
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    return f"{number:.2f}"
