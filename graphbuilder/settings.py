"""Tunable defaults shared by the coordinator, synchronizer and figure.

``GraphSettings`` is passed explicitly to each component; nothing reads it from
module globals.

Sample density
--------------
An equation sampled over ``[left, right]`` uses
``N = max(2, round(base_samples * step_multiplier))`` intervals, i.e. ``N + 1``
evenly spaced points including both ends. The density does not depend on the
range width, so zooming in increases the resolution.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple

from .equation import DEFAULT_BASE_SAMPLES, DEFAULT_STEP_MULTIPLIER
from .palette import DEFAULT_PALETTE
from .viewport import Range

__all__ = ["GraphSettings", "DEFAULT_SETTINGS"]


@dataclass(frozen=True)
class GraphSettings:
    """Immutable configuration bundle.

    Parameters
    ----------
    default_range : Range
        Visible x-range before the first pan/zoom.
    base_samples : int
        Sample intervals per equation before ``step_multiplier`` is applied.
    step_multiplier : float
        Density factor stored on each new equation.
    axis_limits : Range
        Pan/zoom requests are clamped to this extent.
    relayout_debounce_ms : int
        Cadence at which queued viewport changes are applied by the figure.
    palette : tuple[str, ...]
        Colors handed out to new equations, in order.
    """

    default_range: Range = Range(-10.0, 10.0)
    base_samples: int = DEFAULT_BASE_SAMPLES
    step_multiplier: float = DEFAULT_STEP_MULTIPLIER
    axis_limits: Range = Range(-10000.0, 10000.0)
    relayout_debounce_ms: int = 500
    palette: Tuple[str, ...] = field(default=DEFAULT_PALETTE)

    def __post_init__(self) -> None:
        if int(self.base_samples) < 1:
            raise ValueError("base_samples must be >= 1")
        if not self.step_multiplier > 0:
            raise ValueError("step_multiplier must be > 0")
        if self.relayout_debounce_ms <= 0:
            raise ValueError("relayout_debounce_ms must be > 0")
        if not self.palette:
            raise ValueError("palette must contain at least one color")
        if not (
            self.axis_limits.left <= self.default_range.left
            and self.default_range.right <= self.axis_limits.right
        ):
            raise ValueError("default_range must lie inside axis_limits")
        object.__setattr__(self, "palette", tuple(self.palette))


DEFAULT_SETTINGS = GraphSettings()
