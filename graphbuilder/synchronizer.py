"""Keep the displayable series list consistent with the registry and the range.

Purpose
-------
``SeriesSynchronizer`` listens to an :class:`EquationRegistry` and maintains::

    series == [eq.sample_over_range(current_range) for eq in registry if eq.enabled]

Registry events are applied incrementally (append samples only the new
equations, a toggle adds or drops one series). A range change invalidates
every series at once and triggers a full rebuild.

Architecture notes
------------------
- Every update builds the complete new list first and swaps it in with one
  assignment; series listeners run after the swap.
- Series are kept in registry order. A re-enabled equation is re-inserted at
  its registry position with a stable sort on that position.
- One broken equation never blanks the others: its sampling failure is logged,
  its series is left out, and it is reported in ``failed_equations``.
"""

from __future__ import annotations

import logging
import time
import warnings
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, Optional

from .equation import Equation, PointSeries
from .errors import RangeInvalid
from .registry import EquationRegistry
from .registry_events import BulkReplace, ItemChanged, ItemsAdded, ItemsRemoved, RegistryEvent
from .settings import DEFAULT_SETTINGS, GraphSettings
from .viewport import Range, coerce_range

__all__ = ["SeriesSynchronizer", "SeriesUpdate", "SeriesListener"]

logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class SeriesUpdate:
    """Notification sent to series listeners after the list was swapped.

    Parameters
    ----------
    reason : str
        ``"replace"``, ``"append"``, ``"toggle"``, ``"remove"``, ``"range"`` or ``"refresh"``.
    series : tuple[PointSeries, ...]
        The complete series list after the update.
    current_range : Range
        Range all series were sampled over.
    """

    reason: str
    series: tuple[PointSeries, ...]
    current_range: Range


SeriesListener = Callable[[SeriesUpdate], None]


class SeriesSynchronizer:
    """Derive and cache one :class:`PointSeries` per enabled equation.

    Parameters
    ----------
    registry : EquationRegistry
        Registry to observe. The synchronizer subscribes immediately and
        samples whatever it already holds.
    settings : GraphSettings, optional
        Supplies the initial range and ``base_samples``.
    """

    def __init__(self, registry: EquationRegistry, settings: GraphSettings = DEFAULT_SETTINGS) -> None:
        self._registry = registry
        self._settings = settings
        self._current_range = settings.default_range
        self._series: tuple[PointSeries, ...] = ()
        self._failed: Dict[int, Equation] = {}
        self._listeners: Dict[Hashable, SeriesListener] = {}
        self._listener_counter = 0
        self._registry_listener_id = registry.add_listener(self._on_registry_event)
        if len(registry):
            self._rebuild(reason="refresh")

    # --- Read access ---

    @property
    def series(self) -> tuple[PointSeries, ...]:
        return self._series

    @property
    def current_range(self) -> Range:
        return self._current_range

    @property
    def registry(self) -> EquationRegistry:
        return self._registry

    @property
    def failed_equations(self) -> tuple[Equation, ...]:
        """Enabled equations whose last sampling attempt failed."""
        return tuple(self._failed.values())

    def series_for(self, equation: Equation) -> Optional[PointSeries]:
        for item in self._series:
            if item.equation is equation:
                return item
        return None

    def equation_at(self, index: int) -> Equation:
        """Return the equation behind the ``index``-th series (draw order)."""
        return self._series[index].equation

    # --- Viewport ---

    def set_range(self, min_x: float, max_x: float) -> bool:
        """Adopt a new visible range and rebuild every series.

        Returns
        -------
        bool
            ``False`` if the bounds were rejected; the previous range and
            series are kept in that case.
        """
        try:
            new_range = coerce_range((min_x, max_x))
        except RangeInvalid as e:
            logger.warning("ignoring range change: %s", e)
            return False
        self._current_range = new_range
        self._rebuild(reason="range")
        return True

    def refresh(self) -> None:
        """Rebuild every series over the last known range."""
        self._rebuild(reason="refresh")

    # --- Registry events ---

    def _on_registry_event(self, event: RegistryEvent) -> None:
        if isinstance(event, BulkReplace):
            self._rebuild(reason="replace")
        elif isinstance(event, ItemsAdded):
            added = self._sample_all(eq for eq in event.equations if eq.enabled)
            self._publish(self._series + added, reason="append")
        elif isinstance(event, ItemChanged):
            self._apply_toggle(event.equation, event.enabled)
        elif isinstance(event, ItemsRemoved):
            gone = {id(eq) for eq in event.equations}
            for key in gone:
                self._failed.pop(key, None)
            kept = tuple(item for item in self._series if id(item.equation) not in gone)
            self._publish(kept, reason="remove")

    def _apply_toggle(self, equation: Equation, enabled: bool) -> None:
        remaining = tuple(item for item in self._series if item.equation is not equation)
        self._failed.pop(id(equation), None)
        if not enabled:
            self._publish(remaining, reason="toggle")
            return
        combined = remaining + self._sample_all((equation,))
        self._publish(self._in_registry_order(combined), reason="toggle")

    def _in_registry_order(self, items: tuple[PointSeries, ...]) -> tuple[PointSeries, ...]:
        position = {id(eq): idx for idx, eq in enumerate(self._registry.equations)}
        return tuple(sorted(items, key=lambda item: position.get(id(item.equation), len(position))))

    # --- Sampling ---

    def _rebuild(self, *, reason: str) -> None:
        t0 = time.perf_counter()
        self._failed.clear()
        rebuilt = self._sample_all(self._registry.enabled_equations())
        self._publish(rebuilt, reason=reason)
        logger.info(
            "rebuild(reason=%s) series=%d failed=%d in %.1f ms",
            reason,
            len(rebuilt),
            len(self._failed),
            1000.0 * (time.perf_counter() - t0),
        )
        logger.debug("range x=%s", self._current_range.as_tuple())

    def _sample_all(self, equations: Iterable[Equation]) -> tuple[PointSeries, ...]:
        out: list[PointSeries] = []
        for eq in equations:
            try:
                out.append(eq.sample_over_range(self._current_range, self._settings.base_samples))
            except Exception as e:
                self._failed[id(eq)] = eq
                logger.warning("omitting series for %r: %s", eq.label, e)
        return tuple(out)

    def _publish(self, series: tuple[PointSeries, ...], *, reason: str) -> None:
        self._series = series
        update = SeriesUpdate(reason=reason, series=series, current_range=self._current_range)
        for l_id, callback in list(self._listeners.items()):
            try:
                callback(update)
            except Exception as e:
                warnings.warn(f"Series listener {l_id} failed: {e}")

    # --- Listeners ---

    def add_listener(self, callback: SeriesListener, *, listener_id: Optional[Hashable] = None) -> Hashable:
        """Register ``callback`` to receive :class:`SeriesUpdate` after each change."""
        if listener_id is None:
            self._listener_counter += 1
            listener_id = f"series-listener:{self._listener_counter}"
        self._listeners[listener_id] = callback
        return listener_id

    def remove_listener(self, listener_id: Hashable) -> None:
        self._listeners.pop(listener_id, None)

    def detach(self) -> None:
        """Stop observing the registry."""
        self._registry.remove_listener(self._registry_listener_id)
