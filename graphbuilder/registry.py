"""Ordered collection of loaded equations with change notification.

The registry is the single writer of equation state. Its public surface is
replace/append (plus toggling and removal); every mutation fires exactly one
typed event from :mod:`graphbuilder.registry_events` after the new state is in
place. Listeners run synchronously in registration order.
"""

from __future__ import annotations

import logging
import warnings
from typing import Callable, Dict, Hashable, Iterable, Iterator, Optional

from .equation import Equation
from .registry_events import BulkReplace, ItemChanged, ItemsAdded, ItemsRemoved, RegistryEvent

__all__ = ["EquationRegistry", "RegistryListener"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

RegistryListener = Callable[[RegistryEvent], None]


class EquationRegistry:
    """Ordered, observable sequence of :class:`Equation`.

    Examples
    --------
    >>> registry = EquationRegistry()
    >>> events = []
    >>> _ = registry.add_listener(events.append)
    >>> registry.append([])  # empty input fires nothing
    >>> events
    []
    """

    def __init__(self) -> None:
        self._equations: list[Equation] = []
        self._listeners: Dict[Hashable, RegistryListener] = {}
        self._listener_counter = 0

    # --- Read access ---

    @property
    def equations(self) -> tuple[Equation, ...]:
        return tuple(self._equations)

    def __len__(self) -> int:
        return len(self._equations)

    def __iter__(self) -> Iterator[Equation]:
        return iter(tuple(self._equations))

    def __getitem__(self, index: int) -> Equation:
        return self._equations[index]

    def __contains__(self, equation: object) -> bool:
        return any(eq is equation for eq in self._equations)

    def index_of(self, equation: Equation) -> int:
        """Return the registry position of ``equation`` (identity match)."""
        for idx, eq in enumerate(self._equations):
            if eq is equation:
                return idx
        raise KeyError(f"Equation not in registry: {equation!r}")

    def enabled_equations(self) -> tuple[Equation, ...]:
        return tuple(eq for eq in self._equations if eq.enabled)

    # --- Mutation ---

    def replace_all(self, equations: Iterable[Equation]) -> None:
        """Clear the registry and insert ``equations`` in order."""
        new = self._dedupe(tuple(equations), existing=())
        self._equations = list(new)
        logger.info("registry replaced: %d equation(s)", len(new))
        self._notify(BulkReplace(equations=new))

    def append(self, equations: Iterable[Equation]) -> None:
        """Insert ``equations`` after the existing entries."""
        new = self._dedupe(tuple(equations), existing=self._equations)
        if not new:
            return
        self._equations.extend(new)
        logger.info("registry appended: %d equation(s), total %d", len(new), len(self._equations))
        self._notify(ItemsAdded(equations=new))

    def toggle_enabled(self, equation: Equation, enabled: bool) -> None:
        """Set the enabled flag of a registered equation."""
        self.index_of(equation)
        enabled = bool(enabled)
        if equation.enabled == enabled:
            return
        equation._set_enabled(enabled)
        logger.debug("registry toggled %r -> %s", equation.label, enabled)
        self._notify(ItemChanged(equation=equation, enabled=enabled))

    def remove(self, equations: Iterable[Equation]) -> None:
        """Drop registered equations."""
        targets = tuple(equations)
        for eq in targets:
            self.index_of(eq)
        if not targets:
            return
        self._equations = [eq for eq in self._equations if not any(eq is t for t in targets)]
        logger.info("registry removed: %d equation(s), total %d", len(targets), len(self._equations))
        self._notify(ItemsRemoved(equations=targets))

    @staticmethod
    def _dedupe(new: tuple[Equation, ...], existing: Iterable[Equation]) -> tuple[Equation, ...]:
        seen = {id(eq) for eq in existing}
        for eq in new:
            if not isinstance(eq, Equation):
                raise TypeError(f"registry accepts Equation instances, got {type(eq).__name__}")
            if id(eq) in seen:
                raise ValueError(f"Equation already registered: {eq!r}")
            seen.add(id(eq))
        return new

    # --- Listeners ---

    def add_listener(self, callback: RegistryListener, *, listener_id: Optional[Hashable] = None) -> Hashable:
        """Register ``callback`` for change events and return its id."""
        if listener_id is None:
            self._listener_counter += 1
            listener_id = f"listener:{self._listener_counter}"
        self._listeners[listener_id] = callback
        return listener_id

    def remove_listener(self, listener_id: Hashable) -> None:
        self._listeners.pop(listener_id, None)

    def _notify(self, event: RegistryEvent) -> None:
        for l_id, callback in list(self._listeners.items()):
            try:
                callback(event)
            except Exception as e:
                warnings.warn(f"Registry listener {l_id} failed: {e}")
