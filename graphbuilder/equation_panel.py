"""Side panel with one enable/disable row per loaded equation.

Purpose
-------
``EquationPanel`` renders a checkbox + colored label row per equation into an
``ipywidgets`` box. Rows follow registry order and are reused across refreshes
so widget identity is stable.

Architecture notes
------------------
- The panel never flips ``Equation.enabled`` itself; checkbox changes are
  forwarded to a ``toggle`` callback (normally ``ViewCoordinator.set_enabled``)
  so the registry stays the single writer.
- Programmatic checkbox updates are suppressed per equation to avoid echoing
  them back as user toggles.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable

import ipywidgets as widgets

from .equation import Equation

__all__ = ["EquationPanel", "EquationRowModel"]


@dataclass
class EquationRowModel:
    """Widget bundle for one equation row."""

    equation: Equation
    container: widgets.HBox
    toggle: widgets.Checkbox
    label_widget: widgets.HTML


class EquationPanel:
    """Keep a box of equation rows in sync with a sequence of equations."""

    def __init__(self, layout_box: widgets.Box, toggle: Callable[[Equation, bool], Any]) -> None:
        self._layout_box = layout_box
        self._toggle = toggle
        self._rows: Dict[int, EquationRowModel] = {}
        self._suspended: set[int] = set()

    @property
    def rows(self) -> tuple[EquationRowModel, ...]:
        """Return row models in display order."""
        by_container = {id(row.container): row for row in self._rows.values()}
        return tuple(by_container[id(c)] for c in self._layout_box.children if id(c) in by_container)

    def refresh(self, equations: Iterable[Equation]) -> None:
        """Synchronize rows with ``equations`` (in order)."""
        wanted = list(equations)
        wanted_ids = {id(eq) for eq in wanted}
        for key in [k for k in self._rows if k not in wanted_ids]:
            self._rows.pop(key).toggle.unobserve_all()

        children: list[widgets.Widget] = []
        for eq in wanted:
            row = self._rows.get(id(eq))
            if row is None:
                row = self._create_row(eq)
                self._rows[id(eq)] = row
            self._sync_row_widgets(row)
            children.append(row.container)

        desired_children = tuple(children)
        if self._layout_box.children != desired_children:
            self._layout_box.children = desired_children

    def _create_row(self, equation: Equation) -> EquationRowModel:
        toggle = widgets.Checkbox(
            value=equation.enabled,
            description="",
            indent=False,
            layout=widgets.Layout(width="28px", min_width="28px", margin="0"),
        )
        label_widget = widgets.HTML(value="", layout=widgets.Layout(margin="0", width="100%"))
        container = widgets.HBox(
            [toggle, label_widget],
            layout=widgets.Layout(width="100%", align_items="center", margin="0", gap="6px"),
        )
        key = id(equation)
        toggle.observe(lambda change, k=key: self._on_toggle_changed(k, change), names="value")
        return EquationRowModel(equation=equation, container=container, toggle=toggle, label_widget=label_widget)

    def _sync_row_widgets(self, row: EquationRowModel) -> None:
        eq = row.equation
        label = (
            f'<span style="color:{html.escape(eq.color)}">&#9632;</span> '
            f"{html.escape(eq.label)}"
        )
        if row.label_widget.value != label:
            row.label_widget.value = label

        if row.toggle.value != eq.enabled:
            key = id(eq)
            self._suspended.add(key)
            try:
                row.toggle.value = eq.enabled
            finally:
                self._suspended.discard(key)

    def _on_toggle_changed(self, key: int, change: Dict[str, Any]) -> None:
        if change.get("name") != "value" or key in self._suspended:
            return
        row = self._rows.get(key)
        if row is None:
            return
        self._toggle(row.equation, bool(change.get("new")))
