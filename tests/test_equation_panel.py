from __future__ import annotations

import ipywidgets as widgets

from graphbuilder.equation import Equation
from graphbuilder.equation_panel import EquationPanel


def _eq(label: str, color: str = "red") -> Equation:
    return Equation(label, lambda x: x, color)


def test_refresh_creates_rows_in_order_with_colored_labels() -> None:
    box = widgets.VBox()
    panel = EquationPanel(box, lambda eq, enabled: None)
    a, b = _eq("x= y", "blue"), _eq("x<2= y")

    panel.refresh([a, b])

    assert [row.equation for row in panel.rows] == [a, b]
    assert "color:blue" in panel.rows[0].label_widget.value
    assert "x&lt;2= y" in panel.rows[1].label_widget.value
    assert all(row.toggle.value is True for row in panel.rows)


def test_refresh_reuses_rows_and_is_idempotent() -> None:
    box = widgets.VBox()
    panel = EquationPanel(box, lambda eq, enabled: None)
    a, b = _eq("a"), _eq("b")

    panel.refresh([a])
    first_row = panel.rows[0]
    first_children = box.children
    panel.refresh([a])

    assert box.children is first_children

    panel.refresh([a, b])
    assert panel.rows[0] is first_row

    panel.refresh([b])
    assert [row.equation for row in panel.rows] == [b]


def test_checkbox_forwards_user_toggle() -> None:
    box = widgets.VBox()
    calls: list = []
    panel = EquationPanel(box, lambda eq, enabled: calls.append((eq, enabled)))
    a = _eq("a")
    panel.refresh([a])

    panel.rows[0].toggle.value = False

    assert calls == [(a, False)]


def test_programmatic_sync_does_not_echo_toggle() -> None:
    box = widgets.VBox()
    calls: list = []
    panel = EquationPanel(box, lambda eq, enabled: calls.append((eq, enabled)))
    a = _eq("a")
    panel.refresh([a])

    a._set_enabled(False)
    panel.refresh([a])

    assert panel.rows[0].toggle.value is False
    assert calls == []
