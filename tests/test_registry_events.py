from __future__ import annotations

import pytest

from graphbuilder.equation import Equation
from graphbuilder.registry import EquationRegistry
from graphbuilder.registry_events import BulkReplace, ItemChanged, ItemsAdded, ItemsRemoved


def _eq(label: str) -> Equation:
    return Equation(label, lambda x: x, "red")


def _recording_registry() -> tuple[EquationRegistry, list]:
    registry = EquationRegistry()
    events: list = []
    registry.add_listener(events.append)
    return registry, events


def test_replace_all_fires_bulk_replace_with_new_order() -> None:
    registry, events = _recording_registry()
    a, b = _eq("a"), _eq("b")

    registry.replace_all([a, b])

    assert registry.equations == (a, b)
    assert events == [BulkReplace(equations=(a, b))]


def test_append_fires_items_added_only_for_non_empty_input() -> None:
    registry, events = _recording_registry()
    a, b = _eq("a"), _eq("b")
    registry.replace_all([a])
    events.clear()

    registry.append([])
    registry.append([b])

    assert registry.equations == (a, b)
    assert events == [ItemsAdded(equations=(b,))]


def test_append_rejects_already_registered_equation() -> None:
    registry, events = _recording_registry()
    a = _eq("a")
    registry.append([a])
    events.clear()

    with pytest.raises(ValueError):
        registry.append([a])
    assert registry.equations == (a,)
    assert events == []


def test_registry_rejects_non_equations() -> None:
    registry = EquationRegistry()

    with pytest.raises(TypeError):
        registry.replace_all(["x^2"])  # type: ignore[list-item]


def test_toggle_fires_item_changed_and_ignores_no_op() -> None:
    registry, events = _recording_registry()
    a = _eq("a")
    registry.replace_all([a])
    events.clear()

    registry.toggle_enabled(a, True)
    registry.toggle_enabled(a, False)

    assert a.enabled is False
    assert events == [ItemChanged(equation=a, enabled=False)]


def test_toggle_unknown_equation_raises_key_error() -> None:
    registry = EquationRegistry()

    with pytest.raises(KeyError):
        registry.toggle_enabled(_eq("stranger"), False)


def test_remove_fires_items_removed() -> None:
    registry, events = _recording_registry()
    a, b, c = _eq("a"), _eq("b"), _eq("c")
    registry.replace_all([a, b, c])
    events.clear()

    registry.remove([b])

    assert registry.equations == (a, c)
    assert events == [ItemsRemoved(equations=(b,))]


def test_listener_sees_final_state_and_failures_only_warn() -> None:
    registry = EquationRegistry()
    seen: list[int] = []

    def _broken(_event):
        raise RuntimeError("boom")

    registry.add_listener(_broken)
    registry.add_listener(lambda _event: seen.append(len(registry)))

    with pytest.warns(UserWarning, match="boom"):
        registry.replace_all([_eq("a"), _eq("b")])

    assert seen == [2]


def test_remove_listener_stops_notifications() -> None:
    registry = EquationRegistry()
    events: list = []
    listener_id = registry.add_listener(events.append)

    registry.remove_listener(listener_id)
    registry.replace_all([_eq("a")])

    assert events == []


def test_membership_and_index_use_identity() -> None:
    registry = EquationRegistry()
    a, twin = _eq("a"), _eq("a")
    registry.replace_all([a])

    assert a in registry
    assert twin not in registry
    assert registry.index_of(a) == 0
    with pytest.raises(KeyError):
        registry.index_of(twin)
