"""Typed change events emitted by :class:`~graphbuilder.registry.EquationRegistry`.

Each event is immutable and is delivered after the registry has been fully
updated, so a listener can read the registry and see the final state.

Examples
--------
>>> def listener(event):  # doctest: +SKIP
...     if isinstance(event, ItemsAdded):
...         print([eq.label for eq in event.equations])
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .equation import Equation

__all__ = ["BulkReplace", "ItemsAdded", "ItemChanged", "ItemsRemoved", "RegistryEvent"]


@dataclass(frozen=True)
class BulkReplace:
    """The registry was cleared and refilled with ``equations`` (in order)."""

    equations: tuple["Equation", ...]


@dataclass(frozen=True)
class ItemsAdded:
    """``equations`` were appended after the existing entries."""

    equations: tuple["Equation", ...]


@dataclass(frozen=True)
class ItemChanged:
    """The enabled flag of ``equation`` changed to ``enabled``."""

    equation: "Equation"
    enabled: bool


@dataclass(frozen=True)
class ItemsRemoved:
    """``equations`` were dropped from the registry."""

    equations: tuple["Equation", ...]


RegistryEvent = Union[BulkReplace, ItemsAdded, ItemChanged, ItemsRemoved]
