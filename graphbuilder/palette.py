"""Cyclic color assignment for newly created equations."""

from __future__ import annotations

from typing import Sequence

__all__ = ["DEFAULT_PALETTE", "ColorAssigner"]

DEFAULT_PALETTE: tuple[str, ...] = (
    "rgb(205, 92, 92)",
    "rgb(0, 0, 255)",
    "rgb(255, 20, 147)",
    "rgb(128, 0, 128)",
    "rgb(255, 69, 0)",
    "rgb(250, 128, 114)",
    "rgb(255, 218, 185)",
    "rgb(255, 255, 0)",
    "rgb(0, 255, 0)",
    "rgb(154, 205, 50)",
    "rgb(102, 205, 170)",
    "rgb(0, 255, 255)",
)


class ColorAssigner:
    """Hand out palette colors in order, wrapping at the end.

    Colors are never released back to the pool. After ``len(palette)`` calls
    the sequence starts over, so equations loaded later may share a color with
    earlier ones.

    Examples
    --------
    >>> colors = ColorAssigner(("red", "blue"))
    >>> [colors.next() for _ in range(3)]
    ['red', 'blue', 'red']
    """

    def __init__(self, palette: Sequence[str] = DEFAULT_PALETTE) -> None:
        self._palette = tuple(str(color) for color in palette)
        if not self._palette:
            raise ValueError("palette must contain at least one color")
        self._cursor = 0

    @property
    def palette(self) -> tuple[str, ...]:
        return self._palette

    def next(self) -> str:
        """Return the color at the cursor and advance it."""
        if self._cursor >= len(self._palette):
            self._cursor = 0
        color = self._palette[self._cursor]
        self._cursor += 1
        return color
