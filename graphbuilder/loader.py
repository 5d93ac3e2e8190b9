"""Read equation files and turn each line into an :class:`Equation`.

A file is ingested all-or-nothing: every line is parsed and compiled before
any color is assigned or any equation is returned. The first failing line
aborts the whole file with :class:`~graphbuilder.errors.EquationFileError`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from .equation import DEFAULT_STEP_MULTIPLIER, Equation
from .errors import EquationDefinitionError, EquationFileError
from .expression import NumericExpression, build_expression
from .palette import ColorAssigner

__all__ = ["iter_equation_lines", "read_equation_lines", "build_equations", "load_equations"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

PathLike = Union[str, Path]


def iter_equation_lines(lines: Iterable[str]) -> Iterator[tuple[int, str]]:
    """Yield ``(line_number, text)`` for every non-blank line (1-based)."""
    for number, raw in enumerate(lines, start=1):
        text = raw.rstrip("\r\n")
        if text.strip():
            yield number, text


def read_equation_lines(path: PathLike) -> list[tuple[int, str]]:
    """Read ``path`` as UTF-8 and return its numbered non-blank lines."""
    with open(path, "r", encoding="utf-8") as handle:
        return list(iter_equation_lines(handle))


def build_equations(
    numbered_lines: Iterable[tuple[int, str]],
    colors: ColorAssigner,
    *,
    step_multiplier: float = DEFAULT_STEP_MULTIPLIER,
    path: Optional[PathLike] = None,
) -> list[Equation]:
    """Compile every line, then create the equations in order.

    Raises
    ------
    EquationFileError
        For the first line that fails to parse or compile. No color is
        consumed in that case.
    """
    compiled: list[tuple[str, NumericExpression]] = []
    for number, text in numbered_lines:
        try:
            compiled.append((text.strip(), build_expression(text)))
        except EquationDefinitionError as e:
            error = EquationFileError(path, number, e)
            logger.warning("load aborted: %s", error)
            raise error from e

    return [
        Equation(f"{text}= y", expression, colors.next(), step_multiplier, text=text)
        for text, expression in compiled
    ]


def load_equations(
    path: PathLike,
    colors: ColorAssigner,
    *,
    step_multiplier: float = DEFAULT_STEP_MULTIPLIER,
) -> list[Equation]:
    """Read ``path`` and return one equation per non-blank line."""
    equations = build_equations(
        read_equation_lines(path),
        colors,
        step_multiplier=step_multiplier,
        path=path,
    )
    logger.info("loaded %d equation(s) from %s", len(equations), path)
    return equations
