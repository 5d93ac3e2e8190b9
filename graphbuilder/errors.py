"""Exception taxonomy for the equation-to-series pipeline.

Definition failures (:class:`EquationParseError`, :class:`EquationCompileError`)
abort the load that triggered them. Evaluation failures
(:class:`SampleEvaluationError`) are isolated to one sample or one equation.
Viewport failures (:class:`RangeInvalid`) make the range change a no-op.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

__all__ = [
    "GraphBuilderError",
    "EquationDefinitionError",
    "EquationParseError",
    "EquationCompileError",
    "EquationFileError",
    "SampleEvaluationError",
    "RangeInvalid",
]


class GraphBuilderError(Exception):
    """Base class for errors raised by ``graphbuilder``."""


class EquationDefinitionError(GraphBuilderError):
    """A line of text could not be turned into an evaluable equation."""

    def __init__(self, message: str, *, text: str = "") -> None:
        super().__init__(message)
        self.text = text


class EquationParseError(EquationDefinitionError):
    """Raised when equation text is not syntactically valid."""


class EquationCompileError(EquationDefinitionError):
    """Raised when a parsed expression cannot be compiled to a numeric callable."""


class EquationFileError(GraphBuilderError):
    """Raised when a load/append aborts because one line failed.

    Parameters
    ----------
    path : str or Path or None
        Source file, or ``None`` for in-memory text.
    line_number : int
        1-based number of the offending line.
    cause : EquationDefinitionError
        Underlying parse/compile failure; its message is repeated in ``str(self)``.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]],
        line_number: int,
        cause: EquationDefinitionError,
    ) -> None:
        self.path = None if path is None else str(path)
        self.line_number = line_number
        self.cause = cause
        source = "<text>" if self.path is None else self.path
        super().__init__(f"{source}, line {line_number}: {cause}")


class SampleEvaluationError(GraphBuilderError):
    """Raised when an equation cannot be evaluated anywhere on a range."""


class RangeInvalid(GraphBuilderError, ValueError):
    """Raised for non-finite, inverted or empty x-ranges."""
