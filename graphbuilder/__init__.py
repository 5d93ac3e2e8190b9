"""Top-level public API for the ``graphbuilder`` package.

Load a text file with one equation of ``x`` per line and plot every enabled
equation over the visible x-range. The notebook surface is :class:`GraphFigure`:

>>> from graphbuilder import GraphFigure  # doctest: +SKIP
>>> fig = GraphFigure()  # doctest: +SKIP
>>> fig.load_file("equations.txt")  # doctest: +SKIP

The headless pipeline (:class:`ViewCoordinator`, :class:`EquationRegistry`,
:class:`SeriesSynchronizer`) is exported as well for scripting and tests.
"""

from .coordinator import PointerReadout, PointSelection, ViewCoordinator
from .equation import Equation, PointSeries
from .errors import (
    EquationCompileError,
    EquationDefinitionError,
    EquationFileError,
    EquationParseError,
    GraphBuilderError,
    RangeInvalid,
    SampleEvaluationError,
)
from .expression import EvalResult, NumericExpression, build_expression, parse_equation
from .figure import GraphFigure
from .loader import load_equations
from .palette import DEFAULT_PALETTE, ColorAssigner
from .registry import EquationRegistry
from .registry_events import BulkReplace, ItemChanged, ItemsAdded, ItemsRemoved
from .settings import DEFAULT_SETTINGS, GraphSettings
from .synchronizer import SeriesSynchronizer, SeriesUpdate
from .viewport import DEFAULT_RANGE, Range

__all__ = [
    "BulkReplace",
    "ColorAssigner",
    "DEFAULT_PALETTE",
    "DEFAULT_RANGE",
    "DEFAULT_SETTINGS",
    "Equation",
    "EquationCompileError",
    "EquationDefinitionError",
    "EquationFileError",
    "EquationParseError",
    "EquationRegistry",
    "EvalResult",
    "GraphBuilderError",
    "GraphFigure",
    "GraphSettings",
    "ItemChanged",
    "ItemsAdded",
    "ItemsRemoved",
    "NumericExpression",
    "PointSelection",
    "PointSeries",
    "PointerReadout",
    "Range",
    "RangeInvalid",
    "SampleEvaluationError",
    "SeriesSynchronizer",
    "SeriesUpdate",
    "ViewCoordinator",
    "build_expression",
    "load_equations",
    "parse_equation",
]
