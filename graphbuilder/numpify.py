"""Code generation from SymPy expressions to NumPy callables.

This is the compile/optimize backend of :mod:`graphbuilder.expression`. An
expression is printed with SymPy's ``NumPyPrinter`` into the body of a small
Python function, which is then ``exec``'d. Every argument goes through
``numpy.asarray`` first, so the same callable works on a scalar and on a whole
sample grid.

With ``cse=True`` repeated subexpressions are printed once into locals::

    def _generated(x):
        x = numpy.asarray(x)
        _cse0 = numpy.sin(x)
        return _cse0**2 + _cse0

Compiled functions are cached by expression, argument order and options, so
reloading the same equation file does not regenerate code.

Examples
--------
>>> import numpy as np
>>> import sympy as sp
>>> x = sp.Symbol("x")
>>> numpify(5, vars=x)(np.array([1, 2, 3]))
array([5., 5., 5.])

Notes
-----
Generated code is run with ``exec``. Only compile expressions you parsed
yourself.
"""

from __future__ import annotations

import importlib
import keyword
import logging
import time
from functools import lru_cache
from typing import Any, Callable, Iterable, Optional, Tuple, Union

import numpy as np
import sympy as sp
from sympy.printing.numpy import NumPyPrinter

__all__ = ["NumpifiedFunction", "numpify", "numpify_cached"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

SymbolArgs = Optional[Union[sp.Symbol, Iterable[sp.Symbol]]]

_RESERVED = frozenset({"numpy", "math", "functools", "_generated", "_shape"})


class NumpifiedFunction:
    """Generated callable together with the expression it was built from."""

    __slots__ = ("_fn", "symbolic", "arguments", "source", "cse")

    def __init__(
        self,
        fn: Callable[..., Any],
        symbolic: sp.Basic,
        arguments: tuple[sp.Symbol, ...],
        source: str,
        *,
        cse: bool = False,
    ) -> None:
        self._fn = fn
        self.symbolic = symbolic
        self.arguments = arguments
        self.source = source
        self.cse = cse

    @property
    def vars(self) -> tuple[sp.Symbol, ...]:
        return self.arguments

    @property
    def var_names(self) -> tuple[str, ...]:
        return tuple(sym.name for sym in self.arguments)

    def __call__(self, *values: Any) -> Any:
        if len(values) != len(self.arguments):
            raise TypeError(f"{self!r} takes {len(self.arguments)} argument(s), got {len(values)}")
        return self._fn(*values)

    def __repr__(self) -> str:
        return f"NumpifiedFunction({self.symbolic}, vars={self.var_names}, cse={self.cse})"


def numpify(expr: Any, *, vars: SymbolArgs = None, cse: bool = False, cache: bool = True) -> NumpifiedFunction:
    """Compile ``expr`` into a NumPy callable taking ``vars`` positionally.

    Parameters
    ----------
    expr : sympy.Basic or sympifiable
        Expression to compile.
    vars : Symbol or iterable of Symbol, optional
        Argument order. Defaults to the free symbols in SymPy's sort order.
    cse : bool, optional
        Hoist common subexpressions into locals.
    cache : bool, optional
        Reuse a previous compile of the same inputs (see :func:`numpify_cached`).

    Raises
    ------
    TypeError
        If ``expr`` is not a SymPy expression or ``vars`` are not symbols.
    ValueError
        If ``expr`` has free symbols outside ``vars``, a symbol name cannot
        be used as an argument, or a function has no NumPy translation.
    """
    if cache:
        return numpify_cached(expr, vars=vars, cse=cse)
    expr, arguments = _prepare(expr, vars)
    return _generate(expr, arguments, cse)


def numpify_cached(expr: Any, *, vars: SymbolArgs = None, cse: bool = False) -> NumpifiedFunction:
    """Cached :func:`numpify`; clear with ``numpify_cached.cache_clear()``."""
    expr, arguments = _prepare(expr, vars)
    return _generate_cached(expr, arguments, cse)


@lru_cache(maxsize=256)
def _generate_cached(expr: sp.Basic, arguments: Tuple[sp.Symbol, ...], cse: bool) -> NumpifiedFunction:
    logger.debug("numpify cache miss for %s (cse=%s)", expr, cse)
    return _generate(expr, arguments, cse)


numpify_cached.cache_info = _generate_cached.cache_info  # type: ignore[attr-defined]
numpify_cached.cache_clear = _generate_cached.cache_clear  # type: ignore[attr-defined]


def _prepare(expr: Any, vars: SymbolArgs) -> tuple[sp.Basic, tuple[sp.Symbol, ...]]:
    try:
        expr = sp.sympify(expr)
    except (sp.SympifyError, TypeError) as e:
        raise TypeError(f"cannot compile {type(expr).__name__} objects") from e
    if not isinstance(expr, sp.Basic):
        raise TypeError(f"cannot compile {type(expr).__name__} objects")

    if vars is None:
        arguments = tuple(sorted(expr.free_symbols, key=sp.default_sort_key))
    elif isinstance(vars, sp.Symbol):
        arguments = (vars,)
    else:
        arguments = tuple(vars)
        if not all(isinstance(sym, sp.Symbol) for sym in arguments):
            raise TypeError("vars must be a Symbol or an iterable of Symbols")
    return expr, arguments


def _generate(expr: sp.Basic, arguments: tuple[sp.Symbol, ...], cse: bool) -> NumpifiedFunction:
    t0 = time.perf_counter()
    names = [sym.name for sym in arguments]
    for name in names:
        if not name.isidentifier() or keyword.iskeyword(name) or name in _RESERVED:
            raise ValueError(f"symbol name {name!r} cannot be used as an argument")

    unbound = sorted(sym.name for sym in expr.free_symbols if sym not in arguments)
    if unbound:
        raise ValueError(
            f"Expression contains unbound symbols: {', '.join(unbound)}. Expected only ({', '.join(names)})."
        )

    printer = NumPyPrinter(settings={"allow_unknown_functions": True})
    _check_functions(expr, printer)

    body = [f"    {name} = numpy.asarray({name})" for name in names]
    result = expr
    if cse:
        replacements, (result,) = sp.cse(expr, symbols=sp.numbered_symbols("_cse"))
        body += [f"    {sym.name} = {printer.doprint(sub)}" for sym, sub in replacements]
    code = printer.doprint(result)
    if names and not expr.free_symbols:
        # Constants still have to follow the argument's shape.
        body.append(f"    _shape = numpy.broadcast({', '.join(names)}).shape")
        code = f"({code}) + numpy.zeros(_shape)"
    body.append(f"    return {code}")
    source = "\n".join([f"def _generated({', '.join(names)}):"] + body)

    namespace: dict[str, Any] = {"numpy": np, **_module_namespace(printer)}
    exec(source, namespace)
    fn = namespace["_generated"]
    fn.__doc__ = f"Generated from {expr!r}"

    logger.debug("compiled %s in %.2f ms", expr, 1000.0 * (time.perf_counter() - t0))
    return NumpifiedFunction(fn, expr, arguments, source, cse=cse)


def _check_functions(expr: sp.Basic, printer: NumPyPrinter) -> None:
    """Raise ``ValueError`` for functions the printer leaves as bare calls."""
    unknown = set()
    for call in expr.atoms(sp.Function):
        name = call.func.__name__
        try:
            printed = printer.doprint(call)
        except Exception:
            unknown.add(name)
            continue
        if printed.startswith(f"{name}("):
            unknown.add(name)
    if unknown:
        raise ValueError(f"no NumPy implementation for: {', '.join(sorted(unknown))}")


def _module_namespace(printer: NumPyPrinter) -> dict[str, Any]:
    """Import the modules the printed code refers to (``math``, ``functools``, ...).

    Raises
    ------
    ValueError
        If a referenced module is not installed.
    """
    namespace: dict[str, Any] = {}
    for module in printer.module_imports:
        top_level = module.split(".")[0]
        try:
            importlib.import_module(module)
            namespace[top_level] = importlib.import_module(top_level)
        except ImportError as e:
            raise ValueError(f"generated code needs module {module!r}, which is not installed") from e
    return namespace
