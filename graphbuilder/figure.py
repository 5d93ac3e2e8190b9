"""Notebook rendering surface for the equation pipeline.

Purpose
-------
``GraphFigure`` connects a :class:`~graphbuilder.coordinator.ViewCoordinator`
to a Plotly ``FigureWidget`` and a small ``ipywidgets`` control panel:

- one ``lines`` trace per :class:`PointSeries`, redrawn on every
  :class:`SeriesUpdate`,
- x-axis pan/zoom forwarded (debounced) to ``ViewCoordinator.rerange_x``,
- trace clicks and hovers forwarded to point selection / pointer readout,
- a path box with Load / Append buttons and an error line,
- an :class:`EquationPanel` with one enable checkbox per equation.

Important gotchas
-----------------
- Plotly does not allow adding traces inside ``batch_update()``. When the
  number of series changes the trace tuple is replaced in one call; otherwise
  existing traces are updated in place inside a batch.
- Relayout events are applied at most once per ``relayout_debounce_ms`` and
  only the latest one counts.

Logging
-------
Silent by default. ``GraphFigure(debug=True)`` sets the ``graphbuilder``
package logger to DEBUG; attach a handler (e.g. ``logging.basicConfig()``) to
see the messages.

Examples
--------
>>> fig = GraphFigure()  # doctest: +SKIP
>>> fig.load_file("equations.txt")  # doctest: +SKIP
True
>>> fig  # doctest: +SKIP
"""

from __future__ import annotations

import html
import logging
from typing import Any, Optional, Sequence

import ipywidgets as widgets
import plotly.graph_objects as go
from IPython.display import display

from .coordinator import ViewCoordinator
from .debouncing import QueuedDebouncer
from .equation import Equation
from .equation_panel import EquationPanel
from .errors import EquationFileError
from .loader import PathLike
from .settings import DEFAULT_SETTINGS, GraphSettings
from .synchronizer import SeriesUpdate

__all__ = ["GraphFigure"]

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_PACKAGE_LOGGER = "graphbuilder"


class GraphFigure:
    """Interactive plot of every enabled equation over the visible x-range.

    Parameters
    ----------
    coordinator : ViewCoordinator, optional
        Pipeline to display. A new one is created from ``settings`` if omitted.
    settings : GraphSettings, optional
        Used only when ``coordinator`` is omitted.
    debug : bool, optional
        Set the package logger to DEBUG.
    """

    def __init__(
        self,
        coordinator: Optional[ViewCoordinator] = None,
        *,
        settings: GraphSettings = DEFAULT_SETTINGS,
        debug: bool = False,
    ) -> None:
        if debug:
            logging.getLogger(_PACKAGE_LOGGER).setLevel(logging.DEBUG)
        self._coordinator = coordinator if coordinator is not None else ViewCoordinator(settings)
        self._trace_equations: list[Equation] = []

        self.figure_widget = go.FigureWidget()
        self.figure_widget.update_layout(**self._default_figure_layout())
        self.figure_widget.update_xaxes(range=list(self._coordinator.current_range.as_tuple()))

        self.path_text = widgets.Text(
            value="",
            placeholder="equations.txt",
            description="File",
            layout=widgets.Layout(width="100%"),
        )
        self.load_button = widgets.Button(description="Load", layout=widgets.Layout(width="90px"))
        self.append_button = widgets.Button(description="Append", layout=widgets.Layout(width="90px"))
        self.status_html = widgets.HTML(value="", layout=widgets.Layout(margin="0"))
        self.pointer_label = widgets.Label(value=self._pointer_text())
        self.selection_label = widgets.Label(value="")
        self.equation_box = widgets.VBox(
            layout=widgets.Layout(
                width="100%",
                padding="8px",
                border="1px solid rgba(15,23,42,0.08)",
                border_radius="10px",
            )
        )
        self._panel = EquationPanel(self.equation_box, self._coordinator.set_enabled)

        self.load_button.on_click(lambda _button: self.load_file(self.path_text.value))
        self.append_button.on_click(lambda _button: self.append_file(self.path_text.value))

        sidebar = widgets.VBox(
            [
                widgets.HBox([self.path_text, self.load_button, self.append_button]),
                self.status_html,
                widgets.HTML("<b>Equations</b>", layout=widgets.Layout(margin="10px 0 0 0")),
                self.equation_box,
                self.pointer_label,
                self.selection_label,
            ],
            layout=widgets.Layout(flex="0 1 380px", min_width="300px", padding="0px 0px 0px 10px"),
        )
        self.root_widget = widgets.HBox(
            [self.figure_widget, sidebar],
            layout=widgets.Layout(width="100%", align_items="flex-start"),
        )

        self._relayout_debouncer = QueuedDebouncer(
            self._run_relayout,
            execute_every_ms=self._coordinator.settings.relayout_debounce_ms,
            drop_overflow=True,
        )
        self.figure_widget.layout.on_change(self._throttled_relayout, "xaxis.range")
        self._coordinator.synchronizer.add_listener(self._on_series_update, listener_id="graph-figure")
        self._redraw(self._coordinator.synchronizer.series)

    # --- Properties ---

    @property
    def coordinator(self) -> ViewCoordinator:
        return self._coordinator

    @property
    def panel(self) -> EquationPanel:
        return self._panel

    @property
    def trace_equations(self) -> tuple[Equation, ...]:
        """Equations behind the current traces, in trace order."""
        return tuple(self._trace_equations)

    # --- File operations ---

    def load_file(self, path: PathLike) -> bool:
        """Replace all equations with ``path``; show the error and return ``False`` on failure."""
        return self._run_file_operation(self._coordinator.load_file, path)

    def append_file(self, path: PathLike) -> bool:
        """Append the equations of ``path``; show the error and return ``False`` on failure."""
        return self._run_file_operation(self._coordinator.append_file, path)

    def _run_file_operation(self, operation: Any, path: PathLike) -> bool:
        if not str(path).strip():
            self.status_html.value = "<span style='color:#b91c1c'>Choose a file first.</span>"
            return False
        try:
            operation(path)
        except (EquationFileError, OSError) as e:
            logger.warning("file operation failed: %s", e)
            self.status_html.value = f"<span style='color:#b91c1c'>Error in file: {html.escape(str(e))}</span>"
            return False
        self.status_html.value = ""
        return True

    # --- Rendering ---

    def _on_series_update(self, update: SeriesUpdate) -> None:
        self._redraw(update.series)
        if update.reason == "range":
            self._sync_x_axis(update.current_range.as_tuple())

    def _sync_x_axis(self, x_range: tuple[float, float]) -> None:
        """Show the sampled range when a pan/zoom was clamped to the axis limits."""
        shown = self.figure_widget.layout.xaxis.range
        if shown is None or tuple(float(v) for v in shown) != x_range:
            self.figure_widget.update_xaxes(range=list(x_range))

    def _redraw(self, series: Sequence[Any]) -> None:
        fw = self.figure_widget
        if len(fw.data) == len(series):
            with fw.batch_update():
                for trace, item in zip(fw.data, series):
                    trace.x = item.x
                    trace.y = item.y
                    trace.name = item.label
                    trace.line.color = item.color
        else:
            fw.data = ()
            if series:
                fw.add_traces(
                    [
                        go.Scatter(
                            x=item.x,
                            y=item.y,
                            mode="lines",
                            name=item.label,
                            line=dict(color=item.color, width=2),
                        )
                        for item in series
                    ]
                )
                for trace in fw.data:
                    trace.on_click(self._on_trace_click)
                    trace.on_hover(self._on_trace_hover)
        self._trace_equations = [item.equation for item in series]
        self._panel.refresh(self._coordinator.equations)
        if self._coordinator.selection is None:
            self.selection_label.value = ""

    def _default_figure_layout(self) -> dict[str, Any]:
        return dict(
            autosize=True,
            template="plotly_white",
            showlegend=True,
            margin=dict(l=48, r=28, t=32, b=44),
            paper_bgcolor="#ffffff",
            plot_bgcolor="#f8fafc",
            xaxis=dict(zeroline=True, zerolinecolor="#334155", showgrid=True, gridcolor="rgba(148,163,184,0.35)"),
            yaxis=dict(zeroline=True, zerolinecolor="#334155", showgrid=True, gridcolor="rgba(148,163,184,0.35)"),
        )

    # --- Interaction ---

    def _on_trace_click(self, trace: Any, points: Any, selector: Any) -> None:
        if not points.xs:
            return
        equation = self._equation_for_trace(points.trace_index)
        if equation is None:
            return
        selection = self._coordinator.select_point(equation, points.xs[0], points.ys[0])
        self.selection_label.value = f"{equation.label}: x={selection.x:.4g}, y={selection.y:.4g}"

    def _on_trace_hover(self, trace: Any, points: Any, selector: Any) -> None:
        if not points.xs:
            return
        self._coordinator.pointer_moved(points.xs[0], points.ys[0])
        self.pointer_label.value = self._pointer_text()

    def _equation_for_trace(self, trace_index: int) -> Optional[Equation]:
        if 0 <= trace_index < len(self._trace_equations):
            return self._trace_equations[trace_index]
        return None

    def _pointer_text(self) -> str:
        pointer = self._coordinator.pointer
        return f"x: {pointer.x}  y: {pointer.y}"

    def _throttled_relayout(self, layout: Any, x_range: Any) -> None:
        """Queue a viewport change; only the latest queued range is applied."""
        self._relayout_debouncer(x_range)

    def _run_relayout(self, x_range: Any) -> None:
        if x_range is None or len(x_range) != 2:
            return
        if tuple(x_range) == self._coordinator.current_range.as_tuple():
            # Echo of a range this figure wrote back itself.
            return
        self._coordinator.rerange_x(x_range[0], x_range[1])

    def _ipython_display_(self, **kwargs: Any) -> None:
        display(self.root_widget)
