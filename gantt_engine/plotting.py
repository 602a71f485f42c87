"""Plotly export of a rendered chart.

:func:`chart_to_figure` walks the scene graph of a :class:`GanttChart`
after a render pass and rebuilds it as a Plotly figure: one filled
rectangle shape per trip element, the hour ticks on a top axis, driver
names on a reversed vertical axis and invisible markers at the trip
centres carrying the tooltip text.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import plotly.graph_objects as go

from gantt_engine.core.chart import GanttChart
from gantt_engine.core.models import Trip
from gantt_engine.core.reconciler import TRIP_CLASS, TRIP_OPACITY
from gantt_engine.core.selection import SELECTED_CLASS

TOOLTIP_FORMAT: str = "%Y-%m-%d %H:%M"
SELECTED_OUTLINE: str = "#e10600"
BRUSH_FILL: str = "rgba(119, 119, 119, 0.3)"


def format_tooltip(trip: Trip) -> str:
    """Tooltip text for one trip: name, then start and end instants."""
    return (
        f"{trip.name}<br>"
        f"{trip.start.strftime(TOOLTIP_FORMAT)}<br>"
        f"{trip.end.strftime(TOOLTIP_FORMAT)}"
    )


def _trip_shapes(chart: GanttChart) -> tuple[list[dict[str, Any]], list[Trip]]:
    shapes: list[dict[str, Any]] = []
    trips: list[Trip] = []
    layer = chart.surface.layer("tripsLayer")
    for node in layer.select_all(TRIP_CLASS):
        trip = node.data
        if not isinstance(trip, Trip):
            continue
        rect = node.children[0]
        top = node.offset[1] + float(rect.get("y", 0.0))
        selected = node.has_class(SELECTED_CLASS)
        shapes.append(
            dict(
                type="rect",
                xref="x",
                yref="y",
                x0=trip.start,
                x1=trip.end,
                y0=top,
                y1=top + float(rect.get("height", 0.0)),
                fillcolor=rect.get("fill"),
                opacity=float(rect.get("fill-opacity", TRIP_OPACITY)),
                line=dict(
                    color=SELECTED_OUTLINE if selected else "rgba(0, 0, 0, 0)",
                    width=2 if selected else 0,
                ),
                name=trip.key,
            )
        )
        trips.append(trip)
    return shapes, trips


def _brush_shapes(chart: GanttChart) -> list[dict[str, Any]]:
    if chart.scales is None:
        return []
    shapes: list[dict[str, Any]] = []
    for driver in chart.drivers:
        brush = chart.brush_for(driver.key)
        if brush is None or brush.selection is None:
            continue
        x0, x1 = brush.selection
        top = brush.node.offset[1]
        shapes.append(
            dict(
                type="rect",
                xref="x",
                yref="y",
                x0=chart.scales.x.invert(x0),
                x1=chart.scales.x.invert(x1),
                y0=top,
                y1=top + brush.height,
                fillcolor=BRUSH_FILL,
                line=dict(width=0),
                layer="above",
            )
        )
    return shapes


def _midpoint(trip: Trip) -> datetime:
    return trip.start + (trip.end - trip.start) / 2


def chart_to_figure(chart: GanttChart, title: str | None = None) -> go.Figure:
    """Convert *chart*'s current scene into a :class:`plotly.graph_objects.Figure`.

    Raises:
        RuntimeError: If the chart has not been computed yet.
    """
    if chart.scales is None or chart.x_axis is None or chart.y_axis is None:
        raise RuntimeError("Chart has not been rendered; call go() first.")

    scales = chart.scales
    trip_shapes, trips = _trip_shapes(chart)
    bandwidth = scales.y.bandwidth

    fig = go.Figure(
        go.Scatter(
            x=[_midpoint(trip) for trip in trips],
            y=[
                (scales.y(trip.parent) or 0.0) + bandwidth / 2.0 for trip in trips
            ],
            mode="markers",
            marker=dict(size=max(1.0, bandwidth * 0.8), opacity=0.0),
            hovertext=[format_tooltip(trip) for trip in trips],
            hoverinfo="text",
            showlegend=False,
        )
    )
    pad = chart.padding
    fig.update_layout(
        title=title,
        width=chart.view_box_width,
        height=max(chart.view_box_height, pad.top + pad.bottom + 1.0),
        margin=dict(l=pad.left, r=pad.right, t=pad.top + 30, b=pad.bottom),
        shapes=trip_shapes + _brush_shapes(chart),
        plot_bgcolor="white",
        xaxis=dict(
            side="top",
            range=list(scales.extent),
            tickvals=[tick.value for tick in chart.x_axis.ticks],
            ticktext=[tick.label for tick in chart.x_axis.ticks],
            showgrid=True,
            gridcolor="#e5e5e5",
        ),
        yaxis=dict(
            range=[max(scales.canvas_height, 0.0), 0.0],
            tickvals=[tick.position for tick in chart.y_axis.ticks],
            ticktext=[tick.label for tick in chart.y_axis.ticks],
            showgrid=True,
            gridcolor="#e5e5e5",
            zeroline=False,
        ),
    )
    return fig
