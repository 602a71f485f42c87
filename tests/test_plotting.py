"""Tests for the Plotly export and tooltip text."""

from __future__ import annotations

from datetime import datetime

import plotly.graph_objects as go
import pytest

from gantt_engine.core.chart import GanttChart
from gantt_engine.core.models import Trip
from gantt_engine.core.scheduling import ImmediateScheduler, ManualScheduler
from gantt_engine.plotting import SELECTED_OUTLINE, chart_to_figure, format_tooltip

_DAY = datetime(2024, 3, 18)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_records() -> list[dict]:
    return [
        {
            "driver": "Anna",
            "trips": [
                {"name": "Loop", "start": "2024-03-18T06:00", "end": "2024-03-18T08:00"},
                {"name": "Freight", "start": "2024-03-18T09:00", "end": "2024-03-18T12:00"},
            ],
        },
        {"driver": "Ben", "trips": []},
    ]


def _sample_chart(scheduler=None) -> GanttChart:
    chart = GanttChart(
        scheduler=scheduler if scheduler is not None else ImmediateScheduler()
    )
    chart.current_date = _DAY
    chart.trips = [t for r in _sample_records() for t in r["trips"]]
    chart.drivers = _sample_records()
    return chart


# ---------------------------------------------------------------------------
# Tooltip
# ---------------------------------------------------------------------------


def test_tooltip_format() -> None:
    trip = Trip(
        key="k",
        parent="p",
        name="Loop",
        start=datetime(2024, 3, 18, 6, 5),
        end=datetime(2024, 3, 18, 8, 0),
    )
    assert format_tooltip(trip) == "Loop<br>2024-03-18 06:05<br>2024-03-18 08:00"


# ---------------------------------------------------------------------------
# Figure
# ---------------------------------------------------------------------------


def test_unrendered_chart_rejected() -> None:
    chart = GanttChart(scheduler=ManualScheduler())
    with pytest.raises(RuntimeError):
        chart_to_figure(chart)


def test_one_shape_per_trip() -> None:
    chart = _sample_chart()
    fig = chart_to_figure(chart)
    assert isinstance(fig, go.Figure)
    assert len(fig.layout.shapes) == 2
    fills = [shape.fillcolor for shape in fig.layout.shapes]
    assert fills == [chart.color("Loop"), chart.color("Freight")]


def test_axes_follow_chart_ticks() -> None:
    chart = _sample_chart()
    fig = chart_to_figure(chart, title="Day")
    assert fig.layout.xaxis.side == "top"
    assert len(fig.layout.xaxis.ticktext) == 25
    assert fig.layout.xaxis.ticktext[0] == "00"
    assert list(fig.layout.yaxis.ticktext) == ["Anna", "Ben"]
    assert fig.layout.yaxis.range[0] == pytest.approx(chart.canvas_height)
    assert fig.layout.title.text == "Day"


def test_hover_text_per_trip() -> None:
    chart = _sample_chart()
    fig = chart_to_figure(chart)
    hover = list(fig.data[0].hovertext)
    assert hover == [format_tooltip(t) for t in chart.drivers[0].trips]


def test_selected_trip_is_outlined() -> None:
    chart = _sample_chart()
    chart.click_trip(chart.drivers[0].trips[1].key)
    shapes = chart_to_figure(chart).layout.shapes
    assert shapes[0].line.width == 0
    assert shapes[1].line.width == 2
    assert shapes[1].line.color == SELECTED_OUTLINE


def test_pending_brush_is_drawn() -> None:
    scheduler = ManualScheduler()
    chart = _sample_chart(scheduler)
    scheduler.run_pending()
    x = chart.scales.x
    chart.brush_for(chart.drivers[1].key).gesture(
        x(datetime(2024, 3, 18, 14)), x(datetime(2024, 3, 18, 16))
    )
    fig = chart_to_figure(chart)
    assert len(fig.layout.shapes) == 3
