"""Tests for the chart instance: inputs, geometry, scheduling."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from gantt_engine.core.chart import GanttChart
from gantt_engine.core.events import KeyboardSource
from gantt_engine.core.models import ChartConfig, CreateRequest, DeleteRequest, Padding
from gantt_engine.core.scene import LAYER_NAMES, Surface
from gantt_engine.core.scheduling import ImmediateScheduler, ManualScheduler

_DAY = datetime(2024, 3, 18)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_records(n: int = 3) -> list[dict]:
    return [
        {
            "id": i,
            "driver": f"Driver {i}",
            "trips": [
                {
                    "name": "Loop" if i % 2 else "Freight",
                    "start": f"2024-03-18T{6 + i:02d}:00:00",
                    "end": f"2024-03-18T{8 + i:02d}:30:00",
                }
            ],
        }
        for i in range(n)
    ]


# ---------------------------------------------------------------------------
# Inputs and scheduling
# ---------------------------------------------------------------------------


def test_assignment_normalizes_now_and_renders_later() -> None:
    scheduler = ManualScheduler()
    chart = GanttChart(scheduler=scheduler)
    chart.current_date = _DAY
    chart.drivers = _sample_records()

    assert len(chart.drivers) == 3
    assert chart.scales is None
    assert scheduler.pending == 1

    scheduler.run_pending()
    assert chart.scales is not None
    assert len(chart.surface.layer("tripsLayer").select_all("trip")) == 3


def test_back_to_back_assignments_render_latest_snapshot() -> None:
    scheduler = ManualScheduler()
    chart = GanttChart(scheduler=scheduler)
    chart.current_date = _DAY
    chart.drivers = _sample_records(3)
    chart.drivers = _sample_records(1)
    scheduler.run_pending()

    assert chart.scales.y.domain == chart.snapshot.driver_keys
    assert len(chart.surface.layer("tripsLayer").select_all("trip")) == 1


def test_render_before_compute_raises() -> None:
    chart = GanttChart(scheduler=ManualScheduler())
    with pytest.raises(RuntimeError):
        chart.render()


def test_closed_chart_skips_queued_recompute() -> None:
    scheduler = ManualScheduler()
    chart = GanttChart(scheduler=scheduler)
    chart.drivers = _sample_records()
    chart.close()
    scheduler.run_pending()
    assert chart.scales is None


def test_host_collaborators_kept_when_empty() -> None:
    scheduler = ManualScheduler()
    surface = Surface()
    keyboard = KeyboardSource()
    assert len(keyboard) == 0

    chart = GanttChart(scheduler=scheduler, surface=surface, keyboard=keyboard)
    assert chart.scheduler is scheduler
    assert chart.surface is surface
    assert chart.keyboard is keyboard
    assert len(keyboard) == 1

    chart.current_date = _DAY
    chart.drivers = _sample_records(1)
    assert scheduler.pending == 1


def test_zone_aware_dates_render() -> None:
    chart = GanttChart(scheduler=ImmediateScheduler())
    chart.current_date = datetime(2024, 3, 18, tzinfo=timezone.utc)
    chart.drivers = [
        {
            "id": 1,
            "driver": "Anna",
            "trips": [
                {"name": "Loop", "start": "2024-03-18T09:00:00.000Z", "end": "2024-03-18T10:30:00.000Z"},
                {"name": "Freight", "start": "2024-03-18T13:00:00+02:00", "end": "2024-03-18T14:00:00+02:00"},
            ],
        }
    ]

    loop, freight = chart.drivers[0].trips
    assert loop.start == datetime(2024, 3, 18, 9)
    assert freight.start == datetime(2024, 3, 18, 11)
    assert chart.scales.x.domain == (_DAY, datetime(2024, 3, 19))
    node = chart.trip_node(loop.key)
    assert node.offset[0] == pytest.approx(chart.scales.x(datetime(2024, 3, 18, 9)))
    assert node.children[0].get("width") == pytest.approx(
        chart.scales.x(datetime(2024, 3, 18, 10, 30)) - chart.scales.x(loop.start)
    )


def test_empty_drivers_render_nothing() -> None:
    chart = GanttChart(scheduler=ImmediateScheduler())
    chart.current_date = _DAY
    chart.drivers = []
    assert chart.view_box_height == 0.0
    assert chart.last_report.rows_entered == []
    assert chart.surface.layer("tripsLayer").children == []


def test_palette_follows_reference_trips() -> None:
    chart = GanttChart(scheduler=ImmediateScheduler())
    chart.current_date = _DAY
    chart.trips = [{"name": "Freight"}, {"name": "Loop"}]
    chart.drivers = _sample_records()
    assert chart.color.domain == ["Freight", "Loop"]
    node = chart.trip_node(chart.drivers[1].trips[0].key)
    assert node.children[0].get("fill") == chart.color("Loop")


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


def test_default_geometry() -> None:
    chart = GanttChart(scheduler=ImmediateScheduler())
    chart.current_date = _DAY
    chart.drivers = _sample_records(3)

    assert chart.padding == Padding(15.0, 15.0, 15.0, 55.0)
    assert chart.canvas_width == 730.0
    assert chart.view_box_height == 180.0
    assert chart.canvas_height == 150.0
    assert chart.view_box == "0 0 800.0 180.0"
    assert chart.root_transform == "translate(55.0, 15.0)"
    assert chart.surface.root.get("viewBox") == chart.view_box
    assert chart.surface.layer("rootLayer").get("transform") == chart.root_transform


def test_sizing_inputs_apply_on_next_render() -> None:
    chart = GanttChart(
        config=ChartConfig(width=1000.0, batch_height=40.0),
        scheduler=ImmediateScheduler(),
    )
    chart.current_date = _DAY
    chart.padding = Padding(top=10.0, right=10.0, bottom=10.0, left=90.0)
    chart.drivers = _sample_records(2)
    assert chart.canvas_width == 900.0
    assert chart.canvas_height == 60.0
    assert chart.scales.x.range == (0.0, 900.0)


def test_surface_has_named_layers() -> None:
    chart = GanttChart(scheduler=ManualScheduler())
    for name in LAYER_NAMES:
        assert chart.surface.layer(name).get("id") == name
    with pytest.raises(KeyError):
        chart.surface.layer("nope")


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------


def test_delete_scenario() -> None:
    chart = GanttChart(scheduler=ImmediateScheduler())
    chart.current_date = _DAY
    records = _sample_records(3)
    records[2]["trips"] = [
        {"name": "Loop", "start": "2024-03-18T01:00", "end": "2024-03-18T02:00"},
        {"name": "Loop", "start": "2024-03-18T03:00", "end": "2024-03-18T04:00"},
        {"name": "Loop", "start": "2024-03-18T05:00", "end": "2024-03-18T06:00"},
    ]
    chart.drivers = records
    deleted: list[DeleteRequest] = []
    chart.delete.subscribe(deleted.append)

    target = chart.drivers[2].trips[1]
    chart.click_trip(target.key)
    chart.keyboard.press("Delete")

    assert deleted == [DeleteRequest(2, 1)]
    assert chart.trip_node(target.key) is None


def test_asyncio_host_renders_and_confirms() -> None:
    async def scenario() -> list[CreateRequest]:
        chart = GanttChart()
        chart.current_date = _DAY
        created: list[CreateRequest] = []
        chart.create.subscribe(created.append)
        chart.drivers = _sample_records(2)
        assert chart.scales is None

        await asyncio.sleep(0.01)
        x = chart.scales.x
        chart.brush_for(chart.drivers[0].key).gesture(
            x(datetime(2024, 3, 18, 9, 7)), x(datetime(2024, 3, 18, 9, 41))
        )
        assert created == []
        await asyncio.sleep(0.3)
        chart.close()
        return created

    created = asyncio.run(scenario())
    assert len(created) == 1
    assert created[0].duration == (datetime(2024, 3, 18, 9), datetime(2024, 3, 18, 9, 30))
