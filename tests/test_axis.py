"""Tests for axis tick computation and drawing."""

from __future__ import annotations

from datetime import datetime

import pytest

from gantt_engine.core.axis import AxisRenderer, build_x_axis, build_y_axis
from gantt_engine.core.normalizer import normalize_drivers
from gantt_engine.core.scale import ScaleEngine
from gantt_engine.core.scene import Surface

_DAY = datetime(2024, 3, 18)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_snapshot(names: tuple[str, ...] = ("Anna", "Ben", "Chen")):
    return normalize_drivers([{"driver": name, "trips": []} for name in names])


def _sample_scales(snapshot):
    return ScaleEngine().compute(snapshot.driver_keys, _DAY, 730.0, 150.0)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


def test_x_axis_has_hourly_ticks_on_top() -> None:
    axis = build_x_axis(_sample_scales(_sample_snapshot()))
    assert axis.orient == "top"
    assert len(axis.ticks) == 25
    assert [t.label for t in axis.ticks[:3]] == ["00", "01", "02"]
    assert axis.ticks[-1].label == "00"
    assert axis.ticks[-1].position == pytest.approx(730.0)


def test_x_axis_gridlines_span_canvas_height() -> None:
    axis = build_x_axis(_sample_scales(_sample_snapshot()))
    assert axis.tick_size == -150.0
    assert axis.tick_size_outer == 0.0


def test_y_axis_labels_drivers_at_band_centres() -> None:
    snapshot = _sample_snapshot()
    scales = _sample_scales(snapshot)
    axis = build_y_axis(scales, snapshot)
    assert axis.orient == "left"
    assert [t.label for t in axis.ticks] == ["Anna", "Ben", "Chen"]
    first = axis.ticks[0]
    assert first.value == snapshot.drivers[0].key
    assert first.position == pytest.approx(scales.y.bandwidth / 2.0)
    assert axis.tick_size == -730.0


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------


def test_render_before_compute_raises() -> None:
    surface = Surface()
    renderer = AxisRenderer(surface.layer("xAxisLayer"), surface.layer("yAxisLayer"))
    with pytest.raises(RuntimeError):
        renderer.render()


def test_render_draws_ticks_into_layers() -> None:
    surface = Surface()
    renderer = AxisRenderer(surface.layer("xAxisLayer"), surface.layer("yAxisLayer"))
    snapshot = _sample_snapshot()
    renderer.compute(_sample_scales(snapshot), snapshot)
    renderer.render()

    x_ticks = surface.layer("xAxisLayer").select_all("tick")
    y_ticks = surface.layer("yAxisLayer").select_all("tick")
    assert len(x_ticks) == 25
    assert [t.children[1].text for t in y_ticks] == ["Anna", "Ben", "Chen"]
    assert x_ticks[0].children[0].get("y2") == 150.0
    assert y_ticks[0].children[0].get("x2") == 730.0
    assert surface.layer("xAxisLayer").transition_ms == 50


def test_rerender_drops_stale_driver_ticks() -> None:
    surface = Surface()
    renderer = AxisRenderer(surface.layer("xAxisLayer"), surface.layer("yAxisLayer"))
    snapshot = _sample_snapshot()
    renderer.compute(_sample_scales(snapshot), snapshot)
    renderer.render()
    old_x = surface.layer("xAxisLayer").select_all("tick")

    smaller = _sample_snapshot(("Dana",))
    renderer.compute(_sample_scales(smaller), smaller)
    renderer.render()

    y_ticks = surface.layer("yAxisLayer").select_all("tick")
    assert [t.children[1].text for t in y_ticks] == ["Dana"]
    # Same day, so the hour ticks are reused in place.
    assert surface.layer("xAxisLayer").select_all("tick") == old_x
