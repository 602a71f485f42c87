"""Axis tick computation and drawing.

The horizontal axis sits on top of the canvas with one tick per hour;
the vertical axis runs down the left edge with one tick per driver row.
Both use negative tick sizes so the tick lines double as gridlines
across the whole canvas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from gantt_engine.core.models import Snapshot
from gantt_engine.core.scale import HOURLY, Scales
from gantt_engine.core.scene import SceneNode

HOUR_FORMAT: str = "%H"
AXIS_TRANSITION_MS: int = 50
TICK_PADDING: float = 3.0


@dataclass(frozen=True)
class Tick:
    value: Any
    position: float
    label: str


@dataclass(frozen=True)
class AxisModel:
    """Everything needed to draw one axis.

    Attributes:
        orient: ``"top"`` or ``"left"``.
        ticks: Ticks in drawing order.
        tick_size: Inner tick length; negative values extend into the canvas.
        tick_size_outer: Length of the end caps of the domain path.
        length: Length of the domain path in pixels.
    """

    orient: str
    ticks: tuple[Tick, ...]
    tick_size: float
    tick_size_outer: float
    length: float


def build_x_axis(scales: Scales) -> AxisModel:
    ticks = tuple(
        Tick(value=t, position=scales.x(t), label=t.strftime(HOUR_FORMAT))
        for t in scales.x.ticks(HOURLY)
    )
    return AxisModel(
        orient="top",
        ticks=ticks,
        tick_size=-scales.canvas_height,
        tick_size_outer=0.0,
        length=scales.canvas_width,
    )


def build_y_axis(scales: Scales, snapshot: Snapshot) -> AxisModel:
    ticks = []
    for key in scales.y.domain:
        driver = snapshot.driver_map.get(key)
        ticks.append(
            Tick(
                value=key,
                position=scales.y.centre(key),
                label=driver.name if driver is not None else "",
            )
        )
    return AxisModel(
        orient="left",
        ticks=tuple(ticks),
        tick_size=-scales.canvas_width,
        tick_size_outer=-scales.canvas_width,
        length=scales.canvas_height,
    )


class AxisRenderer:
    """Draws :class:`AxisModel` instances into the two axis layers."""

    def __init__(
        self,
        x_layer: SceneNode,
        y_layer: SceneNode,
        transition_ms: int = AXIS_TRANSITION_MS,
    ) -> None:
        self.x_layer = x_layer.classed("axis", True).classed("x-axis", True)
        self.y_layer = y_layer.classed("axis", True).classed("y-axis", True)
        self.transition_ms = transition_ms
        self.x_axis: AxisModel | None = None
        self.y_axis: AxisModel | None = None

    def compute(self, scales: Scales, snapshot: Snapshot) -> tuple[AxisModel, AxisModel]:
        self.x_axis = build_x_axis(scales)
        self.y_axis = build_y_axis(scales, snapshot)
        return self.x_axis, self.y_axis

    def render(self) -> None:
        if self.x_axis is None or self.y_axis is None:
            raise RuntimeError("AxisRenderer.compute() must run before render().")
        self._draw(self.x_layer, self.x_axis)
        self._draw(self.y_layer, self.y_axis)

    def _draw(self, layer: SceneNode, axis: AxisModel) -> None:
        horizontal = axis.orient == "top"
        existing = {
            node.data: node for node in layer.children if node.has_class("tick")
        }

        domain = next((n for n in layer.children if n.has_class("domain")), None)
        if domain is None:
            domain = layer.append("path").classed("domain", True)
        outer = axis.tick_size_outer
        if horizontal:
            domain.attr("d", f"M0,{-outer}V0H{axis.length}V{-outer}")
        else:
            domain.attr("d", f"M{-outer},0H0V{axis.length}H{-outer}")

        for tick in axis.ticks:
            node = existing.pop(tick.value, None)
            if node is None:
                node = layer.append("g").classed("tick", True)
                node.data = tick.value
                node.append("line")
                node.append("text")
            line, text = node.children
            if horizontal:
                node.translate(tick.position, 0.0)
                line.attr("y2", -axis.tick_size)
                text.attr("y", -(max(axis.tick_size, 0.0) + TICK_PADDING))
                text.attr("dy", "0em")
            else:
                node.translate(0.0, tick.position)
                line.attr("x2", -axis.tick_size)
                text.attr("x", -(max(axis.tick_size, 0.0) + TICK_PADDING))
                text.attr("dy", "0.32em")
            text.set_text(tick.label)
            node.transition(self.transition_ms)

        for stale in existing.values():
            stale.remove()
        layer.transition(self.transition_ms)
