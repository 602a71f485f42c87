"""Row brushing: drag along a driver's row to propose a new trip.

Each driver row carries one :class:`RowBrush`.  When a user drag ends,
the :class:`BrushController` converts the pixel selection to times,
snaps both ends to the nearest 30-minute boundary and, if the result is
a non-empty interval, animates the brush onto the snapped range and
raises a :class:`~gantt_engine.core.models.CreateRequest` after a short
settle delay.  The brush is only cleared when the host calls the
request's ``done`` callback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import pandas as pd

from gantt_engine.core.events import EventEmitter
from gantt_engine.core.models import CreateRequest, Driver
from gantt_engine.core.scale import Scales
from gantt_engine.core.scene import SceneNode
from gantt_engine.core.scheduling import Scheduler

logger = logging.getLogger(__name__)

SNAP_GRANULARITY: timedelta = timedelta(minutes=30)
MOVE_DURATION_MS: int = 100
SETTLE_DELAY_MS: int = 200


def snap_instant(
    instant: datetime, granularity: timedelta = SNAP_GRANULARITY
) -> datetime:
    """Round *instant* to the nearest multiple of *granularity*.

    Exact midpoints round up, so 09:15 snaps to 09:30 on a 30-minute grid.
    """
    stamp = pd.Timestamp(instant)
    freq = pd.Timedelta(granularity)
    lower = stamp.floor(freq)
    upper = stamp.ceil(freq)
    snapped = upper if upper - stamp <= stamp - lower else lower
    return snapped.to_pydatetime()


@dataclass(frozen=True)
class BrushEvent:
    """A brush lifecycle notification.

    Attributes:
        type: ``"start"``, ``"brush"`` or ``"end"``.
        selection: Pixel range ``(x0, x1)`` with ``x0 <= x1``, or ``None``
            when the brush is empty.
        mode: Gesture mode for user input (``"drag"``, ``"handle"``...).
            ``None`` for programmatic moves and clears.
    """

    type: str
    selection: tuple[float, float] | None
    mode: str | None = None


class RowBrush:
    """Horizontal drag region spanning one row's band."""

    def __init__(
        self,
        row_key: str,
        node: SceneNode,
        width: float,
        height: float,
        listener: Callable[[RowBrush, BrushEvent], None],
    ) -> None:
        self.row_key = row_key
        self.node = node.classed("brush", True)
        self.selection: tuple[float, float] | None = None
        self._listener: Callable[[RowBrush, BrushEvent], None] | None = listener
        self._overlay = node.append("rect").classed("overlay", True)
        self._selection_node = node.append("rect").classed("selection", True)
        self.width = 0.0
        self.height = 0.0
        self.set_extent(width, height)
        self._draw()

    @property
    def attached(self) -> bool:
        return self._listener is not None

    def set_extent(self, width: float, height: float) -> None:
        self.width = max(0.0, float(width))
        self.height = max(0.0, float(height))
        self._overlay.attr("x", 0.0).attr("y", 0.0)
        self._overlay.attr("width", self.width).attr("height", self.height)
        self._selection_node.attr("y", 0.0).attr("height", self.height)

    def clamp(self, pixel: float) -> float:
        return min(max(float(pixel), 0.0), self.width)

    def _draw(self) -> None:
        if self.selection is None:
            self._selection_node.attr("display", "none")
            return
        x0, x1 = self.selection
        self._selection_node.attrs.pop("display", None)
        self._selection_node.attr("x", x0).attr("width", x1 - x0)

    def _notify(self, event: BrushEvent) -> None:
        if self._listener is not None:
            self._listener(self, event)

    def gesture(self, x0: float, x1: float, mode: str = "drag") -> None:
        """Apply a user drag from *x0* to *x1* (pixels within the row)."""
        lo, hi = sorted((self.clamp(x0), self.clamp(x1)))
        self.selection = (lo, hi)
        self._draw()
        self._notify(BrushEvent("start", self.selection, mode))
        self._notify(BrushEvent("brush", self.selection, mode))
        if lo == hi:
            self.selection = None
            self._draw()
        self._notify(BrushEvent("end", self.selection, mode))

    def move(
        self, selection: tuple[float, float] | None, duration_ms: int = 0
    ) -> None:
        """Programmatically set the selection, optionally animated."""
        if selection is not None:
            lo, hi = sorted((self.clamp(selection[0]), self.clamp(selection[1])))
            selection = (lo, hi)
        self.selection = selection
        self._selection_node.transition(duration_ms)
        self._draw()
        self._notify(BrushEvent("end", self.selection, None))

    def clear(self) -> None:
        self.move(None)

    def detach(self) -> None:
        self._listener = None
        self.node.remove()


class BrushController:
    """Owns the row brushes and turns finished drags into create requests."""

    def __init__(
        self,
        scheduler: Scheduler,
        create: EventEmitter[CreateRequest],
        granularity: timedelta = SNAP_GRANULARITY,
        move_ms: int = MOVE_DURATION_MS,
        settle_ms: int = SETTLE_DELAY_MS,
    ) -> None:
        self.scheduler = scheduler
        self.create = create
        self.granularity = granularity
        self.move_ms = move_ms
        self.settle_ms = settle_ms
        self.scales: Scales | None = None
        self._brushes: dict[str, RowBrush] = {}
        self._drivers: dict[str, Driver] = {}

    def __contains__(self, row_key: object) -> bool:
        return row_key in self._brushes

    def brush(self, row_key: str) -> RowBrush | None:
        return self._brushes.get(row_key)

    # -- row lifecycle (driven by the reconciler) -----------------------------

    def attach(
        self, row_group: SceneNode, driver: Driver, scales: Scales
    ) -> RowBrush:
        self.scales = scales
        node = row_group.append("g")
        brush = RowBrush(
            driver.key,
            node,
            scales.canvas_width,
            scales.y.bandwidth,
            self._on_event,
        )
        self._place(brush, driver, scales)
        self._brushes[driver.key] = brush
        self._drivers[driver.key] = driver
        return brush

    def update(self, driver: Driver, scales: Scales) -> None:
        self.scales = scales
        brush = self._brushes.get(driver.key)
        if brush is None:
            return
        brush.set_extent(scales.canvas_width, scales.y.bandwidth)
        self._place(brush, driver, scales)
        self._drivers[driver.key] = driver

    def detach(self, row_key: str) -> None:
        brush = self._brushes.pop(row_key, None)
        self._drivers.pop(row_key, None)
        if brush is not None:
            brush.detach()

    @staticmethod
    def _place(brush: RowBrush, driver: Driver, scales: Scales) -> None:
        brush.node.translate(0.0, scales.y(driver.key) or 0.0)

    # -- gesture handling -----------------------------------------------------

    def _on_event(self, brush: RowBrush, event: BrushEvent) -> None:
        if event.type != "end" or event.mode is None or event.selection is None:
            return
        if self.scales is None:
            return

        x = self.scales.x
        start, end = (
            snap_instant(x.invert(px), self.granularity) for px in event.selection
        )

        if not end > start:
            logger.debug(
                "Brush on row %s snapped to an empty range at %s", brush.row_key, start
            )
            brush.move(None, self.move_ms)
            return

        brush.move((x(start), x(end)), self.move_ms)
        target = self._drivers[brush.row_key]
        row_key = brush.row_key

        def confirm() -> None:
            request = CreateRequest(
                target=target,
                duration=(start, end),
                done=lambda: self._clear(row_key),
            )
            logger.info(
                "Create request for %r: %s - %s", target.name, start, end
            )
            self.create.emit(request)

        self.scheduler.call_later(self.settle_ms / 1000.0, confirm)

    def _clear(self, row_key: str) -> None:
        brush = self._brushes.get(row_key)
        if brush is not None:
            brush.clear()
