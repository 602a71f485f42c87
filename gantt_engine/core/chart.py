"""The Gantt chart instance.

:class:`GanttChart` owns the inputs a host assigns (drivers, reference
trips, current date, sizing), the two output channels (``create`` and
``delete``) and the interaction session.  Assigning ``drivers``
normalizes the records immediately and queues a recompute-and-render
pass on the scheduler, so several assignments in one tick still render
the latest snapshot.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime, timedelta
from typing import Any

from gantt_engine.core.axis import AxisModel, AxisRenderer
from gantt_engine.core.brush import BrushController, RowBrush
from gantt_engine.core.color import ColorMapper
from gantt_engine.core.events import EventEmitter, KeyboardSource
from gantt_engine.core.models import (
    ChartConfig,
    CreateRequest,
    DeleteRequest,
    Driver,
    Padding,
    Snapshot,
)
from gantt_engine.core.normalizer import normalize_drivers
from gantt_engine.core.reconciler import Reconciler, ReconcileReport
from gantt_engine.core.scale import ScaleEngine, Scales
from gantt_engine.core.scene import SceneNode, Surface
from gantt_engine.core.scheduling import AsyncioScheduler, Scheduler
from gantt_engine.core.selection import (
    SELECTED_CLASS,
    ChartSession,
    SelectionController,
)

logger = logging.getLogger(__name__)


class GanttChart:
    """Timeline of drivers and their trips over one calendar day."""

    def __init__(
        self,
        config: ChartConfig | None = None,
        scheduler: Scheduler | None = None,
        surface: Surface | None = None,
        keyboard: KeyboardSource | None = None,
    ) -> None:
        self.config: ChartConfig = config if config is not None else ChartConfig()
        self.width: float = self.config.width
        self.height: float = self.config.height
        self.batch_height: float = self.config.batch_height
        self.padding: Padding = self.config.padding
        self.current_date: date | datetime = datetime.now()
        self.trips: list[Any] = []

        self.scheduler: Scheduler = (
            scheduler if scheduler is not None else AsyncioScheduler()
        )
        self.surface: Surface = surface if surface is not None else Surface()
        self.session = ChartSession()
        self.create: EventEmitter[CreateRequest] = EventEmitter("create")
        self.delete: EventEmitter[DeleteRequest] = EventEmitter("delete")

        self.snapshot = Snapshot()
        self.scales: Scales | None = None
        self.last_report: ReconcileReport | None = None
        self.closed = False

        self.scale_engine = ScaleEngine(padding_inner=self.config.padding_inner)
        self.color = ColorMapper(self.config.color_start, self.config.color_end)
        self.axes = AxisRenderer(
            self.surface.layer("xAxisLayer"),
            self.surface.layer("yAxisLayer"),
            transition_ms=self.config.axis_transition_ms,
        )
        self.brushes = BrushController(
            self.scheduler,
            self.create,
            granularity=timedelta(minutes=self.config.snap_minutes),
            move_ms=self.config.brush_move_ms,
            settle_ms=self.config.brush_settle_ms,
        )
        self.reconciler = Reconciler(self.surface.layer("tripsLayer"), self.brushes)
        self.selection = SelectionController(self.reconciler, self.delete)

        self.keyboard = keyboard if keyboard is not None else KeyboardSource()
        self._key_subscription = self.keyboard.subscribe(self._on_key)

    # -- inputs ---------------------------------------------------------------

    @property
    def drivers(self) -> list[Driver]:
        return self.snapshot.drivers

    @drivers.setter
    def drivers(self, records: Iterable[Any]) -> None:
        self.snapshot = normalize_drivers(records, key_strategy=self.config.key_strategy)
        self.scheduler.call_soon(self.go)

    @property
    def driver_map(self) -> dict[str, Driver]:
        return self.snapshot.driver_map

    # -- geometry -------------------------------------------------------------

    @property
    def view_box_width(self) -> float:
        return self.width

    @property
    def view_box_height(self) -> float:
        return len(self.snapshot) * self.batch_height

    @property
    def canvas_width(self) -> float:
        """Drawing width once the left and right padding are removed."""
        return self.view_box_width - (self.padding.left + self.padding.right)

    @property
    def canvas_height(self) -> float:
        """Drawing height once the top and bottom padding are removed."""
        return self.view_box_height - (self.padding.top + self.padding.bottom)

    @property
    def view_box(self) -> str:
        return f"0 0 {self.view_box_width} {self.view_box_height}"

    @property
    def root_transform(self) -> str:
        return f"translate({self.padding.left}, {self.padding.top})"

    @property
    def x_axis(self) -> AxisModel | None:
        return self.axes.x_axis

    @property
    def y_axis(self) -> AxisModel | None:
        return self.axes.y_axis

    # -- compute / render -----------------------------------------------------

    def go(self) -> None:
        if self.closed:
            return
        self.compute()
        self.render()

    def compute(self) -> Scales:
        self.scales = self.scale_engine.compute(
            self.snapshot.driver_keys,
            self.current_date,
            self.canvas_width,
            self.canvas_height,
        )
        self.axes.compute(self.scales, self.snapshot)
        if self.color.ensure(self.trips):
            logger.debug("Trip palette built over %d names", len(self.color.domain))
        return self.scales

    def render(self) -> ReconcileReport:
        if self.scales is None:
            raise RuntimeError("GanttChart.compute() must run before render().")
        self.surface.set_view_box(self.view_box_width, self.view_box_height)
        self.surface.layer("rootLayer").translate(self.padding.left, self.padding.top)

        self.axes.render()
        self.last_report = self.reconciler.reconcile(
            self.snapshot, self.scales, self.color, self.select_trip
        )

        selected = self.session.selected_key
        if selected is not None:
            node = self.reconciler.trip_handle(selected)
            if node is None:
                self.session.clear()
            else:
                node.classed(SELECTED_CLASS, True)
        return self.last_report

    # -- interaction ----------------------------------------------------------

    def trip_node(self, trip_key: str) -> SceneNode | None:
        return self.reconciler.trip_handle(trip_key)

    def brush_for(self, driver_key: str) -> RowBrush | None:
        return self.brushes.brush(driver_key)

    def click_trip(self, trip_key: str) -> bool:
        """Deliver a click to the trip's element, as a pointer would."""
        node = self.reconciler.trip_handle(trip_key)
        if node is None:
            return False
        return node.children[0].dispatch("click")

    def select_trip(self, trip_key: str) -> str | None:
        return self.selection.click(self.session, trip_key)

    def _on_key(self, key: str) -> None:
        self.selection.key_up(self.session, self.snapshot, key)

    def close(self) -> None:
        """Stop listening to the keyboard and ignore queued recomputes."""
        self._key_subscription.dispose()
        self.closed = True
