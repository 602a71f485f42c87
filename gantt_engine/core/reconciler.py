"""Keyed enter/update/exit reconciliation of the trips layer.

The reconciler keeps an arena of scene handles indexed by key: one row
group per driver key and, inside it, one element per trip key.  Each
pass diffs the previous and current key sets:

* keys only in the new snapshot are *entered* (created and wired),
* keys in both are *updated* in place, keeping handlers and classes,
* keys only in the previous pass are *exited* (removed, handlers dropped).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from gantt_engine.core.brush import BrushController
from gantt_engine.core.color import ColorMapper
from gantt_engine.core.models import Driver, Snapshot, Trip
from gantt_engine.core.scale import Scales
from gantt_engine.core.scene import SceneNode

logger = logging.getLogger(__name__)

ROW_CLASS: str = "trip-items"
TRIP_CLASS: str = "trip"
TRIP_OPACITY: float = 0.8
LABEL_SIZE: str = "10px"


@dataclass
class RowHandle:
    """Scene handles owned by one driver row."""

    key: str
    group: SceneNode
    trips: dict[str, SceneNode] = field(default_factory=dict)


@dataclass
class ReconcileReport:
    """Keys touched by one reconciliation pass."""

    rows_entered: list[str] = field(default_factory=list)
    rows_updated: list[str] = field(default_factory=list)
    rows_exited: list[str] = field(default_factory=list)
    trips_entered: list[str] = field(default_factory=list)
    trips_updated: list[str] = field(default_factory=list)
    trips_exited: list[str] = field(default_factory=list)


class Reconciler:
    """Maps snapshots onto persistent row and trip elements."""

    def __init__(self, layer: SceneNode, brushes: BrushController) -> None:
        self.layer = layer
        self.brushes = brushes
        self.rows: dict[str, RowHandle] = {}

    def __contains__(self, row_key: object) -> bool:
        return row_key in self.rows

    def trip_handle(self, trip_key: str) -> SceneNode | None:
        for row in self.rows.values():
            node = row.trips.get(trip_key)
            if node is not None:
                return node
        return None

    @property
    def trip_keys(self) -> set[str]:
        return {key for row in self.rows.values() for key in row.trips}

    def reconcile(
        self,
        snapshot: Snapshot,
        scales: Scales,
        color: ColorMapper,
        on_trip_click: Callable[[str], object],
    ) -> ReconcileReport:
        report = ReconcileReport()
        current = {driver.key: driver for driver in snapshot.drivers}

        for key in [k for k in self.rows if k not in current]:
            self._exit_row(key, report)

        for driver in snapshot.drivers:
            row = self.rows.get(driver.key)
            if row is None:
                row = self._enter_row(driver, scales)
                report.rows_entered.append(driver.key)
            else:
                self.brushes.update(driver, scales)
                report.rows_updated.append(driver.key)
            row.group.data = driver
            self._reconcile_trips(row, driver, scales, color, on_trip_click, report)

        logger.debug(
            "Reconciled rows +%d ~%d -%d, trips +%d ~%d -%d",
            len(report.rows_entered),
            len(report.rows_updated),
            len(report.rows_exited),
            len(report.trips_entered),
            len(report.trips_updated),
            len(report.trips_exited),
        )
        return report

    def discard_trip(self, trip_key: str) -> bool:
        """Remove one trip element immediately, outside a reconcile pass."""
        for row in self.rows.values():
            node = row.trips.pop(trip_key, None)
            if node is not None:
                node.remove()
                return True
        return False

    # -- rows -----------------------------------------------------------------

    def _enter_row(self, driver: Driver, scales: Scales) -> RowHandle:
        group = self.layer.append("g").classed(ROW_CLASS, True)
        row = RowHandle(key=driver.key, group=group)
        self.brushes.attach(group, driver, scales)
        self.rows[driver.key] = row
        return row

    def _exit_row(self, key: str, report: ReconcileReport) -> None:
        row = self.rows.pop(key)
        report.trips_exited.extend(row.trips)
        row.trips.clear()
        self.brushes.detach(key)
        row.group.remove()
        report.rows_exited.append(key)

    # -- trips ----------------------------------------------------------------

    def _reconcile_trips(
        self,
        row: RowHandle,
        driver: Driver,
        scales: Scales,
        color: ColorMapper,
        on_trip_click: Callable[[str], object],
        report: ReconcileReport,
    ) -> None:
        current = {trip.key for trip in driver.trips}
        for key in [k for k in row.trips if k not in current]:
            row.trips.pop(key).remove()
            report.trips_exited.append(key)

        for trip in driver.trips:
            node = row.trips.get(trip.key)
            if node is None:
                node = self._enter_trip(row, trip, on_trip_click)
                report.trips_entered.append(trip.key)
            else:
                report.trips_updated.append(trip.key)
            self._place_trip(node, trip, scales, color)

    @staticmethod
    def _enter_trip(
        row: RowHandle, trip: Trip, on_trip_click: Callable[[str], object]
    ) -> SceneNode:
        key = trip.key
        group = row.group.append("g").classed(TRIP_CLASS, True)
        rect = group.append("rect").attr("fill-opacity", TRIP_OPACITY)
        rect.on("click", lambda: on_trip_click(key))
        group.append("text").attr("x", 10).attr("dy", "-.35em").attr(
            "font-size", LABEL_SIZE
        ).attr("fill", "white")
        row.trips[key] = group
        return group

    @staticmethod
    def _place_trip(
        node: SceneNode, trip: Trip, scales: Scales, color: ColorMapper
    ) -> None:
        bandwidth = scales.y.bandwidth
        x0 = scales.x(trip.start)
        width = max(0.0, scales.x(trip.end) - x0)

        node.data = trip
        node.translate(x0, scales.y(trip.parent) or 0.0)
        rect, text = node.children[0], node.children[1]
        rect.attr("y", bandwidth * 0.1).attr("height", bandwidth * 0.8)
        rect.attr("width", width).attr("fill", color(trip.name))
        text.attr("y", bandwidth * 0.7).set_text(trip.name)
