"""CLI entrypoint for the Gantt timeline engine."""

from __future__ import annotations

import logging
import sys

from gantt_engine import __version__
from gantt_engine.config import SAMPLE_SCHEDULE_PATH, load_chart_config
from gantt_engine.core.chart import GanttChart
from gantt_engine.core.models import CreateRequest, DeleteRequest
from gantt_engine.core.scheduling import ImmediateScheduler
from gantt_engine.data_ingestion.schedule_loader import load_schedule_json


def main() -> None:
    """Render the sample schedule and replay a brush and a delete."""
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    print(f"Gantt Timeline Engine v{__version__}")
    print("=" * 56)

    # -- Load config and schedule ---------------------------------------------
    config = load_chart_config()
    schedule = load_schedule_json(SAMPLE_SCHEDULE_PATH)

    chart = GanttChart(config=config, scheduler=ImmediateScheduler())
    if schedule.current_date is not None:
        chart.current_date = schedule.current_date
    chart.trips = schedule.trips

    created: list[CreateRequest] = []
    deleted: list[DeleteRequest] = []
    chart.create.subscribe(created.append)
    chart.delete.subscribe(deleted.append)

    chart.drivers = schedule.drivers

    print(f"\nDay    : {chart.scales.extent[0]:%Y-%m-%d}")
    print(f"Canvas : {chart.canvas_width:.0f} x {chart.canvas_height:.0f} px")
    print(f"Band   : {chart.scales.y.bandwidth:.1f} px")
    print("-" * 56)

    # -- Layout table ---------------------------------------------------------
    print(f"\n  {'Driver':<14}  {'Trip':<16}  {'Start':>5}  {'End':>5}  {'x':>7}  {'width':>7}")
    for driver in chart.drivers:
        if not driver.trips:
            print(f"  {driver.name:<14}  {'(no trips)':<16}")
        for trip in driver.trips:
            rect = chart.trip_node(trip.key).children[0]
            x = chart.scales.x(trip.start)
            print(
                f"  {driver.name:<14}  {trip.name:<16}  {trip.start:%H:%M}  "
                f"{trip.end:%H:%M}  {x:7.1f}  {rect.get('width'):7.1f}"
            )

    # -- Brush on the last row ------------------------------------------------
    target = chart.drivers[-1]
    x = chart.scales.x
    day = chart.scales.extent[0]
    x0 = x(day.replace(hour=9, minute=7))
    x1 = x(day.replace(hour=9, minute=41))
    print(f"\nBrushing {target.name} from 09:07 to 09:41 ...")
    chart.brush_for(target.key).gesture(x0, x1)
    for request in created:
        start, end = request.duration
        print(f"  create -> {request.target.name}: {start:%H:%M} - {end:%H:%M}")
        request.done()

    # -- Select and delete ----------------------------------------------------
    victim = chart.drivers[0].trips[1]
    print(f"\nSelecting '{victim.name}' of {chart.drivers[0].name} and pressing Delete ...")
    chart.click_trip(victim.key)
    chart.keyboard.press("Delete")
    for request in deleted:
        print(f"  delete -> driver {request.driver_index}, trip {request.remove_index}")

    chart.close()
    print("\nDemo complete.")


if __name__ == "__main__":
    sys.exit(main() or 0)
