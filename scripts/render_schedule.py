#!/usr/bin/env python
"""Render a driver schedule to a standalone HTML timeline.

This script:

1. Loads a schedule from JSON (nested driver records) or CSV (flat trip
   rows with ``driver``, ``name``, ``start``, ``end``).
2. Lays it out with the chart engine using the settings in
   ``data/chart.yaml``.
3. Writes the Plotly figure to an HTML file and prints a short summary.

Usage
-----
::

    python scripts/render_schedule.py data/sample_schedule.json
    python scripts/render_schedule.py trips.csv --date 2024-03-18 -o out.html
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

# Ensure the project root is on the import path.
_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from gantt_engine.config import (  # noqa: E402
    CONFIG_PATH,
    SAMPLE_SCHEDULE_PATH,
    load_chart_config,
)
from gantt_engine.core.chart import GanttChart  # noqa: E402
from gantt_engine.core.normalizer import parse_instant  # noqa: E402
from gantt_engine.core.scheduling import ImmediateScheduler  # noqa: E402
from gantt_engine.data_ingestion.schedule_loader import (  # noqa: E402
    Schedule,
    load_schedule_csv,
    load_schedule_json,
)
from gantt_engine.plotting import chart_to_figure  # noqa: E402

logger = logging.getLogger("render_schedule")

DEFAULT_OUTPUT: str = os.path.join(_project_root, "results", "schedule.html")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load(path: Path) -> Schedule:
    if path.suffix.lower() == ".csv":
        return load_schedule_csv(path)
    return load_schedule_json(path)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "schedule",
        nargs="?",
        type=Path,
        default=SAMPLE_SCHEDULE_PATH,
        help="JSON or CSV schedule (default: the bundled sample)",
    )
    parser.add_argument(
        "-c", "--config", type=Path, default=CONFIG_PATH, help="chart YAML settings"
    )
    parser.add_argument("-d", "--date", help="day to display (default: from file)")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT, help="HTML output path")
    parser.add_argument("--title", default=None, help="figure title")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_chart_config(args.config)
        schedule = _load(args.schedule)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 1

    chart = GanttChart(config=config, scheduler=ImmediateScheduler())
    if args.date:
        chart.current_date = parse_instant(args.date)
    elif schedule.current_date is not None:
        chart.current_date = schedule.current_date
    chart.trips = schedule.trips
    chart.drivers = schedule.drivers

    fig = chart_to_figure(chart, title=args.title or args.schedule.stem)
    os.makedirs(os.path.dirname(os.path.abspath(args.output)), exist_ok=True)
    fig.write_html(args.output, include_plotlyjs="cdn")
    chart.close()

    n_trips = sum(len(driver.trips) for driver in chart.drivers)
    print(f"Rendered {len(chart.drivers)} drivers / {n_trips} trips")
    print(f"Day     : {chart.scales.extent[0]:%Y-%m-%d}")
    print(f"Palette : {', '.join(chart.color.domain) or '(empty)'}")
    print(f"Output  : {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
