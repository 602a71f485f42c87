"""Schedule loaders for the Gantt timeline engine.

This module provides functions to:

1. Read a driver schedule from JSON (the nested shape the chart takes
   as input) or from a flat CSV of trip rows.
2. Regroup flat trip tables into driver records with pandas.
3. Derive the reference trip list that fixes the color palette.
4. Apply the chart's create and delete requests back to the records.

The loaders only produce plain records; keys and parsed dates are added
later by :func:`gantt_engine.core.normalizer.normalize_drivers`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from gantt_engine.core.models import CreateRequest, DeleteRequest, Snapshot
from gantt_engine.core.normalizer import parse_instant

logger = logging.getLogger(__name__)

_REQUIRED_COLUMNS: tuple[str, ...] = ("driver", "name", "start", "end")
_TRIP_COLUMNS: tuple[str, ...] = ("name", "start", "end")


@dataclass
class Schedule:
    """Everything a host needs to feed one chart.

    Attributes:
        drivers: Driver records (``id``, ``driver``/``name``, ``trips``).
        trips: Reference trips for the color palette.
        current_date: Day to display, if the file names one.
    """

    drivers: list[dict[str, Any]] = field(default_factory=list)
    trips: list[dict[str, Any]] = field(default_factory=list)
    current_date: datetime | None = None


def reference_trips(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Flatten the trips of every driver record, in source order."""
    return [trip for record in records for trip in record.get("trips") or ()]


def _scalar(value: Any) -> Any:
    """Unwrap numpy scalars so records stay JSON-friendly."""
    return value.item() if hasattr(value, "item") else value


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def load_schedule_json(path: Path) -> Schedule:
    """Load a schedule from a JSON file.

    The file holds either a bare list of driver records or an object with
    ``drivers`` and optional ``trips`` and ``current_date``.  Without
    ``trips`` the drivers' own trips form the palette.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the content does not have one of those shapes.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schedule file not found: {path}")

    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)

    if isinstance(data, list):
        data = {"drivers": data}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a list or an object at top level")

    drivers = data.get("drivers")
    if not isinstance(drivers, list):
        raise ValueError(f"{path}: 'drivers' must be a list")
    for idx, record in enumerate(drivers):
        if not isinstance(record, dict):
            raise ValueError(f"{path}: driver entry {idx} is not an object")

    trips = data.get("trips")
    if trips is None:
        trips = reference_trips(drivers)
    elif not isinstance(trips, list):
        raise ValueError(f"{path}: 'trips' must be a list")

    current_date = data.get("current_date")
    return Schedule(
        drivers=drivers,
        trips=trips,
        current_date=(
            parse_instant(current_date) if current_date else None
        ),
    )


# ---------------------------------------------------------------------------
# Tabular
# ---------------------------------------------------------------------------


def records_from_dataframe(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Group flat trip rows into driver records.

    Expected columns are ``driver``, ``name``, ``start`` and ``end``, with
    an optional ``driver_id``.  Drivers keep the order of their first row.
    A row whose trip columns are all empty declares a driver without
    trips.  Rows with only one of ``start``/``end`` are skipped with a
    warning.  Any other column is carried onto the trip record.

    Raises:
        ValueError: If a required column is missing.
    """
    missing = [col for col in _REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ValueError(f"Schedule table is missing column(s): {', '.join(missing)}")

    df = df.copy()
    if "driver_id" not in df.columns:
        df["driver_id"] = df["driver"]
    extra_columns = [
        col for col in df.columns if col not in (*_REQUIRED_COLUMNS, "driver_id")
    ]

    records: list[dict[str, Any]] = []
    for (driver_id, driver_name), rows in df.groupby(
        ["driver_id", "driver"], sort=False
    ):
        trips: list[dict[str, Any]] = []
        for row_map in rows.to_dict("records"):
            if all(pd.isna(row_map[col]) for col in _TRIP_COLUMNS):
                continue
            if pd.isna(row_map["start"]) or pd.isna(row_map["end"]):
                logger.warning(
                    "Skipping trip %r of %r: missing start or end",
                    row_map["name"],
                    driver_name,
                )
                continue
            trip = {
                "name": str(row_map["name"]),
                "start": str(row_map["start"]),
                "end": str(row_map["end"]),
            }
            for col in extra_columns:
                if not pd.isna(row_map[col]):
                    trip[col] = _scalar(row_map[col])
            trips.append(trip)
        records.append(
            {"id": _scalar(driver_id), "driver": str(driver_name), "trips": trips}
        )

    logger.debug(
        "Grouped %d rows into %d drivers", len(df), len(records)
    )
    return records


def load_schedule_csv(path: Path) -> Schedule:
    """Load a flat CSV of trip rows (see :func:`records_from_dataframe`).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a required column is missing.
    """
    if not path.exists():
        raise FileNotFoundError(f"Schedule file not found: {path}")

    drivers = records_from_dataframe(pd.read_csv(path))
    return Schedule(drivers=drivers, trips=reference_trips(drivers))


# ---------------------------------------------------------------------------
# Host edits
# ---------------------------------------------------------------------------


def apply_create(
    records: list[dict[str, Any]],
    snapshot: Snapshot,
    request: CreateRequest,
    name: str = "New trip",
) -> dict[str, Any] | None:
    """Append the brushed trip to the record the request targets.

    The row is located by the target's key in *snapshot*, so records
    that carry no ``id`` (or share one) still land on the brushed row.
    ``request.done()`` is always called.  Returns the appended trip, or
    ``None`` if the target is no longer in the snapshot.
    """
    index = snapshot.driver_index(request.target.key)
    if index < 0 or index >= len(records):
        logger.warning("Create request for unknown row %s ignored", request.target.key)
        request.done()
        return None
    start, end = request.duration
    trip = {"name": name, "start": start.isoformat(), "end": end.isoformat()}
    records[index].setdefault("trips", []).append(trip)
    request.done()
    return trip


def apply_delete(
    records: list[dict[str, Any]], request: DeleteRequest
) -> dict[str, Any] | None:
    """Drop the trip at the reported indices; unresolved requests are ignored."""
    if request.driver_index < 0 or request.remove_index < 0:
        return None
    return records[request.driver_index]["trips"].pop(request.remove_index)
