"""Ingestion of caller-supplied driver records into keyed snapshots.

Every assignment of a drivers collection goes through
:func:`normalize_drivers`, which deep-copies the input, mints keys and
parses the date fields.  The resulting :class:`Snapshot` shares no
mutable state with the caller's objects.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any
from uuid import uuid4

import pandas as pd

from gantt_engine.core.models import KEY_STRATEGIES, Driver, Snapshot, Trip

logger = logging.getLogger(__name__)

_DRIVER_FIELDS: frozenset[str] = frozenset({"id", "key", "name", "driver", "trips"})
_TRIP_FIELDS: frozenset[str] = frozenset(
    {"id", "key", "parent", "name", "start", "end"}
)


def new_key() -> str:
    return uuid4().hex


def parse_instant(value: Any) -> datetime:
    """Parse a raw date field into a :class:`datetime`.

    Accepts ISO-8601 strings, ``datetime``/``date`` objects, pandas
    timestamps and epoch milliseconds (what JavaScript hosts serialise).
    Zone-aware values such as ``...Z`` strings are converted to naive UTC
    so they compare with the naive day window.

    Raises:
        ValueError: If the value is missing or not a recognisable instant.
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot interpret {value!r} as a date.")
    if isinstance(value, (int, float)):
        stamp = pd.Timestamp(value, unit="ms")
    else:
        stamp = pd.Timestamp(value)
    if pd.isna(stamp):
        raise ValueError("Trip date field is missing.")
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(None)
    return stamp.to_pydatetime()


def _driver_source(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Driver):
        return {
            **record.extra,
            "id": record.id,
            "name": record.name,
            "trips": [_trip_source(trip) for trip in record.trips],
        }
    return record


def _trip_source(record: Any) -> Mapping[str, Any]:
    if isinstance(record, Trip):
        return {
            **record.extra,
            "id": record.id,
            "name": record.name,
            "start": record.start,
            "end": record.end,
        }
    return record


def _mint_key(identity: Any, prefix: str, key_strategy: str, used: set[str]) -> str:
    if key_strategy == "stable" and identity is not None:
        key = f"{prefix}:{identity}"
        if key not in used:
            used.add(key)
            return key
        logger.debug("Duplicate %s id %r, falling back to a fresh key", prefix, identity)
    key = new_key()
    used.add(key)
    return key


def _display_name(source: Mapping[str, Any]) -> str:
    for field_name in ("name", "driver"):
        value = source.get(field_name)
        if value is not None:
            return str(value)
    identity = source.get("id")
    return "" if identity is None else str(identity)


def _normalize_trip(
    record: Any,
    driver_key: str,
    key_strategy: str,
    used: set[str],
) -> Trip:
    source = _trip_source(record)
    identity = copy.deepcopy(source.get("id"))
    return Trip(
        key=_mint_key(identity, "trip", key_strategy, used),
        parent=driver_key,
        name=str(source.get("name", "")),
        start=parse_instant(source.get("start")),
        end=parse_instant(source.get("end")),
        id=identity,
        extra={
            k: copy.deepcopy(v) for k, v in source.items() if k not in _TRIP_FIELDS
        },
    )


def normalize_drivers(
    records: Iterable[Any],
    key_strategy: str = "fresh",
) -> Snapshot:
    """Deep-copy and key a drivers collection.

    Args:
        records: Driver-shaped mappings (``id``, ``name`` or ``driver``,
            ``trips``) or :class:`Driver` instances from an earlier
            snapshot.
        key_strategy: ``"fresh"`` mints a new uuid for every driver and
            trip, so no key from a previous snapshot is ever reused.
            ``"stable"`` derives keys from caller ids where they exist
            and are unique, keeping element identity across updates.

    Returns:
        A :class:`Snapshot` with the driver sequence and key map.

    Raises:
        ValueError: If *key_strategy* is unknown or a trip date cannot
            be parsed.
    """
    if key_strategy not in KEY_STRATEGIES:
        raise ValueError(
            f"key_strategy must be one of {KEY_STRATEGIES}, got {key_strategy!r}."
        )

    used: set[str] = set()
    drivers: list[Driver] = []

    for record in records:
        source = _driver_source(record)
        identity = copy.deepcopy(source.get("id"))
        driver_key = _mint_key(identity, "driver", key_strategy, used)
        trips = [
            _normalize_trip(trip, driver_key, key_strategy, used)
            for trip in source.get("trips") or ()
        ]
        drivers.append(
            Driver(
                key=driver_key,
                name=_display_name(source),
                trips=trips,
                id=identity,
                extra={
                    k: copy.deepcopy(v)
                    for k, v in source.items()
                    if k not in _DRIVER_FIELDS
                },
            )
        )

    snapshot = Snapshot(
        drivers=drivers,
        driver_map={driver.key: driver for driver in drivers},
    )
    logger.debug(
        "Normalized %d drivers / %d trips (%s keys)",
        len(drivers),
        sum(len(d.trips) for d in drivers),
        key_strategy,
    )
    return snapshot
