"""Tests for driver/trip normalization and key minting."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pandas as pd
import pytest

from gantt_engine.core.normalizer import normalize_drivers, parse_instant

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _sample_records() -> list[dict]:
    return [
        {
            "id": 1,
            "driver": "Anna",
            "depot": {"city": "Lyon"},
            "trips": [
                {"id": 11, "name": "Loop", "start": "2024-03-18T06:00:00", "end": "2024-03-18T08:00:00"},
                {"id": 12, "name": "Freight", "start": "2024-03-18T09:00:00", "end": "2024-03-18T12:00:00"},
            ],
        },
        {
            "id": 2,
            "name": "Ben",
            "trips": [
                {"id": 21, "name": "Loop", "start": datetime(2024, 3, 18, 13), "end": datetime(2024, 3, 18, 15)},
            ],
        },
        {"id": 3, "driver": "Chen", "trips": []},
    ]


# ---------------------------------------------------------------------------
# Keys and references
# ---------------------------------------------------------------------------


def test_driver_keys_unique() -> None:
    snapshot = normalize_drivers(_sample_records())
    keys = snapshot.driver_keys
    assert len(keys) == 3
    assert len(set(keys)) == 3


def test_trip_keys_unique_across_snapshot() -> None:
    snapshot = normalize_drivers(_sample_records())
    keys = [trip.key for trip in snapshot.iter_trips()]
    assert len(keys) == 3
    assert len(set(keys)) == 3
    assert not set(keys) & set(snapshot.driver_keys)


def test_every_parent_resolves() -> None:
    snapshot = normalize_drivers(_sample_records())
    for driver in snapshot.drivers:
        for trip in driver.trips:
            assert trip.parent == driver.key
            assert snapshot.driver_map[trip.parent] is driver


def test_two_normalizations_share_no_keys() -> None:
    """Fresh keys are minted on every assignment."""
    first = normalize_drivers(_sample_records())
    second = normalize_drivers(_sample_records())
    first_keys = set(first.driver_keys) | {t.key for t in first.iter_trips()}
    second_keys = set(second.driver_keys) | {t.key for t in second.iter_trips()}
    assert first_keys.isdisjoint(second_keys)


def test_stable_keys_follow_caller_ids() -> None:
    first = normalize_drivers(_sample_records(), key_strategy="stable")
    second = normalize_drivers(_sample_records(), key_strategy="stable")
    assert first.driver_keys == ["driver:1", "driver:2", "driver:3"]
    assert first.driver_keys == second.driver_keys
    assert [t.key for t in first.iter_trips()] == ["trip:11", "trip:12", "trip:21"]


def test_stable_keys_fall_back_on_duplicates_and_missing_ids() -> None:
    records = [
        {"id": 7, "driver": "A", "trips": [{"name": "x", "start": 0, "end": 0}]},
        {"id": 7, "driver": "B", "trips": []},
    ]
    snapshot = normalize_drivers(records, key_strategy="stable")
    assert snapshot.driver_keys[0] == "driver:7"
    assert snapshot.driver_keys[1] != "driver:7"
    assert len(set(snapshot.driver_keys)) == 2
    trip = snapshot.drivers[0].trips[0]
    assert not trip.key.startswith("trip:")


def test_unknown_key_strategy_rejected() -> None:
    with pytest.raises(ValueError, match="key_strategy"):
        normalize_drivers(_sample_records(), key_strategy="sticky")


# ---------------------------------------------------------------------------
# Copying and fields
# ---------------------------------------------------------------------------


def test_output_shares_nothing_with_input() -> None:
    records = _sample_records()
    snapshot = normalize_drivers(records)

    records[0]["depot"]["city"] = "Paris"
    records[0]["trips"].append({"name": "late", "start": 0, "end": 0})
    records[1]["name"] = "Changed"

    anna, ben = snapshot.drivers[0], snapshot.drivers[1]
    assert anna.extra["depot"] == {"city": "Lyon"}
    assert len(anna.trips) == 2
    assert ben.name == "Ben"


def test_display_name_falls_back_to_driver_field() -> None:
    snapshot = normalize_drivers(_sample_records())
    assert [d.name for d in snapshot.drivers] == ["Anna", "Ben", "Chen"]


def test_dates_parsed_to_datetime() -> None:
    snapshot = normalize_drivers(_sample_records())
    trip = snapshot.drivers[0].trips[0]
    assert trip.start == datetime(2024, 3, 18, 6, 0)
    assert trip.end == datetime(2024, 3, 18, 8, 0)
    assert isinstance(trip.start, datetime)


def test_driver_instances_renormalize_with_fresh_keys() -> None:
    snapshot = normalize_drivers(_sample_records())
    again = normalize_drivers(snapshot.drivers)
    assert [d.name for d in again.drivers] == ["Anna", "Ben", "Chen"]
    assert [d.id for d in again.drivers] == [1, 2, 3]
    assert again.drivers[0].extra == {"depot": {"city": "Lyon"}}
    assert set(again.driver_keys).isdisjoint(snapshot.driver_keys)
    assert again.drivers[1].trips[0].start == datetime(2024, 3, 18, 13)


def test_trip_position_and_removal() -> None:
    snapshot = normalize_drivers(_sample_records())
    second = snapshot.drivers[0].trips[1]
    assert snapshot.trip_position(second.key) == (0, 1)
    assert snapshot.remove_trip(second.key) is second
    assert snapshot.trip_position(second.key) == (-1, -1)
    assert snapshot.remove_trip("missing") is None


# ---------------------------------------------------------------------------
# parse_instant
# ---------------------------------------------------------------------------


def test_parse_instant_accepts_common_inputs() -> None:
    expected = datetime(2024, 3, 18, 9, 30)
    assert parse_instant("2024-03-18T09:30:00") == expected
    assert parse_instant(expected) == expected
    assert parse_instant(pd.Timestamp("2024-03-18 09:30")) == expected


def test_parse_instant_treats_numbers_as_epoch_ms() -> None:
    assert parse_instant(0) == datetime(1970, 1, 1)
    assert parse_instant(90_000) == datetime(1970, 1, 1, 0, 1, 30)


def test_parse_instant_rejects_missing_and_bool() -> None:
    with pytest.raises(ValueError):
        parse_instant(None)
    with pytest.raises(ValueError):
        parse_instant(True)


def test_parse_instant_converts_zone_aware_values_to_naive_utc() -> None:
    assert parse_instant("2024-03-18T09:00:00.000Z") == datetime(2024, 3, 18, 9)
    assert parse_instant("2024-03-18T11:00:00+02:00") == datetime(2024, 3, 18, 9)
    aware = datetime(2024, 3, 18, 9, tzinfo=timezone.utc)
    assert parse_instant(aware).tzinfo is None


def test_zone_aware_trips_compare_with_naive_ones() -> None:
    snapshot = normalize_drivers(
        [
            {
                "driver": "Anna",
                "trips": [
                    {"name": "Loop", "start": "2024-03-18T06:00:00Z", "end": "2024-03-18T08:00:00"},
                ],
            }
        ]
    )
    trip = snapshot.drivers[0].trips[0]
    assert trip.end - trip.start == timedelta(hours=2)
