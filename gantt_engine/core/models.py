"""Data model for the Gantt timeline engine.

Drivers are the schedulable resources that get one row each on the
chart; trips are the time intervals a driver owns.  Both carry an
internal ``key`` minted by the normalizer, which the reconciler uses as
element identity.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Padding:
    """Space reserved around the drawing canvas for axis labels.

    Attributes:
        top: Top padding in pixels.
        right: Right padding in pixels.
        bottom: Bottom padding in pixels.
        left: Left padding in pixels.  Wide by default so driver names fit.
    """

    top: float = 15.0
    right: float = 15.0
    bottom: float = 15.0
    left: float = 55.0

    def __post_init__(self) -> None:
        for side in ("top", "right", "bottom", "left"):
            if getattr(self, side) < 0.0:
                raise ValueError(f"padding.{side} must be >= 0.")


KEY_STRATEGIES: tuple[str, ...] = ("fresh", "stable")

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class ChartConfig:
    """Sizing and behaviour settings for one chart.

    Attributes:
        width: Total surface width in pixels.
        height: Nominal surface height; the drawn height follows
            ``driver_count * batch_height``.
        batch_height: Height of one driver row in pixels.
        padding: Space around the canvas for axis labels.
        snap_minutes: Brush snapping granularity.
        brush_move_ms: Duration of the brush snap animation.
        brush_settle_ms: Delay between the snap animation and the create
            request.
        axis_transition_ms: Duration of axis redraw transitions.
        padding_inner: Fraction of each row band left empty between rows.
        color_start: First anchor color of the trip palette.
        color_end: Second anchor color of the trip palette.
        key_strategy: ``"fresh"`` or ``"stable"`` (see
            :func:`gantt_engine.core.normalizer.normalize_drivers`).
    """

    width: float = 800.0
    height: float = 600.0
    batch_height: float = 60.0
    padding: Padding = field(default_factory=Padding)
    snap_minutes: int = 30
    brush_move_ms: int = 100
    brush_settle_ms: int = 200
    axis_transition_ms: int = 50
    padding_inner: float = 0.2
    color_start: str = "#007AFF"
    color_end: str = "#FFF500"
    key_strategy: str = "fresh"

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.width <= 0.0:
            raise ValueError("width must be > 0.")
        if self.height < 0.0:
            raise ValueError("height must be >= 0.")
        if self.batch_height <= 0.0:
            raise ValueError("batch_height must be > 0.")
        if self.snap_minutes <= 0:
            raise ValueError("snap_minutes must be > 0.")
        for name in ("brush_move_ms", "brush_settle_ms", "axis_transition_ms"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0.")
        if not 0.0 <= self.padding_inner < 1.0:
            raise ValueError("padding_inner must be in [0, 1).")
        for name in ("color_start", "color_end"):
            if not _HEX_COLOR.match(getattr(self, name)):
                raise ValueError(f"{name} must be a #RRGGBB color.")
        if self.key_strategy not in KEY_STRATEGIES:
            raise ValueError(f"key_strategy must be one of {KEY_STRATEGIES}.")


@dataclass(frozen=True)
class Trip:
    """A scheduled interval belonging to one driver.

    Attributes:
        key: Internal identifier, unique across the whole snapshot.
        parent: Key of the owning :class:`Driver`.
        name: Category label, also used as the color key.
        start: Interval start.
        end: Interval end.  ``start == end`` renders as a zero-width bar.
        id: Caller-supplied identity, if the source record had one.
        extra: Remaining fields of the source record.
    """

    key: str
    parent: str
    name: str
    start: datetime
    end: datetime
    id: Any = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class Driver:
    """A resource with one row on the timeline.

    Attributes:
        key: Internal identifier, unique within the snapshot.
        name: Display label shown on the vertical axis.
        trips: Trips owned by this driver, in source order.
        id: Caller-supplied identity (opaque).
        extra: Remaining fields of the source record.
    """

    key: str
    name: str
    trips: list[Trip] = field(default_factory=list)
    id: Any = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class Snapshot:
    """One normalized copy of the caller's drivers collection."""

    drivers: list[Driver] = field(default_factory=list)
    driver_map: dict[str, Driver] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.drivers)

    @property
    def driver_keys(self) -> list[str]:
        return [driver.key for driver in self.drivers]

    def iter_trips(self) -> Iterator[Trip]:
        for driver in self.drivers:
            yield from driver.trips

    def driver_index(self, driver_key: str) -> int:
        """Return the row index of *driver_key*, or ``-1`` if unknown."""
        for idx, driver in enumerate(self.drivers):
            if driver.key == driver_key:
                return idx
        return -1

    def trip_position(self, trip_key: str) -> tuple[int, int]:
        """Resolve a trip key to ``(driver_index, trip_index)``.

        Either index is ``-1`` when the lookup fails.
        """
        for trip in self.iter_trips():
            if trip.key == trip_key:
                driver_index = self.driver_index(trip.parent)
                if driver_index < 0:
                    return -1, -1
                trips = self.drivers[driver_index].trips
                for trip_index, candidate in enumerate(trips):
                    if candidate.key == trip_key:
                        return driver_index, trip_index
                return driver_index, -1
        return -1, -1

    def find_trip(self, trip_key: str) -> Trip | None:
        for trip in self.iter_trips():
            if trip.key == trip_key:
                return trip
        return None

    def remove_trip(self, trip_key: str) -> Trip | None:
        """Drop a trip from its driver so later indices stay in step."""
        driver_index, trip_index = self.trip_position(trip_key)
        if driver_index < 0 or trip_index < 0:
            return None
        return self.drivers[driver_index].trips.pop(trip_index)


# ---------------------------------------------------------------------------
# Requests raised to the host
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CreateRequest:
    """Proposal for a new trip produced by a brush gesture.

    Attributes:
        target: Driver whose row was brushed.
        duration: Snapped ``(start, end)`` with ``start < end``.
        done: Must be called by the host once the request is handled;
            it resets the row's brush to an empty, reusable state.
    """

    target: Driver
    duration: tuple[datetime, datetime]
    done: Callable[[], None]


@dataclass(frozen=True)
class DeleteRequest:
    """Removal notice for the selected trip.

    ``-1`` in either field means the trip could not be resolved and the
    host should ignore the request.
    """

    driver_index: int
    remove_index: int
