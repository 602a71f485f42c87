"""Coordinate scales for the timeline.

The horizontal axis is a continuous time scale over a fixed 24-hour
window anchored on the chart's current date.  The vertical axis is a
band scale giving every driver row one contiguous slot.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

DEFAULT_PADDING_INNER: float = 0.2
HOURLY: timedelta = timedelta(hours=1)


def compute_extent(current_date: date | datetime) -> tuple[datetime, datetime]:
    """Return the calendar day containing *current_date* as ``[start, end)``.

    The window is always one calendar day regardless of where the trips
    actually fall; trips outside it are not clipped.
    """
    stamp = pd.Timestamp(current_date)
    if stamp.tzinfo is not None:
        stamp = stamp.tz_convert(None)
    day = stamp.normalize()
    return day.to_pydatetime(), (day + pd.DateOffset(days=1)).to_pydatetime()


class TimeScale:
    """Linear mapping from a time domain onto a pixel range."""

    __slots__ = ("domain", "range")

    def __init__(
        self,
        domain: tuple[datetime, datetime],
        range_: tuple[float, float],
    ) -> None:
        start, end = domain
        if end <= start:
            raise ValueError("Time domain end must be after its start.")
        self.domain: tuple[datetime, datetime] = (start, end)
        self.range: tuple[float, float] = (float(range_[0]), float(range_[1]))

    @property
    def span_seconds(self) -> float:
        return (self.domain[1] - self.domain[0]).total_seconds()

    @property
    def resolution(self) -> timedelta:
        """Time covered by one pixel (the whole domain on a 0px range)."""
        width = abs(self.range[1] - self.range[0])
        if width == 0.0:
            return self.domain[1] - self.domain[0]
        return timedelta(seconds=self.span_seconds / width)

    def __call__(self, instant: datetime) -> float:
        r0, r1 = self.range
        t = (instant - self.domain[0]).total_seconds() / self.span_seconds
        return r0 + t * (r1 - r0)

    def invert(self, pixel: float) -> datetime:
        r0, r1 = self.range
        if r1 == r0:
            return self.domain[0]
        t = (float(pixel) - r0) / (r1 - r0)
        return self.domain[0] + timedelta(seconds=t * self.span_seconds)

    def ticks(self, every: timedelta = HOURLY) -> list[datetime]:
        """Tick instants from domain start to domain end inclusive."""
        index = pd.date_range(
            start=self.domain[0], end=self.domain[1], freq=pd.Timedelta(every)
        )
        return [stamp.to_pydatetime() for stamp in index]


class BandScale:
    """Discrete mapping from keys onto evenly spaced pixel bands.

    Mirrors the usual band-scale layout: ``step`` is the distance
    between band starts, ``bandwidth`` the band size after removing the
    inner padding fraction.  An inverted range lays the bands out in
    reverse order.
    """

    __slots__ = ("domain", "range", "padding_inner", "step", "bandwidth", "_offsets")

    def __init__(
        self,
        domain: Sequence[str],
        range_: tuple[float, float],
        padding_inner: float = DEFAULT_PADDING_INNER,
        padding_outer: float = 0.0,
        align: float = 0.5,
    ) -> None:
        if not 0.0 <= padding_inner <= 1.0:
            raise ValueError("padding_inner must be between 0.0 and 1.0.")
        self.domain: list[str] = list(dict.fromkeys(domain))
        self.range: tuple[float, float] = (float(range_[0]), float(range_[1]))
        self.padding_inner: float = padding_inner

        n = len(self.domain)
        r0, r1 = self.range
        reverse = r1 < r0
        start, stop = (r1, r0) if reverse else (r0, r1)

        self.step: float = (stop - start) / max(
            1.0, n - padding_inner + padding_outer * 2
        )
        start += (stop - start - self.step * (n - padding_inner)) * align
        self.bandwidth: float = self.step * (1.0 - padding_inner)

        offsets = start + self.step * np.arange(n, dtype=np.float64)
        if reverse:
            offsets = offsets[::-1]
        self._offsets: dict[str, float] = {
            key: float(offset) for key, offset in zip(self.domain, offsets)
        }

    def __call__(self, key: str) -> float | None:
        return self._offsets.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._offsets

    def centre(self, key: str) -> float | None:
        offset = self._offsets.get(key)
        if offset is None:
            return None
        return offset + self.bandwidth / 2.0


@dataclass(frozen=True)
class Scales:
    """Scales computed for one snapshot."""

    extent: tuple[datetime, datetime]
    x: TimeScale
    y: BandScale
    canvas_width: float
    canvas_height: float


class ScaleEngine:
    """Builds the horizontal and vertical scales for a snapshot."""

    def __init__(self, padding_inner: float = DEFAULT_PADDING_INNER) -> None:
        self.padding_inner = padding_inner

    def compute(
        self,
        driver_keys: Sequence[str],
        current_date: date | datetime,
        canvas_width: float,
        canvas_height: float,
    ) -> Scales:
        extent = compute_extent(current_date)
        x = TimeScale(extent, (0.0, canvas_width))
        y = BandScale(
            driver_keys, (0.0, canvas_height), padding_inner=self.padding_inner
        )
        logger.debug(
            "Scales for %s: %d rows, canvas %.1fx%.1f, bandwidth %.2f",
            extent[0].date(),
            len(y.domain),
            canvas_width,
            canvas_height,
            y.bandwidth,
        )
        return Scales(
            extent=extent,
            x=x,
            y=y,
            canvas_width=canvas_width,
            canvas_height=canvas_height,
        )
