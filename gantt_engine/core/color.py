"""Categorical trip colors.

Trip names are spread evenly over ``[0, 1]`` and each position is
mapped to a color interpolated in CIE HCL space between two anchor
colors.  The name positions are computed once; after that the mapper
keeps answering from the first computation until it is invalidated.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from typing import Any

import numpy as np

ANCHOR_START: str = "#007AFF"
ANCHOR_END: str = "#FFF500"
UNKNOWN_COLOR: str = "rgb(0, 0, 0)"

# CIE Lab constants (D50 white point, sRGB primaries).
_T0: float = 4.0 / 29.0
_T1: float = 6.0 / 29.0
_T2: float = 3.0 * _T1 * _T1
_T3: float = _T1 * _T1 * _T1
_WHITE = np.array([0.96422, 1.0, 0.82521], dtype=np.float64)

_RGB_TO_XYZ = np.array(
    [
        [0.4360747, 0.3850649, 0.1430804],
        [0.2225045, 0.7168786, 0.0606169],
        [0.0139322, 0.0971045, 0.7141733],
    ],
    dtype=np.float64,
)
_XYZ_TO_RGB = np.array(
    [
        [3.1338561, -1.6168667, -0.4906146],
        [-0.9787684, 1.9161415, 0.0334540],
        [0.0719453, -0.2289914, 1.4052427],
    ],
    dtype=np.float64,
)


# ---------------------------------------------------------------------------
# Color space conversion
# ---------------------------------------------------------------------------


def hex_to_hcl(color: str) -> tuple[float, float, float]:
    """Convert ``#RRGGBB`` to ``(hue, chroma, luminance)``.

    Hue is ``nan`` for achromatic colors.
    """
    value = color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected a #RRGGBB color, got {color!r}.")
    rgb = np.array([int(value[i : i + 2], 16) for i in (0, 2, 4)], dtype=np.float64)
    rgb /= 255.0
    linear = np.where(rgb <= 0.04045, rgb / 12.92, ((rgb + 0.055) / 1.055) ** 2.4)

    xyz = (_RGB_TO_XYZ @ linear) / _WHITE
    f = np.where(xyz > _T3, np.cbrt(xyz), xyz / _T2 + _T0)
    if rgb[0] == rgb[1] == rgb[2]:
        f[0] = f[2] = f[1]

    lum = 116.0 * f[1] - 16.0
    a = 500.0 * (f[0] - f[1])
    b = 200.0 * (f[1] - f[2])
    chroma = math.hypot(a, b)
    if a == 0.0 and b == 0.0:
        return math.nan, 0.0, float(lum)
    hue = math.degrees(math.atan2(b, a)) % 360.0
    return hue, chroma, float(lum)


def hcl_to_rgb_string(hue: float, chroma: float, lum: float) -> str:
    """Convert HCL back to an ``rgb(r, g, b)`` string, clamped to gamut."""
    if math.isnan(hue):
        a = b = 0.0
    else:
        rad = math.radians(hue)
        a, b = math.cos(rad) * chroma, math.sin(rad) * chroma

    fy = (lum + 16.0) / 116.0
    f = np.array([fy + a / 500.0, fy, fy - b / 200.0], dtype=np.float64)
    xyz = _WHITE * np.where(f > _T1, f**3, _T2 * (f - _T0))

    linear = _XYZ_TO_RGB @ xyz
    safe = np.maximum(linear, 0.0031308)
    rgb = 255.0 * np.where(
        linear <= 0.0031308, 12.92 * linear, 1.055 * safe ** (1.0 / 2.4) - 0.055
    )

    channels = []
    for v in rgb:
        channels.append(0 if math.isnan(v) else max(0, min(255, math.floor(v + 0.5))))
    return "rgb({}, {}, {})".format(*channels)


def _hue_path(a: float, b: float) -> Callable[[float], float]:
    if math.isnan(a):
        return lambda t: b
    if math.isnan(b):
        return lambda t: a
    d = b - a
    if d > 180.0 or d < -180.0:
        d -= 360.0 * round(d / 360.0)
    return lambda t: a + t * d


def interpolate_hcl(start: str, end: str) -> Callable[[float], str]:
    """Return ``t -> color`` interpolating along the shortest hue path."""
    h0, c0, l0 = hex_to_hcl(start)
    h1, c1, l1 = hex_to_hcl(end)
    hue = _hue_path(h0, h1)

    def interpolate(t: float) -> str:
        return hcl_to_rgb_string(hue(t), c0 + t * (c1 - c0), l0 + t * (l1 - l0))

    return interpolate


# ---------------------------------------------------------------------------
# Mapper
# ---------------------------------------------------------------------------


def _trip_name(trip: Any) -> str:
    if isinstance(trip, Mapping):
        return str(trip.get("name", ""))
    return str(getattr(trip, "name", ""))


class ColorMapper:
    """Memoized color lookup by trip name."""

    def __init__(self, start: str = ANCHOR_START, end: str = ANCHOR_END) -> None:
        self._interpolate = interpolate_hcl(start, end)
        self._positions: dict[str, float] | None = None
        self._cache: dict[str, str] = {}

    @property
    def ready(self) -> bool:
        return self._positions is not None

    @property
    def domain(self) -> list[str]:
        return list(self._positions or ())

    def ensure(self, trips: Iterable[Any]) -> bool:
        """Build the name positions from *trips* unless already built.

        Returns:
            ``True`` if a computation happened.
        """
        if self._positions is not None:
            return False
        names = list(dict.fromkeys(_trip_name(trip) for trip in trips))
        step = 1.0 / max(1, len(names))
        self._positions = {name: i * step for i, name in enumerate(names)}
        return True

    def invalidate(self) -> None:
        self._positions = None
        self._cache.clear()

    def __call__(self, name: str) -> str:
        if self._positions is None:
            raise RuntimeError("ColorMapper.ensure() must be called before lookup.")
        color = self._cache.get(name)
        if color is None:
            position = self._positions.get(name)
            color = UNKNOWN_COLOR if position is None else self._interpolate(position)
            self._cache[name] = color
        return color
