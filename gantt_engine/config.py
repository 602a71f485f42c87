"""Configuration loader for the Gantt timeline engine."""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from gantt_engine.core.models import ChartConfig, Padding

DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data"
CONFIG_PATH: Path = DATA_DIR / "chart.yaml"
SAMPLE_SCHEDULE_PATH: Path = DATA_DIR / "sample_schedule.json"

_NUMERIC_FIELDS: tuple[str, ...] = (
    "width",
    "height",
    "batch_height",
    "snap_minutes",
    "brush_move_ms",
    "brush_settle_ms",
    "axis_transition_ms",
    "padding_inner",
)


def config_from_mapping(data: dict[str, Any]) -> ChartConfig:
    """Build a :class:`ChartConfig` from a plain mapping.

    Raises:
        ValueError: On unknown keys, non-numeric sizes or invalid values.
    """
    known = {f.name for f in fields(ChartConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown chart setting(s): {', '.join(unknown)}")

    values: dict[str, Any] = dict(data)
    for name in _NUMERIC_FIELDS:
        if name in values:
            val = values[name]
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ValueError(
                    f"'{name}' must be numeric, got {type(val).__name__}"
                )

    padding = values.get("padding")
    if padding is not None:
        if not isinstance(padding, dict):
            raise ValueError("'padding' must be a mapping of top/right/bottom/left.")
        extra = sorted(set(padding) - {"top", "right", "bottom", "left"})
        if extra:
            raise ValueError(f"Unknown padding side(s): {', '.join(extra)}")
        for side, val in padding.items():
            if isinstance(val, bool) or not isinstance(val, (int, float)):
                raise ValueError(
                    f"'padding.{side}' must be numeric, got {type(val).__name__}"
                )
        values["padding"] = Padding(**{k: float(v) for k, v in padding.items()})

    return ChartConfig(**values)


def load_chart_config(path: Path | None = None) -> ChartConfig:
    """Load chart settings from a YAML file.

    The file holds a top-level ``chart`` mapping; missing keys keep their
    defaults.

    Args:
        path: Optional override for the config file path.

    Returns:
        The validated :class:`ChartConfig`.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If the file content is malformed or out of range.
    """
    config_path = path or CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Chart config not found: {config_path}")

    with open(config_path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{config_path}: expected a mapping at top level")
    chart = data.get("chart", {})
    if not isinstance(chart, dict):
        raise ValueError(f"{config_path}: 'chart' must be a mapping")

    return config_from_mapping(chart)
