"""Core layout and interaction modules for the Gantt timeline engine."""

from gantt_engine.core.axis import AxisModel, AxisRenderer, Tick, build_x_axis, build_y_axis
from gantt_engine.core.brush import (
    SNAP_GRANULARITY,
    BrushController,
    BrushEvent,
    RowBrush,
    snap_instant,
)
from gantt_engine.core.chart import GanttChart
from gantt_engine.core.color import ColorMapper, interpolate_hcl
from gantt_engine.core.events import EventEmitter, KeyboardSource, Subscription
from gantt_engine.core.models import (
    ChartConfig,
    CreateRequest,
    DeleteRequest,
    Driver,
    Padding,
    Snapshot,
    Trip,
)
from gantt_engine.core.normalizer import normalize_drivers, parse_instant
from gantt_engine.core.reconciler import Reconciler, ReconcileReport
from gantt_engine.core.scale import (
    BandScale,
    ScaleEngine,
    Scales,
    TimeScale,
    compute_extent,
)
from gantt_engine.core.scene import LAYER_NAMES, SceneNode, Surface
from gantt_engine.core.scheduling import (
    AsyncioScheduler,
    ImmediateScheduler,
    ManualScheduler,
    Scheduler,
)
from gantt_engine.core.selection import ChartSession, SelectionController

__all__ = [
    "AsyncioScheduler",
    "AxisModel",
    "AxisRenderer",
    "BandScale",
    "BrushController",
    "BrushEvent",
    "ChartConfig",
    "ChartSession",
    "ColorMapper",
    "CreateRequest",
    "DeleteRequest",
    "Driver",
    "EventEmitter",
    "GanttChart",
    "ImmediateScheduler",
    "KeyboardSource",
    "LAYER_NAMES",
    "ManualScheduler",
    "Padding",
    "ReconcileReport",
    "Reconciler",
    "RowBrush",
    "SNAP_GRANULARITY",
    "ScaleEngine",
    "Scales",
    "SceneNode",
    "Scheduler",
    "SelectionController",
    "Snapshot",
    "Subscription",
    "Surface",
    "Tick",
    "TimeScale",
    "Trip",
    "build_x_axis",
    "build_y_axis",
    "compute_extent",
    "interpolate_hcl",
    "normalize_drivers",
    "parse_instant",
    "snap_instant",
]
