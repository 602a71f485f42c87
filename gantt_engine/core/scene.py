"""In-memory vector scene graph the chart draws into.

A :class:`Surface` owns a tree of :class:`SceneNode` handles organised
into the named layers the chart expects.  Nodes carry SVG-like
attributes, classes, optional bound data and event handlers; exporters
(see :mod:`gantt_engine.plotting`) walk the tree to produce real output.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

LAYER_NAMES: tuple[str, ...] = (
    "rootLayer",
    "axisLayer",
    "xAxisLayer",
    "yAxisLayer",
    "linesLayer",
    "ganttLayer",
    "tripsLayer",
)

# layer -> parent layer (None = svg root)
_LAYER_PARENTS: dict[str, str | None] = {
    "rootLayer": None,
    "axisLayer": "rootLayer",
    "xAxisLayer": "axisLayer",
    "yAxisLayer": "axisLayer",
    "linesLayer": "rootLayer",
    "ganttLayer": "rootLayer",
    "tripsLayer": "ganttLayer",
}


class SceneNode:
    """A single addressable element of the scene."""

    __slots__ = (
        "tag",
        "attrs",
        "classes",
        "text",
        "data",
        "children",
        "parent",
        "handlers",
        "offset",
        "transition_ms",
        "removed",
    )

    def __init__(self, tag: str, parent: SceneNode | None = None) -> None:
        self.tag: str = tag
        self.attrs: dict[str, Any] = {}
        self.classes: set[str] = set()
        self.text: str | None = None
        self.data: Any = None
        self.children: list[SceneNode] = []
        self.parent: SceneNode | None = parent
        self.handlers: dict[str, Callable[..., Any]] = {}
        self.offset: tuple[float, float] = (0.0, 0.0)
        self.transition_ms: int = 0
        self.removed: bool = False

    def __repr__(self) -> str:
        classes = ".".join(sorted(self.classes))
        return f"SceneNode({self.tag}{'.' + classes if classes else ''})"

    # -- construction ---------------------------------------------------------

    def append(self, tag: str) -> SceneNode:
        child = SceneNode(tag, parent=self)
        self.children.append(child)
        return child

    def attr(self, name: str, value: Any) -> SceneNode:
        self.attrs[name] = value
        return self

    def get(self, name: str, default: Any = None) -> Any:
        return self.attrs.get(name, default)

    def classed(self, name: str, on: bool = True) -> SceneNode:
        if on:
            self.classes.add(name)
        else:
            self.classes.discard(name)
        return self

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def set_text(self, text: str) -> SceneNode:
        self.text = text
        return self

    def translate(self, x: float, y: float) -> SceneNode:
        self.offset = (float(x), float(y))
        self.attrs["transform"] = f"translate({x}, {y})"
        return self

    def transition(self, duration_ms: int) -> SceneNode:
        """Record that the latest attribute changes animate over *duration_ms*."""
        self.transition_ms = int(duration_ms)
        return self

    # -- events ---------------------------------------------------------------

    def on(self, event: str, handler: Callable[..., Any] | None) -> SceneNode:
        if handler is None:
            self.handlers.pop(event, None)
        else:
            self.handlers[event] = handler
        return self

    def dispatch(self, event: str, *args: Any) -> bool:
        """Invoke the handler registered for *event*, bubbling to ancestors."""
        node: SceneNode | None = self
        while node is not None:
            handler = node.handlers.get(event)
            if handler is not None:
                handler(*args)
                return True
            node = node.parent
        return False

    # -- traversal / removal --------------------------------------------------

    def walk(self) -> Iterator[SceneNode]:
        yield self
        for child in self.children:
            yield from child.walk()

    def select_all(self, class_name: str) -> list[SceneNode]:
        return [
            node
            for node in self.walk()
            if node is not self and node.has_class(class_name)
        ]

    def remove(self) -> None:
        """Detach from the tree and drop every handler in the subtree."""
        for node in self.walk():
            node.handlers.clear()
            node.removed = True
        if self.parent is not None and self in self.parent.children:
            self.parent.children.remove(self)
        self.parent = None

    def absolute_offset(self) -> tuple[float, float]:
        x, y = 0.0, 0.0
        node: SceneNode | None = self
        while node is not None:
            x += node.offset[0]
            y += node.offset[1]
            node = node.parent
        return x, y


class Surface:
    """Root ``svg`` node plus the chart's named layers."""

    def __init__(self) -> None:
        self.root = SceneNode("svg")
        self._layers: dict[str, SceneNode] = {}
        for name in LAYER_NAMES:
            parent_name = _LAYER_PARENTS[name]
            parent = self.root if parent_name is None else self._layers[parent_name]
            self._layers[name] = parent.append("g").attr("id", name)

    def layer(self, name: str) -> SceneNode:
        try:
            return self._layers[name]
        except KeyError:
            raise KeyError(
                f"Unknown layer {name!r}; expected one of {LAYER_NAMES}"
            ) from None

    def set_view_box(self, width: float, height: float) -> None:
        self.root.attr("viewBox", f"0 0 {width} {height}")
        self.root.attr("width", width).attr("height", height)
