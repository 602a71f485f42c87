"""Minimal synchronous event channels between the chart and its host."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Subscription:
    """Handle returned by :meth:`EventEmitter.subscribe`; dispose to detach."""

    __slots__ = ("_unsubscribe",)

    def __init__(self, unsubscribe: Callable[[], None]) -> None:
        self._unsubscribe: Callable[[], None] | None = unsubscribe

    @property
    def closed(self) -> bool:
        return self._unsubscribe is None

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None


class EventEmitter(Generic[T]):
    """Fan-out of payloads to subscribed callbacks, in subscription order."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._listeners: list[Callable[[T], object]] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, callback: Callable[[T], object]) -> Subscription:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return Subscription(unsubscribe)

    def emit(self, payload: T) -> int:
        """Deliver *payload* to every listener and return how many ran."""
        listeners = list(self._listeners)
        if self.name:
            logger.debug("%s -> %d listener(s): %r", self.name, len(listeners), payload)
        for callback in listeners:
            callback(payload)
        return len(listeners)


class KeyboardSource(EventEmitter[str]):
    """Key-up stream shared by every chart that listens for keys.

    Hosts feed it with :meth:`press`; charts hold a :class:`Subscription`
    for as long as they live.
    """

    def __init__(self) -> None:
        super().__init__("keyup")

    def press(self, key: str) -> int:
        return self.emit(key)
