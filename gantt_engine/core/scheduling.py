"""Callback scheduling for the chart.

The chart never blocks: recomputes are queued with ``call_soon`` right
after new input arrives, and the brush settle delay uses ``call_later``.
Which clock drives those callbacks depends on the host.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections import deque
from collections.abc import Callable
from typing import Protocol

Callback = Callable[[], object]


class Scheduler(Protocol):
    def call_soon(self, callback: Callback) -> None: ...

    def call_later(self, delay: float, callback: Callback) -> None: ...


class AsyncioScheduler:
    """Schedules onto an asyncio event loop (the running one by default)."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop if self._loop is not None else asyncio.get_running_loop()

    def call_soon(self, callback: Callback) -> None:
        self._get_loop().call_soon(callback)

    def call_later(self, delay: float, callback: Callback) -> None:
        self._get_loop().call_later(delay, callback)


class ImmediateScheduler:
    """Runs every callback synchronously and ignores delays.

    For hosts without an event loop whose surface can be cleared
    synchronously, such as script renderers and Streamlit reruns.
    """

    def call_soon(self, callback: Callback) -> None:
        callback()

    def call_later(self, delay: float, callback: Callback) -> None:
        callback()


class ManualScheduler:
    """Queues callbacks on a virtual clock that only moves when told to."""

    def __init__(self) -> None:
        self.now: float = 0.0
        self._soon: deque[Callback] = deque()
        self._timers: list[tuple[float, int, Callback]] = []
        self._seq = itertools.count()

    @property
    def pending(self) -> int:
        return len(self._soon) + len(self._timers)

    def call_soon(self, callback: Callback) -> None:
        self._soon.append(callback)

    def call_later(self, delay: float, callback: Callback) -> None:
        heapq.heappush(self._timers, (self.now + delay, next(self._seq), callback))

    def run_pending(self) -> int:
        """Drain the ``call_soon`` queue, including callbacks it enqueues."""
        ran = 0
        while self._soon:
            self._soon.popleft()()
            ran += 1
        return ran

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in order."""
        ran = self.run_pending()
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target:
            due, _, callback = heapq.heappop(self._timers)
            self.now = due
            callback()
            ran += 1 + self.run_pending()
        self.now = target
        return ran
