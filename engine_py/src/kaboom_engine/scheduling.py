"""
Deferred callbacks with cancellation tokens.

The counter-play window is the only timer in a match. Both schedulers hand
back a ScheduledTask; cancelling it guarantees the callback never runs.
"""

import asyncio
import heapq
import itertools
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class ScheduledTask(ABC):
    """Cancellation token for a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        pass

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):

    @abstractmethod
    def now(self) -> float:
        """Wall-clock seconds, used for the resolve_at deadlines sent to clients."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        pass


class _HandleTask(ScheduledTask):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    @property
    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """Schedules on an asyncio loop; defaults to the loop running at call time."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def now(self) -> float:
        return time.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        loop = self._loop or asyncio.get_running_loop()
        return _HandleTask(loop.call_later(delay, callback))


class _ManualTask(ScheduledTask):
    def __init__(self, due: float, callback: Callable[[], None]):
        self.due = due
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Fake clock for deterministic tests and simulations.

    Time only moves when advance() is called; due callbacks run in deadline
    order on the caller's thread.
    """

    def __init__(self, start: float = 1_000.0):
        self._now = start
        self._queue: List[Tuple[float, int, _ManualTask]] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        task = _ManualTask(self._now + delay, callback)
        heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every callback that falls due. Returns how many ran."""
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if task.cancelled:
                continue
            task.callback()
            ran += 1
        self._now = target
        return ran

    @property
    def pending_count(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)
