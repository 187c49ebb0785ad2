"""
Scheduler abstraction for cooperative, single-threaded timing.

All timing in a session (clock ticks, the flip resolution delay) goes
through a Scheduler, so the same controller can run on a real asyncio
event loop or on virtual time inside tests.
"""

import asyncio
import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional

# Due times within this margin of the target count as due
_EPSILON = 1e-9


class TimerHandle(ABC):
    """Handle for a scheduled callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running. Safe to call more than once."""
        pass

    @abstractmethod
    def cancelled(self) -> bool:
        pass


class Scheduler(ABC):
    """
    Abstract base class for callback schedulers.

    Implementations never block: ``call_later`` only registers a
    continuation which runs on the same logical thread as every other
    session operation.
    """

    @abstractmethod
    def now(self) -> float:
        """
        Return the scheduler's monotonic time in seconds.

        Returns:
            Current time as a float; only differences are meaningful
        """
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        """
        Run ``callback`` once after ``delay`` seconds.

        Args:
            delay: Delay in seconds (negative values are treated as zero)
            callback: Zero-argument callable

        Returns:
            A handle that can cancel the pending call
        """
        pass


class _AsyncioHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    def cancelled(self) -> bool:
        return self._handle.cancelled()


class AsyncioScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    Without an explicit loop it must be created from inside a running
    coroutine.
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop

    def now(self) -> float:
        return self._loop.time()

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        return _AsyncioHandle(self._loop.call_later(max(0.0, delay), callback))


class _ManualHandle(TimerHandle):
    def __init__(self, when: float, seq: int, callback: Callable[[], Any]):
        self.when = when
        self.seq = seq
        self.callback = callback
        self._cancelled = False

    def __lt__(self, other: "_ManualHandle") -> bool:
        return (self.when, self.seq) < (other.when, other.seq)

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """
    Virtual-time scheduler.

    Time only moves when ``advance()`` is called. Due callbacks run in
    order of their due time (ties in scheduling order), and the clock is
    set to each callback's due time while it runs, so callbacks observe
    exact timestamps.

    Example:
        scheduler = ManualScheduler()
        scheduler.call_later(0.7, resolve)
        scheduler.advance(1.0)  # runs resolve() at t=0.7
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._queue: List[_ManualHandle] = []
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        handle = _ManualHandle(self._now + max(0.0, delay), next(self._counter), callback)
        heapq.heappush(self._queue, handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of scheduled callbacks that have not run or been cancelled."""
        return sum(1 for h in self._queue if not h.cancelled())

    def advance(self, seconds: float) -> int:
        """
        Move virtual time forward, running every callback that falls due.

        Callbacks scheduled by other callbacks run too if they fall inside
        the window.

        Args:
            seconds: Amount of virtual time to advance (>= 0)

        Returns:
            Number of callbacks executed
        """
        if seconds < 0:
            raise ValueError("Cannot advance a scheduler backwards")
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0].when <= target + _EPSILON:
            handle = heapq.heappop(self._queue)
            if handle.cancelled():
                continue
            self._now = max(self._now, handle.when)
            handle.callback()
            ran += 1
        self._now = max(self._now, target)
        return ran
