"""
Countdown clock driven by a Scheduler.

The clock ticks once per second while running. Elapsed time is always
recomputed from the scheduler's time delta since ``start()`` rather than
by counting ticks, so a late tick never makes the clock drift.
"""

import logging
from typing import Callable, Optional

from core.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class Clock:
    """
    Single-owner countdown clock.

    ``start``, ``stop`` and ``reset`` are idempotent: starting a running
    clock is ignored with a warning, stopping a stopped clock does nothing.

    Example:
        clock = Clock(scheduler)
        clock.on_tick(lambda elapsed: print(elapsed))
        clock.on_expire(lambda: print("time up"))
        clock.start(300)
    """

    def __init__(self, scheduler: Scheduler, tick_interval: float = 1.0):
        if tick_interval < 0.001:
            raise ValueError("tick_interval must be positive")
        self.scheduler = scheduler
        self._tick_interval = tick_interval

        self._time_limit: int = 0
        self._start_time: Optional[float] = None
        self._elapsed: int = 0
        self._running = False
        self._handle: Optional[TimerHandle] = None

        # Bumped on every start/stop so a tick that was already dequeued
        # can tell it belongs to an earlier run.
        self._generation = 0

        self._tick_callback: Optional[Callable[[int], None]] = None
        self._expire_callback: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # callback registration
    # ------------------------------------------------------------------

    def on_tick(self, callback: Optional[Callable[[int], None]]) -> None:
        """Register the per-second callback; receives elapsed seconds."""
        self._tick_callback = callback

    def on_expire(self, callback: Optional[Callable[[], None]]) -> None:
        """Register the callback fired once when the limit is reached."""
        self._expire_callback = callback

    # ------------------------------------------------------------------
    # control
    # ------------------------------------------------------------------

    def start(self, limit_seconds: int) -> None:
        if limit_seconds <= 0:
            raise ValueError(f"Time limit must be positive, got {limit_seconds}")
        if self._running:
            logger.warning("Clock already running; start ignored")
            return

        self._time_limit = int(limit_seconds)
        self._start_time = self.scheduler.now()
        self._elapsed = 0
        self._running = True
        self._generation += 1
        self._schedule_next()
        logger.info("Clock started: %ss", self._time_limit)

    def stop(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if not self._running:
            return
        self._elapsed = self._measure()
        self._running = False
        self._generation += 1
        logger.info("Clock stopped: elapsed %ss", self._elapsed)

    def reset(self) -> None:
        self.stop()
        self._start_time = None
        self._elapsed = 0
        self._tick_callback = None
        self._expire_callback = None
        logger.info("Clock reset")

    # ------------------------------------------------------------------
    # readings
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def time_limit(self) -> int:
        return self._time_limit

    @property
    def elapsed_seconds(self) -> int:
        if self._running:
            return self._measure()
        return self._elapsed

    @property
    def remaining_seconds(self) -> int:
        return max(0, self._time_limit - self.elapsed_seconds)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------

    def _elapsed_ms(self) -> int:
        # Whole milliseconds; absorbs float noise in the time delta
        return max(0, int(round((self.scheduler.now() - self._start_time) * 1000)))

    def _measure(self) -> int:
        if self._start_time is None:
            return 0
        return self._elapsed_ms() // 1000

    def _schedule_next(self) -> None:
        # Next interval boundary after now, anchored to the start time, so
        # a late tick neither drifts the schedule nor triggers catch-up ticks
        interval_ms = int(round(self._tick_interval * 1000))
        next_ms = (self._elapsed_ms() // interval_ms + 1) * interval_ms
        delay = max(0.0, self._start_time + next_ms / 1000.0 - self.scheduler.now())
        generation = self._generation
        self._handle = self.scheduler.call_later(delay, lambda: self._tick(generation))

    def _tick(self, generation: int) -> None:
        if generation != self._generation or not self._running:
            return
        self._handle = None
        self._elapsed = self._measure()

        if self._tick_callback is not None:
            self._tick_callback(self._elapsed)

        # The tick callback may have stopped or restarted the clock
        if generation != self._generation or not self._running:
            return

        if self._elapsed >= self._time_limit:
            self.stop()
            if self._expire_callback is not None:
                self._expire_callback()
            return

        self._schedule_next()
