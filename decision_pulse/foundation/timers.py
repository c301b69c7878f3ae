"""Cancellable timers and repeating tickers.

Every delayed callback in decision-pulse goes through a Scheduler so the
owner can cancel it.  Two schedulers are provided:

    - ThreadingScheduler: one daemon ``threading.Timer`` per callback.
      Works from any thread; callbacks run on the timer thread.
    - AsyncioScheduler:   ``loop.call_later`` on a running event loop.
      Must be used from the loop's thread.

IntervalTicker builds a repeating Ticker on top of any Scheduler by
re-arming itself after each tick.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import timedelta
from typing import Callable, Protocol

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    """A pending callback that can be cancelled."""

    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Protocol for one-shot delayed callbacks."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Run *callback* after *delay* seconds; return a cancellable handle."""
        ...


class Ticker(Protocol):
    """Protocol for a cancellable repeating task."""

    def start(self, callback: Callable[[], None], interval: timedelta) -> None:
        ...

    def stop(self) -> None:
        ...

    @property
    def is_running(self) -> bool:
        ...


# ── Schedulers ───────────────────────────────────────────────────────────────


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` instances."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(max(delay, 0.0), callback)
        timer.daemon = True
        timer.start()
        return timer


class AsyncioScheduler:
    """Scheduler backed by an asyncio event loop.

    Args:
        loop: The loop to schedule on.  Defaults to the running loop at
              the time of each call.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(max(delay, 0.0), callback)


# ── Ticker ───────────────────────────────────────────────────────────────────


class IntervalTicker:
    """Repeating ticker that re-arms a one-shot timer after every tick.

    Exactly one handle is pending while the ticker runs; ``stop()`` cancels
    it, so no tick fires after the ticker is stopped.
    """

    def __init__(self, scheduler: Scheduler | None = None) -> None:
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.RLock()
        self._handle: TimerHandle | None = None
        self._callback: Callable[[], None] | None = None
        self._interval: float = 0.0
        self._generation = 0

    def start(self, callback: Callable[[], None], interval: timedelta) -> None:
        """Start calling *callback* every *interval*; restarts if running."""
        seconds = interval.total_seconds()
        if seconds <= 0:
            raise ValueError("ticker interval must be positive")
        with self._lock:
            self._cancel_pending()
            self._callback = callback
            self._interval = seconds
            self._generation += 1
            self._arm(self._generation)
        logger.debug("Ticker started (interval=%.3fs)", seconds)

    def stop(self) -> None:
        """Cancel the pending tick.  Safe to call when not running."""
        with self._lock:
            was_running = self._callback is not None
            self._cancel_pending()
            self._callback = None
            self._generation += 1
        if was_running:
            logger.debug("Ticker stopped")

    @property
    def is_running(self) -> bool:
        return self._callback is not None

    # ── Internals ────────────────────────────────────────────────────────

    def _arm(self, generation: int) -> None:
        """Must be called while holding self._lock."""
        self._handle = self._scheduler.call_later(
            self._interval, lambda: self._fire(generation)
        )

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._callback is None:
                return
            callback = self._callback
        try:
            callback()
        finally:
            with self._lock:
                if generation == self._generation and self._callback is not None:
                    self._arm(generation)

    def _cancel_pending(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
