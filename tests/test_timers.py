"""Tests for schedulers and the IntervalTicker.

FakeScheduler is a deterministic virtual-time scheduler shared with the
flash and subscription tests.
"""

import asyncio
import threading
import time
from datetime import timedelta

import pytest

from decision_pulse.foundation.timers import AsyncioScheduler, IntervalTicker, ThreadingScheduler


# ── Helpers ──────────────────────────────────────────────────────────────────

class _FakeHandle:
    def __init__(self, due: float, callback) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired


class FakeScheduler:
    """Virtual clock: callbacks run only when advance() passes their due time."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: list[_FakeHandle] = []

    def call_later(self, delay: float, callback) -> _FakeHandle:
        handle = _FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.handles if h.active and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.now = handle.due
            handle.fired = True
            handle.callback()
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for h in self.handles if h.active)


# ── IntervalTicker ───────────────────────────────────────────────────────────

class TestIntervalTicker:
    def test_ticks_at_interval(self) -> None:
        sched = FakeScheduler()
        ticker = IntervalTicker(sched)
        calls: list[float] = []
        ticker.start(lambda: calls.append(sched.now), timedelta(seconds=1))
        sched.advance(3.5)
        assert calls == [1.0, 2.0, 3.0]
        assert ticker.is_running

    def test_stop_cancels_pending_tick(self) -> None:
        sched = FakeScheduler()
        ticker = IntervalTicker(sched)
        calls: list[int] = []
        ticker.start(lambda: calls.append(1), timedelta(seconds=1))
        sched.advance(1.0)
        ticker.stop()
        sched.advance(10.0)
        assert len(calls) == 1
        assert not ticker.is_running
        assert sched.pending == 0

    def test_stop_when_idle_is_harmless(self) -> None:
        ticker = IntervalTicker(FakeScheduler())
        ticker.stop()
        assert not ticker.is_running

    def test_restart_keeps_a_single_pending_tick(self) -> None:
        sched = FakeScheduler()
        ticker = IntervalTicker(sched)
        first: list[int] = []
        second: list[int] = []
        ticker.start(lambda: first.append(1), timedelta(seconds=1))
        ticker.start(lambda: second.append(1), timedelta(seconds=2))
        assert sched.pending == 1
        sched.advance(4.0)
        assert first == []
        assert len(second) == 2

    def test_non_positive_interval_rejected(self) -> None:
        ticker = IntervalTicker(FakeScheduler())
        with pytest.raises(ValueError):
            ticker.start(lambda: None, timedelta(0))

    def test_failing_callback_still_rearms(self) -> None:
        sched = FakeScheduler()
        ticker = IntervalTicker(sched)
        calls: list[int] = []

        def boom() -> None:
            calls.append(1)
            raise RuntimeError("tick failed")

        ticker.start(boom, timedelta(seconds=1))
        with pytest.raises(RuntimeError):
            sched.advance(1.0)
        assert sched.pending == 1
        with pytest.raises(RuntimeError):
            sched.advance(1.0)
        assert len(calls) == 2

    def test_callback_can_stop_the_ticker(self) -> None:
        sched = FakeScheduler()
        ticker = IntervalTicker(sched)
        calls: list[int] = []

        def once() -> None:
            calls.append(1)
            ticker.stop()

        ticker.start(once, timedelta(seconds=1))
        sched.advance(5.0)
        assert calls == [1]
        assert sched.pending == 0


# ── Real schedulers ──────────────────────────────────────────────────────────

class TestThreadingScheduler:
    def test_callback_runs(self) -> None:
        fired = threading.Event()
        ThreadingScheduler().call_later(0.01, fired.set)
        assert fired.wait(2.0)

    def test_cancelled_callback_never_runs(self) -> None:
        fired = threading.Event()
        handle = ThreadingScheduler().call_later(0.05, fired.set)
        handle.cancel()
        time.sleep(0.15)
        assert not fired.is_set()


class TestAsyncioScheduler:
    @pytest.mark.asyncio
    async def test_ticker_on_event_loop(self) -> None:
        ticker = IntervalTicker(AsyncioScheduler())
        calls: list[int] = []
        ticker.start(lambda: calls.append(1), timedelta(milliseconds=10))
        await asyncio.sleep(0.1)
        ticker.stop()
        count = len(calls)
        await asyncio.sleep(0.05)
        assert count >= 2
        assert len(calls) == count

    @pytest.mark.asyncio
    async def test_explicit_loop(self) -> None:
        loop = asyncio.get_running_loop()
        done = asyncio.Event()
        AsyncioScheduler(loop).call_later(0.01, done.set)
        await asyncio.wait_for(done.wait(), timeout=1.0)
