"""FlashDetector — transient, auto-expiring change signals keyed by item id.

Per item the detector is a two-state machine:

    idle ──trigger(|delta| >= min_change_threshold)──▶ flashing
    flashing ──flash_duration elapses──▶ idle
    flashing ──trigger(qualifying)──▶ flashing (timer reset, not stacked)

Classification of a qualifying delta:
    type       UP / DOWN / NEUTRAL by sign
    intensity  HIGH   if |delta| >= high_intensity_threshold
               MEDIUM if |delta| >= 2 * min_change_threshold
               LOW    otherwise

Resource model:
    Each live flash owns exactly one pending clear handle, held in a
    per-instance map.  clear_all() cancels every handle; dispose() does the
    same and refuses further triggers.  A clear that fires after being
    superseded is recognised by its generation token and ignored.

Thread-safety:
    All state is guarded by an RLock, so timer callbacks (which run on a
    timer thread with ThreadingScheduler) never interleave with callers.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from decision_pulse.domain.enums import FlashIntensity, FlashType
from decision_pulse.domain.flash import FlashState
from decision_pulse.foundation.clock import utc_now
from decision_pulse.foundation.timers import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)

DEFAULT_FLASH_DURATION = timedelta(milliseconds=2000)
DEFAULT_MIN_CHANGE_THRESHOLD = 2.0
DEFAULT_HIGH_INTENSITY_THRESHOLD = 10.0


class FlashDetectorDisposedError(RuntimeError):
    """Raised when a disposed FlashDetector is asked to flash again."""


class FlashDetector:
    """Per-instance flash state with cancellable auto-clear timers.

    Args:
        scheduler: Source of cancellable one-shot timers.
        flash_duration: How long a flash stays live after its last trigger.
        min_change_threshold: Smallest |delta| that triggers a flash.
        high_intensity_threshold: |delta| at which a flash is HIGH intensity.
        clock: Timestamp source for FlashState.timestamp (default utc_now).
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        flash_duration: timedelta = DEFAULT_FLASH_DURATION,
        min_change_threshold: float = DEFAULT_MIN_CHANGE_THRESHOLD,
        high_intensity_threshold: float = DEFAULT_HIGH_INTENSITY_THRESHOLD,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if flash_duration <= timedelta(0):
            raise ValueError("flash_duration must be positive")
        if min_change_threshold < 0:
            raise ValueError("min_change_threshold must be non-negative")
        if high_intensity_threshold < min_change_threshold:
            raise ValueError("high_intensity_threshold must be >= min_change_threshold")

        self._scheduler = scheduler or ThreadingScheduler()
        self._flash_duration = flash_duration
        self._min_change = min_change_threshold
        self._high_intensity = high_intensity_threshold
        self._clock = clock
        self._lock = threading.RLock()
        self._states: dict[str, FlashState] = {}
        self._timers: dict[str, TimerHandle] = {}
        self._generations: dict[str, int] = {}
        self._disposed = False

    # ── Public API ───────────────────────────────────────────────────────

    def trigger(self, item_id: str, delta: float) -> FlashState | None:
        """Report a value change for *item_id*.

        Returns the new FlashState, or None if the change is below the
        threshold (existing flashes are left untouched in that case).
        Raises FlashDetectorDisposedError once disposed, whatever the delta.
        """
        if self._disposed:
            raise FlashDetectorDisposedError("FlashDetector has been disposed")

        magnitude = abs(delta)
        if magnitude < self._min_change:
            return None

        state = FlashState(
            item_id=item_id,
            type=self._classify_type(delta),
            intensity=self._classify_intensity(magnitude),
            timestamp=self._clock() if self._clock else utc_now(),
        )

        with self._lock:
            if self._disposed:
                raise FlashDetectorDisposedError("FlashDetector has been disposed")

            self._cancel_timer(item_id)
            generation = self._generations.get(item_id, 0) + 1
            self._generations[item_id] = generation
            self._states[item_id] = state
            self._timers[item_id] = self._scheduler.call_later(
                self._flash_duration.total_seconds(),
                lambda: self._expire(item_id, generation),
            )

        logger.debug(
            "Flash %s on %s (delta=%.2f, intensity=%s)",
            state.type.value,
            item_id,
            delta,
            state.intensity.value,
        )
        return state

    def is_flashing(self, item_id: str) -> bool:
        with self._lock:
            return item_id in self._states

    def get(self, item_id: str) -> FlashState | None:
        with self._lock:
            return self._states.get(item_id)

    @property
    def flash_states(self) -> dict[str, FlashState]:
        """Copy of all live flashes keyed by item id."""
        with self._lock:
            return dict(self._states)

    @property
    def pending_timers(self) -> int:
        """Number of scheduled clears not yet fired or cancelled."""
        with self._lock:
            return len(self._timers)

    def clear_all(self) -> None:
        """Drop every flash and cancel every outstanding clear."""
        with self._lock:
            for handle in self._timers.values():
                handle.cancel()
            count = len(self._states)
            self._timers.clear()
            self._states.clear()
            # Bump generations so an in-flight clear cannot touch new flashes
            for item_id in self._generations:
                self._generations[item_id] += 1
        if count:
            logger.debug("Cleared %d flash state(s)", count)

    def dispose(self) -> None:
        """Release all timers and refuse further triggers.  Idempotent."""
        with self._lock:
            self.clear_all()
            self._disposed = True

    @property
    def disposed(self) -> bool:
        return self._disposed

    def __enter__(self) -> FlashDetector:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # ── Internals ────────────────────────────────────────────────────────

    def _expire(self, item_id: str, generation: int) -> None:
        with self._lock:
            if self._generations.get(item_id) != generation:
                return
            self._states.pop(item_id, None)
            self._timers.pop(item_id, None)
        logger.debug("Flash expired on %s", item_id)

    def _cancel_timer(self, item_id: str) -> None:
        """Must be called while holding self._lock."""
        handle = self._timers.pop(item_id, None)
        if handle is not None:
            handle.cancel()

    @staticmethod
    def _classify_type(delta: float) -> FlashType:
        if delta > 0:
            return FlashType.UP
        if delta < 0:
            return FlashType.DOWN
        return FlashType.NEUTRAL

    def _classify_intensity(self, magnitude: float) -> FlashIntensity:
        if magnitude >= self._high_intensity:
            return FlashIntensity.HIGH
        if magnitude >= self._min_change * 2:
            return FlashIntensity.MEDIUM
        return FlashIntensity.LOW
