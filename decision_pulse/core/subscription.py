"""TerminalSubscription — lifecycle events from successive decision lists.

Each evaluation (one poll tick or one pushed update) is compared against a
keyed snapshot of the previous evaluation:

    present now, absent before          → NEW
    present in both, |Δ support| >= 2   → CHANGED  (+ flash on the delta)
    present in both, closed false→true  → CLOSED
    absent now, present before          → CLOSED   (unless already seen closed)

The previous snapshot is replaced as a whole by the current one before
any callback runs.  Re-processing an unchanged list therefore emits
nothing, and no transition is ever reported twice, even when a callback
raises part-way through a batch.

Polling is delegated to an injected Ticker and is independent of the
comparison: ``update()`` processes synchronously whenever it receives a
new list object, so pushed updates never wait for the next tick.

Thread-safety:
    One RLock per instance serialises ticks and pushes.  Callbacks run
    while the lock is held and must not call back into the subscription
    from another thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Callable, Optional

from decision_pulse.core.flash import FlashDetector
from decision_pulse.domain.decision import DecisionState
from decision_pulse.domain.enums import DecisionEventKind
from decision_pulse.domain.flash import DecisionEvent
from decision_pulse.foundation.clock import utc_now
from decision_pulse.foundation.timers import IntervalTicker, Ticker

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = timedelta(milliseconds=5000)
DEFAULT_CHANGE_THRESHOLD = 2

NewDecisionCallback = Callable[[DecisionState], None]
DecisionChangeCallback = Callable[[DecisionState, Optional[int]], None]
DecisionClosedCallback = Callable[[DecisionState], None]
EventsCallback = Callable[[list[DecisionEvent]], None]
DecisionSource = Callable[[], Sequence[DecisionState]]


class TerminalSubscription:
    """Observes decision lists over time and raises lifecycle callbacks.

    Args:
        flash: FlashDetector that receives support deltas.  A private one
               is created when omitted; it is disposed with the subscription.
        ticker: Ticker that drives polling.  Defaults to an IntervalTicker.
        poll_interval: Cadence of the polling tick.
        change_threshold: Smallest support change (points) reported as CHANGED.
        on_new_decision: Called with the state of every newly seen decision.
        on_decision_change: Called with (state, previous_support).
        on_decision_closed: Called with the state of every decision that closed.
        on_events: Called once per evaluation with all events it produced.
        source: Polled on every tick for a fresh decision list.  Without a
                source a tick re-processes the last list received.
        enabled: When False, update() stores lists without processing them.
    """

    def __init__(
        self,
        flash: FlashDetector | None = None,
        ticker: Ticker | None = None,
        poll_interval: timedelta = DEFAULT_POLL_INTERVAL,
        change_threshold: float = DEFAULT_CHANGE_THRESHOLD,
        on_new_decision: NewDecisionCallback | None = None,
        on_decision_change: DecisionChangeCallback | None = None,
        on_decision_closed: DecisionClosedCallback | None = None,
        on_events: EventsCallback | None = None,
        source: DecisionSource | None = None,
        enabled: bool = True,
    ) -> None:
        if poll_interval <= timedelta(0):
            raise ValueError("poll_interval must be positive")

        self.flash = flash or FlashDetector()
        self._ticker = ticker or IntervalTicker()
        self._poll_interval = poll_interval
        self._change_threshold = change_threshold
        self._on_new = on_new_decision
        self._on_change = on_decision_change
        self._on_closed = on_decision_closed
        self._on_events = on_events
        self._source = source
        self._enabled = enabled
        self._lock = threading.RLock()
        self._decisions: Sequence[DecisionState] = ()
        self._previous: dict[str, DecisionState] = {}
        self._last_update: datetime | None = None
        self._disposed = False

    # ── Input ────────────────────────────────────────────────────────────

    def update(self, decisions: Sequence[DecisionState]) -> list[DecisionEvent]:
        """Replace the observed list; process it at once if it is a new object."""
        with self._lock:
            changed = decisions is not self._decisions
            self._decisions = decisions
            if changed and self._enabled and not self._disposed:
                return self._process_locked()
            return []

    def process(self) -> list[DecisionEvent]:
        """Compare the current list against the previous snapshot."""
        with self._lock:
            if not self._enabled or self._disposed:
                return []
            return self._process_locked()

    refresh = process

    # ── Polling ──────────────────────────────────────────────────────────

    def start(self) -> None:
        """Begin polling at the configured interval."""
        if self._disposed:
            raise RuntimeError("TerminalSubscription has been disposed")
        if self._enabled:
            self._ticker.start(self._tick, self._poll_interval)
            logger.info(
                "Terminal subscription polling every %.1fs",
                self._poll_interval.total_seconds(),
            )

    def stop(self) -> None:
        self._ticker.stop()

    def _tick(self) -> None:
        if self._source is not None:
            self.update(self._source())
        else:
            self.process()

    def dispose(self) -> None:
        """Stop polling and release every flash timer.  Idempotent."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
        self._ticker.stop()
        self.flash.dispose()
        logger.debug("Terminal subscription disposed")

    def __enter__(self) -> TerminalSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.dispose()

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def is_subscribed(self) -> bool:
        return self._enabled and not self._disposed

    @property
    def is_polling(self) -> bool:
        return self._ticker.is_running

    @property
    def last_update(self) -> datetime | None:
        return self._last_update

    @property
    def tracked_ids(self) -> list[str]:
        with self._lock:
            return list(self._previous)

    # ── Comparison ───────────────────────────────────────────────────────

    def _process_locked(self) -> list[DecisionEvent]:
        """Must be called while holding self._lock."""
        previous_map = self._previous
        current_map = {d.decision_id: d for d in self._decisions}
        events: list[DecisionEvent] = []

        for decision in current_map.values():
            previous = previous_map.get(decision.decision_id)

            if previous is None:
                events.append(DecisionEvent(
                    kind=DecisionEventKind.NEW,
                    decision_id=decision.decision_id,
                    state=decision,
                ))
                continue

            previous_support = previous.support_percentage or 0
            current_support = decision.support_percentage or 0
            change = current_support - previous_support
            if abs(change) >= self._change_threshold:
                self.flash.trigger(decision.decision_id, change)
                events.append(DecisionEvent(
                    kind=DecisionEventKind.CHANGED,
                    decision_id=decision.decision_id,
                    state=decision,
                    previous_support=previous_support,
                ))

            if not previous.is_closed and decision.is_closed:
                events.append(self._closed_event(decision))

        for decision_id, previous in previous_map.items():
            if decision_id not in current_map and not previous.is_closed:
                # Disappearance counts as closure
                events.append(self._closed_event(previous))

        # Snapshot is committed before any callback runs
        self._previous = current_map
        self._last_update = utc_now()

        if events:
            logger.debug("Processed %d decision(s): %d event(s)", len(current_map), len(events))
            self._dispatch(events)
        return events

    @staticmethod
    def _closed_event(decision: DecisionState) -> DecisionEvent:
        return DecisionEvent(
            kind=DecisionEventKind.CLOSED,
            decision_id=decision.decision_id,
            state=decision,
        )

    def _dispatch(self, events: list[DecisionEvent]) -> None:
        """Run the host callbacks for *events*.  Exceptions propagate."""
        for event in events:
            if event.kind == DecisionEventKind.NEW and self._on_new is not None:
                self._on_new(event.state)
            elif event.kind == DecisionEventKind.CHANGED and self._on_change is not None:
                self._on_change(event.state, event.previous_support)
            elif event.kind == DecisionEventKind.CLOSED and self._on_closed is not None:
                self._on_closed(event.state)
        if self._on_events is not None:
            self._on_events(events)


class SingleDecisionSubscription:
    """Watches one decision's support value and reports each change.

    The first observed value only seeds the watcher; every later value
    that differs from the previous one calls ``on_update(new, old)``.
    """

    def __init__(
        self,
        decision_id: str,
        on_update: Callable[[int, int], None] | None = None,
    ) -> None:
        self.decision_id = decision_id
        self._on_update = on_update
        self._previous: int | None = None

    def update_support(self, new_support: int) -> bool:
        """Record *new_support*; return True if it was reported as a change."""
        old_support = self._previous
        self._previous = new_support
        if old_support is None or old_support == new_support:
            return False
        if self._on_update is not None:
            self._on_update(new_support, old_support)
        return True

    @property
    def current_support(self) -> int | None:
        return self._previous
