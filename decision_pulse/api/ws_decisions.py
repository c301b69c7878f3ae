"""WebSocket endpoint for live decision tracking.

Path: /ws/decisions

Each JSON message is one full decision list (``{"decisions": [...]}``).
Every push counts as one tick: the list is evaluated and fed through the
connection's TerminalSubscription at once.  Between pushes the
subscription polls, re-evaluating the last pushed list against the clock,
so decisions that close by time are reported without a new push.

Frames sent to the client:
    {"status": "accepted", ...}  acknowledgement of a push
    {"status": "error", ...}     push was not valid JSON or failed validation
    {"status": "events", ...}    lifecycle events + live flash states

All frames go through one outbox drained by a single sender task.

Each connection owns its own TerminalSubscription and FlashDetector on an
AsyncioScheduler; both are disposed when the connection ends, whatever
the reason, so no timer outlives its socket.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from decision_pulse.api.decisions import EvaluateRequest
from decision_pulse.core.flash import FlashDetector
from decision_pulse.core.subscription import TerminalSubscription
from decision_pulse.core.terminal import TerminalSummary, evaluate_decisions
from decision_pulse.domain.decision import Decision, DecisionState
from decision_pulse.domain.flash import DecisionEvent
from decision_pulse.foundation.clock import utc_now
from decision_pulse.foundation.timers import AsyncioScheduler, IntervalTicker

logger = logging.getLogger(__name__)


def create_decision_stream_router(
    flash_duration: timedelta = timedelta(milliseconds=2000),
    min_change_threshold: float = 2.0,
    high_intensity_threshold: float = 10.0,
    change_threshold: float = 2.0,
    poll_interval: timedelta = timedelta(milliseconds=5000),
    quorum: int = 50,
) -> APIRouter:
    """Factory that wires the decision stream to flash / polling settings."""

    router = APIRouter()

    @router.websocket("/ws/decisions")
    async def stream_decisions(websocket: WebSocket) -> None:
        await websocket.accept()
        logger.info("Decision stream connected")

        outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        latest: list[Decision] = []

        def current_states() -> list[DecisionState]:
            return evaluate_decisions(latest, now=utc_now(), quorum=quorum)

        def publish(events: list[DecisionEvent]) -> None:
            outbox.put_nowait({
                "status": "events",
                "events": [e.model_dump(mode="json") for e in events],
                "flashes": [
                    f.model_dump(mode="json")
                    for f in subscription.flash.flash_states.values()
                ],
            })

        scheduler = AsyncioScheduler()
        subscription = TerminalSubscription(
            flash=FlashDetector(
                scheduler=scheduler,
                flash_duration=flash_duration,
                min_change_threshold=min_change_threshold,
                high_intensity_threshold=high_intensity_threshold,
            ),
            ticker=IntervalTicker(scheduler),
            poll_interval=poll_interval,
            change_threshold=change_threshold,
            on_events=publish,
            source=current_states,
        )

        async def sender() -> None:
            while True:
                frame = await outbox.get()
                await websocket.send_json(frame)

        sender_task = asyncio.create_task(sender())

        try:
            with subscription:
                subscription.start()
                while True:
                    raw = await websocket.receive_text()

                    # ── Validate at the boundary ─────────────────────────
                    try:
                        request = EvaluateRequest.model_validate_json(raw)
                    except ValidationError as exc:
                        logger.debug("Rejected decision push: %s", exc)
                        outbox.put_nowait({
                            "status": "error",
                            "detail": f"Decision list validation failed ({exc.error_count()} error(s))",
                        })
                        continue

                    # ── One push = one tick ──────────────────────────────
                    latest[:] = request.decisions
                    states = current_states()
                    outbox.put_nowait({
                        "status": "accepted",
                        "decision_count": len(states),
                        "summary": TerminalSummary.from_states(states).to_dict(),
                    })
                    subscription.update(states)

        except WebSocketDisconnect:
            logger.info("Decision stream disconnected")
        finally:
            sender_task.cancel()
            await asyncio.gather(sender_task, return_exceptions=True)

    return router
