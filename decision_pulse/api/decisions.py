"""REST endpoint for decision evaluation.

Path: POST /api/decisions/evaluate

Accepts a list of Decision records, derives status / urgency / trend for
each against one shared "now", and returns them in terminal order with
the header counts.  Stateless: nothing is retained between requests.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from decision_pulse.core.status import format_countdown
from decision_pulse.core.terminal import TerminalSummary, evaluate_decisions
from decision_pulse.domain.decision import Decision
from decision_pulse.foundation.clock import utc_now

logger = logging.getLogger(__name__)


class EvaluateRequest(BaseModel):
    decisions: list[Decision] = Field(default_factory=list)


def create_decisions_router(quorum: int = 50) -> APIRouter:
    """Factory that wires the evaluation endpoint to a quorum setting."""

    router = APIRouter(prefix="/api", tags=["decisions"])

    @router.post("/decisions/evaluate")
    async def evaluate(request: EvaluateRequest) -> dict[str, Any]:
        now = utc_now()
        states = evaluate_decisions(request.decisions, now=now, quorum=quorum)
        summary = TerminalSummary.from_states(states)
        logger.debug("Evaluated %d decision(s)", len(states))

        return {
            "evaluated_at": now.isoformat(),
            "decisions": [
                {
                    **state.model_dump(mode="json"),
                    "countdown": format_countdown(state.ends_at, now),
                }
                for state in states
            ],
            "summary": summary.to_dict(),
        }

    return router
