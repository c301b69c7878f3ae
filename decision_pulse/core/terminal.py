"""Decision terminal evaluation — Decision records → DecisionState view-models.

Design principles:
    1. Pure functions: a Decision plus "now" in, a fresh DecisionState out.
    2. No mutation of the input, no retained state between calls.
    3. Status, urgency and trend come from core.status and core.trend so
       every consumer sees the same thresholds.

Closure:
    A decision is closed when its end time has passed OR the host marked
    it completed.  Closed votes resolve to the host-supplied result, else
    TIED / PASSED / FAILED from the tally; closed elections resolve to
    ELECTED.  Closed decisions are never urgent or closing soon.

Terminal ordering:
    Open decisions first, soonest deadline first; then closed decisions,
    most recently closed first.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime

from decision_pulse.core.status import is_closed, is_closing_soon, is_urgent, resolve_status
from decision_pulse.core.trend import (
    DEFAULT_QUORUM,
    calculate_support_percentage,
    calculate_turnout,
    is_quorum_reached,
    trend_with_volatility,
)
from decision_pulse.domain.decision import (
    Decision,
    DecisionState,
    TrendData,
    VoteEntry,
    VoteTally,
)
from decision_pulse.domain.enums import DecisionKind, DecisionStatus
from decision_pulse.foundation.clock import utc_now

logger = logging.getLogger(__name__)

SUPPORT_VOTES = frozenset({"yes", "accept"})
OPPOSE_VOTES = frozenset({"no", "reject"})
ABSTAIN_VOTES = frozenset({"abstain"})


# ── Tallying ─────────────────────────────────────────────────────────────────

def tally_entries(entries: Iterable[VoteEntry]) -> tuple[VoteTally, VoteTally]:
    """Split raw ballots into (binding tally, indication tally).

    Unrecognised ballot values are ignored.
    """
    counts = {True: [0, 0, 0], False: [0, 0, 0]}
    for entry in entries:
        vote = entry.vote.lower()
        bucket = counts[entry.is_indication]
        if vote in SUPPORT_VOTES:
            bucket[0] += 1
        elif vote in OPPOSE_VOTES:
            bucket[1] += 1
        elif vote in ABSTAIN_VOTES:
            bucket[2] += 1
        else:
            logger.debug("Ignoring unrecognised ballot value %r", entry.vote)

    actual, indication = counts[False], counts[True]
    return (
        VoteTally(support=actual[0], oppose=actual[1], abstain=actual[2]),
        VoteTally(support=indication[0], oppose=indication[1], abstain=indication[2]),
    )


def result_from_tally(tally: VoteTally) -> DecisionStatus:
    """Terminal result of a closed vote, decided by support vs oppose."""
    if tally.support == tally.oppose:
        return DecisionStatus.TIED
    if tally.support > tally.oppose:
        return DecisionStatus.PASSED
    return DecisionStatus.FAILED


# ── Evaluation ───────────────────────────────────────────────────────────────

def _closed_result(decision: Decision) -> DecisionStatus:
    if decision.result is not None:
        return decision.result
    if decision.kind == DecisionKind.ELECTION:
        return DecisionStatus.ELECTED
    return result_from_tally(decision.votes or VoteTally())


def evaluate_decision(
    decision: Decision,
    now: datetime | None = None,
    quorum: int = DEFAULT_QUORUM,
) -> DecisionState:
    """Derive the live state of *decision* at *now*."""
    now = now or utc_now()
    ended = decision.completed or is_closed(decision.ends_at, now)

    # A host-completed decision may still have time left on the clock
    status = _closed_result(decision) if ended else resolve_status(decision.ends_at, now=now)

    if decision.votes is not None:
        trend = trend_with_volatility(decision.votes, decision.snapshots)
        support = calculate_support_percentage(decision.votes)
        voted = decision.votes.total
    else:
        trend = TrendData()
        support = None
        voted = decision.voted_count

    turnout = None
    quorum_reached = None
    if decision.eligible_count is not None:
        turnout = calculate_turnout(voted, decision.eligible_count)
        quorum_reached = is_quorum_reached(turnout, quorum)

    return DecisionState(
        decision_id=decision.decision_id,
        kind=decision.kind,
        title=decision.title,
        ends_at=decision.ends_at,
        status=status,
        is_closed=ended,
        is_closing_soon=not ended and is_closing_soon(decision.ends_at, now),
        is_urgent=not ended and is_urgent(decision.ends_at, now),
        trend=trend,
        support_percentage=support,
        voted_count=voted,
        turnout=turnout,
        quorum_reached=quorum_reached,
    )


def evaluate_decisions(
    decisions: Iterable[Decision],
    now: datetime | None = None,
    quorum: int = DEFAULT_QUORUM,
) -> list[DecisionState]:
    """Evaluate every decision against one shared "now", in terminal order."""
    now = now or utc_now()
    return sort_for_terminal(evaluate_decision(d, now, quorum) for d in decisions)


def sort_for_terminal(states: Iterable[DecisionState]) -> list[DecisionState]:
    """Open decisions by soonest deadline, then closed by latest deadline."""
    states = list(states)
    open_states = sorted((s for s in states if not s.is_closed), key=lambda s: s.ends_at)
    closed_states = sorted(
        (s for s in states if s.is_closed), key=lambda s: s.ends_at, reverse=True,
    )
    return open_states + closed_states


# ── Aggregates ───────────────────────────────────────────────────────────────

class TerminalSummary:
    """Counts shown in the terminal header."""

    __slots__ = ("urgent_count", "active_count", "recently_closed_count")

    def __init__(
        self,
        urgent_count: int = 0,
        active_count: int = 0,
        recently_closed_count: int = 0,
    ) -> None:
        self.urgent_count = urgent_count
        self.active_count = active_count
        self.recently_closed_count = recently_closed_count

    @classmethod
    def from_states(cls, states: Sequence[DecisionState]) -> TerminalSummary:
        return cls(
            urgent_count=sum(1 for s in states if not s.is_closed and s.is_urgent),
            active_count=sum(1 for s in states if not s.is_closed),
            recently_closed_count=sum(1 for s in states if s.is_closed),
        )

    def to_dict(self) -> dict:
        return {
            "urgent_count": self.urgent_count,
            "active_count": self.active_count,
            "recently_closed_count": self.recently_closed_count,
        }
