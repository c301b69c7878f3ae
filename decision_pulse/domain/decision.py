"""Decision models — the contract between the host's data layer and the engine.

A Decision is a vote or election being tracked for live status.  The host
supplies it (including any snapshot history it chose to keep); the engine
never mutates or persists it.

DecisionState is the derived view-model.  It is recomputed from scratch on
every evaluation and carries no identity beyond the decision id.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from decision_pulse.domain.enums import DecisionKind, DecisionStatus, TrendDirection
from decision_pulse.foundation.clock import ensure_utc


# ── Tallies ──────────────────────────────────────────────────────────────────

class VoteTally(BaseModel):
    """Support / oppose / abstain counts.  The total may legitimately be zero."""

    support: int = Field(0, ge=0)
    oppose: int = Field(0, ge=0)
    abstain: int = Field(0, ge=0)

    model_config = {"frozen": True}

    @property
    def total(self) -> int:
        return self.support + self.oppose + self.abstain


class VoteSnapshot(BaseModel):
    """A historical tally captured by the host at *timestamp*."""

    timestamp: datetime
    votes: VoteTally

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class VoteEntry(BaseModel):
    """A single raw ballot as delivered by the data layer."""

    vote: str = Field(..., min_length=1, max_length=32)
    is_indication: bool = Field(
        default=False,
        description="Non-binding indication vote cast before the agenda item opens",
    )

    model_config = {"frozen": True}


# ── Decision ─────────────────────────────────────────────────────────────────

class Decision(BaseModel):
    """A vote or election supplied by the host.  Read-only to the engine."""

    decision_id: str = Field(..., min_length=1, max_length=256)
    kind: DecisionKind
    title: str = Field(default="", max_length=512)
    ends_at: datetime = Field(..., description="When voting closes (UTC)")
    result: Optional[DecisionStatus] = Field(
        default=None,
        description="Terminal result, if the host already knows it",
    )
    votes: Optional[VoteTally] = Field(
        default=None,
        description="Current tally (votes only)",
    )
    voted_count: int = Field(default=0, ge=0, description="Ballots cast (elections)")
    eligible_count: Optional[int] = Field(
        default=None,
        ge=0,
        description="Members entitled to vote, used as the turnout base",
    )
    completed: bool = Field(
        default=False,
        description="Closed by the host regardless of the clock",
    )
    snapshots: list[VoteSnapshot] = Field(
        default_factory=list,
        description="Caller-supplied tally history, oldest first",
    )

    model_config = {"frozen": True}

    @field_validator("ends_at")
    @classmethod
    def ends_at_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("result")
    @classmethod
    def result_must_be_terminal(cls, v: DecisionStatus | None) -> DecisionStatus | None:
        if v is not None and not v.is_terminal:
            raise ValueError(f"result must be a terminal status, got {v.value!r}")
        return v


# ── Derived state ────────────────────────────────────────────────────────────

class TrendData(BaseModel):
    """Signed shift in support share, in whole percentage points."""

    direction: TrendDirection = TrendDirection.STABLE
    percentage: int = 0

    model_config = {"frozen": True}


class DecisionState(BaseModel):
    """Derived, ephemeral view of a decision at one evaluation instant."""

    decision_id: str
    kind: DecisionKind
    title: str = ""
    ends_at: datetime
    status: DecisionStatus
    is_closed: bool
    is_closing_soon: bool
    is_urgent: bool
    trend: TrendData = Field(default_factory=TrendData)
    support_percentage: Optional[int] = Field(
        default=None, description="Share of support in percent (votes only)",
    )
    voted_count: int = 0
    turnout: Optional[int] = Field(
        default=None, description="Percent of eligible members who voted",
    )
    quorum_reached: Optional[bool] = None

    model_config = {"frozen": True}
