"""Flash and lifecycle-event models.

A FlashState is a transient signal that an item changed significantly.
It is owned exclusively by a FlashDetector and expires on its own.

A DecisionEvent records one lifecycle transition observed by the
terminal subscription.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from decision_pulse.domain.decision import DecisionState
from decision_pulse.domain.enums import DecisionEventKind, FlashIntensity, FlashType


class FlashState(BaseModel):
    """Immutable description of a live flash on one item."""

    item_id: str
    type: FlashType
    intensity: FlashIntensity
    timestamp: datetime = Field(..., description="When the flash was (re)triggered")

    model_config = {"frozen": True}


class DecisionEvent(BaseModel):
    """One lifecycle event emitted by the terminal subscription."""

    kind: DecisionEventKind
    decision_id: str
    state: DecisionState
    previous_support: Optional[int] = Field(
        default=None,
        description="Support percentage before the change (CHANGED events only)",
    )

    model_config = {"frozen": True}
