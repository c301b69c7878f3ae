"""Content models for the discovery feed.

ContentItem and UserContext are supplied by the host.  ScoredContent and
ContentReason are value objects produced by the scorer and the reason
attributor; a new one is built on every pass, never mutated in place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from decision_pulse.domain.enums import ContentType, ReasonCategory
from decision_pulse.foundation.clock import ensure_utc


class ContentItem(BaseModel):
    """A piece of content eligible for the discovery feed."""

    content_id: str = Field(..., min_length=1, max_length=256)
    type: ContentType
    author_id: Optional[str] = None
    group_id: Optional[str] = None
    topics: list[str] = Field(default_factory=list)
    engagement_score: float = Field(default=0.0, description="Lifetime engagement")
    recent_engagement_velocity: float = Field(
        default=0.0, description="Engagement per unit time over the recent window",
    )
    created_at: Optional[datetime] = None
    is_user_content: bool = False

    model_config = {"frozen": True}

    @field_validator("topics")
    @classmethod
    def topics_are_a_set(cls, v: list[str]) -> list[str]:
        # Order-preserving de-duplication
        return list(dict.fromkeys(v))

    @field_validator("created_at")
    @classmethod
    def created_at_must_be_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


class Interaction(BaseModel):
    entity_id: str
    type: str

    model_config = {"frozen": True}


class UserContext(BaseModel):
    """What the engine knows about the viewer."""

    user_id: str = Field(..., min_length=1, max_length=256)
    subscribed_group_ids: list[str] = Field(default_factory=list)
    followed_topics: list[str] = Field(default_factory=list)
    recent_interactions: list[Interaction] = Field(default_factory=list)

    model_config = {"frozen": True}


class ScoreBreakdown(BaseModel):
    """Weighted contribution of each factor to the total score."""

    trending: float = 0.0
    topic_relevance: float = 0.0
    freshness: float = 0.0
    quality: float = 0.0
    user_content: float = 0.0

    model_config = {"frozen": True}

    @property
    def total(self) -> float:
        return (
            self.trending
            + self.topic_relevance
            + self.freshness
            + self.quality
            + self.user_content
        )


class ScoredContent(BaseModel):
    content: ContentItem
    score: float = Field(..., ge=0.0)
    score_breakdown: ScoreBreakdown

    model_config = {"frozen": True}


class ContentReason(BaseModel):
    """The single winning explanation for why an item is in the feed."""

    category: ReasonCategory
    context: Optional[str] = Field(
        default=None, description="Extra detail, e.g. the matching topic",
    )
    priority: int = Field(..., description="Higher means a stronger reason")

    model_config = {"frozen": True}
