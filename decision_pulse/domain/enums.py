"""Controlled enumerations for the decision-pulse domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class DecisionKind(str, Enum):
    """What is being decided."""

    VOTE = "vote"
    ELECTION = "election"


class DecisionStatus(str, Enum):
    """Live status of a decision.

    The first four values are time buckets for decisions still open; the
    rest are terminal results.
    """

    OPEN = "open"
    CLOSING_SOON = "closing_soon"
    LAST_HOUR = "last_hour"
    FINAL_MINUTES = "final_minutes"
    PASSED = "passed"
    FAILED = "failed"
    TIED = "tied"
    ELECTED = "elected"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({
    DecisionStatus.PASSED,
    DecisionStatus.FAILED,
    DecisionStatus.TIED,
    DecisionStatus.ELECTED,
})


class TrendDirection(str, Enum):
    """Direction of the support-share shift between two tallies."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"
    VOLATILE = "volatile"


class FlashType(str, Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class FlashIntensity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DecisionEventKind(str, Enum):
    """Lifecycle transitions raised by the terminal subscription."""

    NEW = "new"
    CHANGED = "changed"
    CLOSED = "closed"


class ContentType(str, Enum):
    """Kinds of content that can appear in the discovery feed."""

    GROUP = "group"
    EVENT = "event"
    AMENDMENT = "amendment"
    VOTE = "vote"
    ELECTION = "election"
    VIDEO = "video"
    IMAGE = "image"
    STATEMENT = "statement"
    TODO = "todo"
    BLOG = "blog"


class ReasonCategory(str, Enum):
    """Why a content item is shown in the discovery feed."""

    YOUR_CONTENT = "your_content"
    TRENDING = "trending"
    POPULAR_TOPIC = "popular_topic"
    SIMILAR_GROUPS = "similar_groups"
