"""Content reasons — the single best explanation for a feed item.

Candidate reasons and their priorities:

    YOUR_CONTENT    100              viewer authored the item
    TRENDING         80              recent engagement velocity > 10
    POPULAR_TOPIC    60 + 5 * n      n followed topics match (context = first match)
    SIMILAR_GROUPS   40              item's group is not one the viewer follows

The highest priority wins; on a tie the earlier candidate in the table
above wins.  Items with no candidate fall back to (TRENDING, 0).
"""

from __future__ import annotations

from collections.abc import Iterable

from decision_pulse.core.scoring import is_own_content
from decision_pulse.domain.content import ContentItem, ContentReason, UserContext
from decision_pulse.domain.enums import ReasonCategory

REASON_PRIORITY: dict[ReasonCategory, int] = {
    ReasonCategory.YOUR_CONTENT: 100,
    ReasonCategory.TRENDING: 80,
    ReasonCategory.POPULAR_TOPIC: 60,
    ReasonCategory.SIMILAR_GROUPS: 40,
}
TOPIC_MATCH_BONUS = 5
DEFAULT_TRENDING_VELOCITY = 10.0
DEFAULT_MIN_REASON_STRENGTH = 30

FALLBACK_REASON = ContentReason(category=ReasonCategory.TRENDING, priority=0)


def candidate_reasons(
    item: ContentItem,
    user: UserContext,
    trending_velocity: float = DEFAULT_TRENDING_VELOCITY,
) -> list[ContentReason]:
    """Every reason that applies to *item*, in tie-break order."""
    reasons: list[ContentReason] = []

    if is_own_content(item, user):
        reasons.append(ContentReason(
            category=ReasonCategory.YOUR_CONTENT,
            priority=REASON_PRIORITY[ReasonCategory.YOUR_CONTENT],
        ))

    if item.recent_engagement_velocity > trending_velocity:
        reasons.append(ContentReason(
            category=ReasonCategory.TRENDING,
            priority=REASON_PRIORITY[ReasonCategory.TRENDING],
        ))

    followed = set(user.followed_topics)
    matching = [topic for topic in item.topics if topic in followed]
    if matching:
        reasons.append(ContentReason(
            category=ReasonCategory.POPULAR_TOPIC,
            context=matching[0],
            priority=REASON_PRIORITY[ReasonCategory.POPULAR_TOPIC] + TOPIC_MATCH_BONUS * len(matching),
        ))

    if item.group_id is not None and item.group_id not in user.subscribed_group_ids:
        # Any unsubscribed group is treated as similar; there is no group graph
        reasons.append(ContentReason(
            category=ReasonCategory.SIMILAR_GROUPS,
            priority=REASON_PRIORITY[ReasonCategory.SIMILAR_GROUPS],
        ))

    return reasons


def content_reason(
    item: ContentItem,
    user: UserContext,
    trending_velocity: float = DEFAULT_TRENDING_VELOCITY,
) -> ContentReason:
    """The highest-priority reason for *item*."""
    best: ContentReason | None = None
    for reason in candidate_reasons(item, user, trending_velocity):
        if best is None or reason.priority > best.priority:
            best = reason
    return best if best is not None else FALLBACK_REASON


def content_reasons(
    items: Iterable[ContentItem],
    user: UserContext,
    trending_velocity: float = DEFAULT_TRENDING_VELOCITY,
) -> dict[str, ContentReason]:
    return {item.content_id: content_reason(item, user, trending_velocity) for item in items}


def filter_by_reason_strength(
    items: Iterable[ContentItem],
    user: UserContext,
    min_priority: int = DEFAULT_MIN_REASON_STRENGTH,
    trending_velocity: float = DEFAULT_TRENDING_VELOCITY,
) -> list[ContentItem]:
    """Keep only items whose winning reason reaches *min_priority*."""
    return [
        item for item in items
        if content_reason(item, user, trending_velocity).priority >= min_priority
    ]


def describe_reason(reason: ContentReason) -> str:
    """Plain-English label for a reason."""
    if reason.category == ReasonCategory.YOUR_CONTENT:
        return "Your content"
    if reason.category == ReasonCategory.TRENDING:
        return "Trending now"
    if reason.category == ReasonCategory.POPULAR_TOPIC:
        return f"Popular in {reason.context}" if reason.context else "Popular topic"
    return "Similar to groups you follow"
