"""ContentScorer — weighted multi-factor relevance scoring for the discovery feed.

Score formula:
    score = w_trending  * trending
          + w_topic     * topic_relevance
          + w_freshness * freshness
          + w_quality   * quality
          + w_user      * user_content

    Where each factor is a normalised [0, 1] value:
    - trending        = min(1, log10(velocity + 1) / 2)       (0 if velocity <= 0)
    - topic_relevance = mean(matches / item_topics, matches / followed_topics)
                        (0 if either side has no topics)
    - freshness       = 0.5 ** (max(age_hours, 0) / 24)       (0.5 if no timestamp)
    - quality         = min(1, log10(engagement + 1) / 3)     (0 if engagement <= 0)
    - user_content    = 1 for the viewer's own content, else 0

    With the default weights (35 / 25 / 20 / 15 / 5) the total lies in 0–100.
    Logarithmic compression keeps a single viral item from dominating.

Diversity:
    apply_diversity_penalty() walks a ranked list and multiplies the n-th
    item of each content type (0-based) by ``penalty ** n``, then re-sorts.
    The breakdown is scaled with the score, so it always sums to it.
    Nothing is dropped.

Sorting is descending by score and stable: equal scores keep input order.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime

from decision_pulse.domain.content import (
    ContentItem,
    ScoreBreakdown,
    ScoredContent,
    UserContext,
)
from decision_pulse.foundation.clock import ensure_utc, utc_now


DEFAULT_DIVERSITY_PENALTY = 0.9
DEFAULT_TOP_LIMIT = 20
FRESHNESS_HALF_LIFE_HOURS = 24.0


@dataclass(frozen=True)
class ScoringWeights:
    """Configurable weights for the score formula.

    The defaults add up to 100 so a score reads as a percentage; this is
    not enforced.
    """

    trending: float = 35.0
    topic_relevance: float = 25.0
    freshness: float = 20.0
    quality: float = 15.0
    user_content: float = 5.0


# ── Factors ──────────────────────────────────────────────────────────────────

def trending_score(item: ContentItem) -> float:
    velocity = item.recent_engagement_velocity
    if velocity <= 0:
        return 0.0
    return min(1.0, math.log10(velocity + 1) / 2)


def topic_relevance(item: ContentItem, user: UserContext) -> float:
    """Rewards both focus (share of the item's topics) and breadth of match."""
    if not item.topics or not user.followed_topics:
        return 0.0
    followed = set(user.followed_topics)
    matches = sum(1 for topic in item.topics if topic in followed)
    match_ratio = matches / len(item.topics)
    follow_ratio = matches / len(followed)
    return (match_ratio + follow_ratio) / 2


def freshness_score(item: ContentItem, now: datetime | None = None) -> float:
    if item.created_at is None:
        return 0.5
    now = ensure_utc(now) if now is not None else utc_now()
    age_hours = max((now - item.created_at).total_seconds() / 3600, 0.0)
    return 0.5 ** (age_hours / FRESHNESS_HALF_LIFE_HOURS)


def quality_score(item: ContentItem) -> float:
    engagement = item.engagement_score
    if engagement <= 0:
        return 0.0
    return min(1.0, math.log10(engagement + 1) / 3)


def is_own_content(item: ContentItem, user: UserContext) -> bool:
    return item.is_user_content or (
        item.author_id is not None and item.author_id == user.user_id
    )


def user_content_score(item: ContentItem, user: UserContext) -> float:
    return 1.0 if is_own_content(item, user) else 0.0


# ── Scorer ───────────────────────────────────────────────────────────────────

class ContentScorer:
    """Deterministic scoring and ranking of content items.

    This scorer is stateless: it never mutates the items it ranks, and
    every pass builds new ScoredContent values.
    """

    def __init__(
        self,
        weights: ScoringWeights | None = None,
        diversity_penalty: float = DEFAULT_DIVERSITY_PENALTY,
    ) -> None:
        if not 0.0 < diversity_penalty <= 1.0:
            raise ValueError("diversity_penalty must be in (0, 1]")
        self._weights = weights or ScoringWeights()
        self._diversity_penalty = diversity_penalty

    @property
    def weights(self) -> ScoringWeights:
        return self._weights

    # ── Public API ───────────────────────────────────────────────────────

    def score(
        self,
        item: ContentItem,
        user: UserContext,
        now: datetime | None = None,
    ) -> ScoredContent:
        w = self._weights
        breakdown = ScoreBreakdown(
            trending=trending_score(item) * w.trending,
            topic_relevance=topic_relevance(item, user) * w.topic_relevance,
            freshness=freshness_score(item, now) * w.freshness,
            quality=quality_score(item) * w.quality,
            user_content=user_content_score(item, user) * w.user_content,
        )
        return ScoredContent(content=item, score=breakdown.total, score_breakdown=breakdown)

    def score_and_sort(
        self,
        items: Iterable[ContentItem],
        user: UserContext,
        now: datetime | None = None,
    ) -> list[ScoredContent]:
        """Score every item against one shared "now", highest first."""
        now = now or utc_now()
        return _rank(self.score(item, user, now) for item in items)

    def top(
        self,
        items: Iterable[ContentItem],
        user: UserContext,
        limit: int = DEFAULT_TOP_LIMIT,
        now: datetime | None = None,
    ) -> list[ScoredContent]:
        return self.score_and_sort(items, user, now)[:max(limit, 0)]

    def apply_diversity_penalty(self, scored: Sequence[ScoredContent]) -> list[ScoredContent]:
        """Discount repeated content types along a ranked list, then re-rank."""
        seen: dict[str, int] = {}
        penalised: list[ScoredContent] = []
        for entry in scored:
            content_type = entry.content.type.value
            occurrence = seen.get(content_type, 0)
            seen[content_type] = occurrence + 1
            factor = self._diversity_penalty ** occurrence
            penalised.append(entry.model_copy(update={
                "score": entry.score * factor,
                "score_breakdown": _scale_breakdown(entry.score_breakdown, factor),
            }))
        return _rank(penalised)

    @staticmethod
    def separate(
        scored: Iterable[ScoredContent],
        user: UserContext,
    ) -> tuple[list[ScoredContent], list[ScoredContent]]:
        """Split a ranked list into (own content, public content), order kept."""
        own: list[ScoredContent] = []
        public: list[ScoredContent] = []
        for entry in scored:
            (own if is_own_content(entry.content, user) else public).append(entry)
        return own, public


def _scale_breakdown(breakdown: ScoreBreakdown, factor: float) -> ScoreBreakdown:
    return ScoreBreakdown(
        trending=breakdown.trending * factor,
        topic_relevance=breakdown.topic_relevance * factor,
        freshness=breakdown.freshness * factor,
        quality=breakdown.quality * factor,
        user_content=breakdown.user_content * factor,
    )


def _rank(scored: Iterable[ScoredContent]) -> list[ScoredContent]:
    # sorted() with reverse=True is still stable
    return sorted(scored, key=lambda s: s.score, reverse=True)


# ── Module-level helpers with default weights ───────────────────────────────

_default_scorer = ContentScorer()


def score_content(
    item: ContentItem, user: UserContext, now: datetime | None = None,
) -> ScoredContent:
    return _default_scorer.score(item, user, now)


def score_and_sort_content(
    items: Iterable[ContentItem], user: UserContext, now: datetime | None = None,
) -> list[ScoredContent]:
    return _default_scorer.score_and_sort(items, user, now)


def get_top_scored_content(
    items: Iterable[ContentItem],
    user: UserContext,
    limit: int = DEFAULT_TOP_LIMIT,
    now: datetime | None = None,
) -> list[ScoredContent]:
    return _default_scorer.top(items, user, limit, now)


def apply_diversity_penalty(scored: Sequence[ScoredContent]) -> list[ScoredContent]:
    return _default_scorer.apply_diversity_penalty(scored)
