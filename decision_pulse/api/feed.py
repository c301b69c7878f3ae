"""REST endpoint for the ranked discovery feed.

Path: POST /api/feed/rank

Pipeline:
1. filter_by_reason_strength()  drop items without a strong enough reason
2. ContentScorer.score_and_sort() weighted multi-factor score
3. apply_diversity_penalty()     optional same-type re-ranking
4. truncate to ``limit`` and attach the winning reason to each entry
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from decision_pulse.core.reasons import content_reason, describe_reason, filter_by_reason_strength
from decision_pulse.core.scoring import ContentScorer
from decision_pulse.domain.content import ContentItem, UserContext

logger = logging.getLogger(__name__)


class RankRequest(BaseModel):
    items: list[ContentItem] = Field(default_factory=list)
    user_context: UserContext
    limit: Optional[int] = Field(default=None, ge=0, le=500)
    diversify: bool = True
    min_reason_strength: Optional[int] = Field(
        default=None, description="Overrides the configured minimum reason priority",
    )


def create_feed_router(
    scorer: ContentScorer,
    default_limit: int = 20,
    min_reason_strength: int = 30,
    trending_velocity: float = 10.0,
) -> APIRouter:
    """Factory that wires the feed endpoint to a concrete ContentScorer."""

    router = APIRouter(prefix="/api", tags=["feed"])

    @router.post("/feed/rank")
    async def rank(request: RankRequest) -> dict[str, Any]:
        user = request.user_context
        threshold = (
            request.min_reason_strength
            if request.min_reason_strength is not None
            else min_reason_strength
        )
        limit = request.limit if request.limit is not None else default_limit

        eligible = filter_by_reason_strength(request.items, user, threshold, trending_velocity)
        ranked = scorer.score_and_sort(eligible, user)
        if request.diversify:
            ranked = scorer.apply_diversity_penalty(ranked)
        ranked = ranked[:limit]

        logger.debug(
            "Ranked feed for %s: %d of %d item(s) kept",
            user.user_id,
            len(ranked),
            len(request.items),
        )

        entries = []
        for entry in ranked:
            reason = content_reason(entry.content, user, trending_velocity)
            entries.append({
                "content_id": entry.content.content_id,
                "type": entry.content.type.value,
                "score": round(entry.score, 4),
                "score_breakdown": entry.score_breakdown.model_dump(),
                "reason": reason.model_dump(mode="json"),
                "reason_label": describe_reason(reason),
            })

        return {
            "items": entries,
            "count": len(entries),
            "filtered_out": len(request.items) - len(eligible),
        }

    return router
