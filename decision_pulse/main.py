"""decision-pulse — Decision Tracking & Content Ranking Engine.

This is the application entry point.  It wires the ContentScorer, the
decision evaluation endpoint, the pushed decision stream, and the feed
endpoint together from settings.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from fastapi import FastAPI

from decision_pulse.api.decisions import create_decisions_router
from decision_pulse.api.feed import create_feed_router
from decision_pulse.api.ws_decisions import create_decision_stream_router
from decision_pulse.config import settings
from decision_pulse.core.scoring import ContentScorer, ScoringWeights

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Content Scorer ───────────────────────────────────────────────────────────

scorer = ContentScorer(
    weights=ScoringWeights(
        trending=settings.score_weight_trending,
        topic_relevance=settings.score_weight_topic_relevance,
        freshness=settings.score_weight_freshness,
        quality=settings.score_weight_quality,
        user_content=settings.score_weight_user_content,
    ),
    diversity_penalty=settings.diversity_penalty,
)

# ── App ──────────────────────────────────────────────────────────────────────

app = FastAPI(
    title=settings.app_name,
    description="Decision status, trends, change flashes and content ranking",
    version="0.1.0",
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_decisions_router(quorum=settings.quorum_percent))
app.include_router(create_decision_stream_router(
    flash_duration=timedelta(milliseconds=settings.flash_duration_ms),
    min_change_threshold=settings.flash_min_change_threshold,
    high_intensity_threshold=settings.flash_high_intensity_threshold,
    change_threshold=settings.change_threshold,
    poll_interval=timedelta(milliseconds=settings.poll_interval_ms),
    quorum=settings.quorum_percent,
))
app.include_router(create_feed_router(
    scorer,
    default_limit=settings.feed_default_limit,
    min_reason_strength=settings.min_reason_strength,
    trending_velocity=settings.trending_velocity_threshold,
))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    return {
        "status": "ok",
        "app": settings.app_name,
        "flash_duration_ms": settings.flash_duration_ms,
        "poll_interval_ms": settings.poll_interval_ms,
        "scoring_weights": {
            "trending": scorer.weights.trending,
            "topic_relevance": scorer.weights.topic_relevance,
            "freshness": scorer.weights.freshness,
            "quality": scorer.weights.quality,
            "user_content": scorer.weights.user_content,
        },
    }
