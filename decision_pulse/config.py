"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "decision-pulse"
    debug: bool = False
    log_level: str = "INFO"

    # Change flash
    flash_duration_ms: int = 2000
    flash_min_change_threshold: float = 2.0
    flash_high_intensity_threshold: float = 10.0

    # Terminal subscription
    poll_interval_ms: int = 5000
    change_threshold: float = 2.0
    quorum_percent: int = 50

    # Content scoring weights
    score_weight_trending: float = 35.0
    score_weight_topic_relevance: float = 25.0
    score_weight_freshness: float = 20.0
    score_weight_quality: float = 15.0
    score_weight_user_content: float = 5.0
    diversity_penalty: float = 0.9

    # Content reasons
    trending_velocity_threshold: float = 10.0
    min_reason_strength: int = 30
    feed_default_limit: int = 20

    model_config = {"env_prefix": "DECISION_PULSE_"}


settings = Settings()
