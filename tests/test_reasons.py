"""Tests for content reason attribution."""

from decision_pulse.core.reasons import (
    FALLBACK_REASON,
    candidate_reasons,
    content_reason,
    content_reasons,
    describe_reason,
    filter_by_reason_strength,
)
from decision_pulse.domain.content import ContentReason
from decision_pulse.domain.enums import ReasonCategory

from tests.test_models import _item, _user


class TestContentReason:
    def test_own_content_beats_trending(self) -> None:
        item = _item(author_id="u-1", recent_engagement_velocity=500)
        reason = content_reason(item, _user())
        assert reason.category == ReasonCategory.YOUR_CONTENT
        assert reason.priority == 100

    def test_trending_requires_velocity_above_threshold(self) -> None:
        assert content_reason(_item(recent_engagement_velocity=11), _user()).category == ReasonCategory.TRENDING
        assert content_reason(_item(recent_engagement_velocity=10), _user()) == FALLBACK_REASON

    def test_custom_trending_velocity(self) -> None:
        reason = content_reason(_item(recent_engagement_velocity=6), _user(), trending_velocity=5)
        assert reason.category == ReasonCategory.TRENDING

    def test_topic_match_priority_and_context(self) -> None:
        item = _item(topics=["sport", "climate", "housing"])
        reason = content_reason(item, _user(followed_topics=["housing", "climate"]))
        assert reason.category == ReasonCategory.POPULAR_TOPIC
        assert reason.priority == 70
        assert reason.context == "climate"

    def test_trending_wins_a_tie_with_topics(self) -> None:
        topics = ["a", "b", "c", "d"]
        item = _item(topics=topics, recent_engagement_velocity=50)
        reason = content_reason(item, _user(followed_topics=topics))
        assert reason.category == ReasonCategory.TRENDING

    def test_many_topics_outrank_trending(self) -> None:
        topics = ["a", "b", "c", "d", "e"]
        item = _item(topics=topics, recent_engagement_velocity=50)
        reason = content_reason(item, _user(followed_topics=topics))
        assert reason.category == ReasonCategory.POPULAR_TOPIC
        assert reason.priority == 85

    def test_unsubscribed_group_is_similar(self) -> None:
        reason = content_reason(_item(group_id="g-2"), _user(subscribed_group_ids=["g-1"]))
        assert reason.category == ReasonCategory.SIMILAR_GROUPS
        assert reason.priority == 40

    def test_subscribed_group_falls_back(self) -> None:
        reason = content_reason(_item(group_id="g-1"), _user(subscribed_group_ids=["g-1"]))
        assert reason == ContentReason(category=ReasonCategory.TRENDING, priority=0)

    def test_candidates_are_in_tie_break_order(self) -> None:
        item = _item(author_id="u-1", recent_engagement_velocity=50, topics=["a"], group_id="g-9")
        categories = [r.category for r in candidate_reasons(item, _user(followed_topics=["a"]))]
        assert categories == [
            ReasonCategory.YOUR_CONTENT,
            ReasonCategory.TRENDING,
            ReasonCategory.POPULAR_TOPIC,
            ReasonCategory.SIMILAR_GROUPS,
        ]


class TestBulkHelpers:
    def test_reasons_keyed_by_id(self) -> None:
        items = [_item("mine", author_id="u-1"), _item("other")]
        reasons = content_reasons(items, _user())
        assert reasons["mine"].category == ReasonCategory.YOUR_CONTENT
        assert reasons["other"] == FALLBACK_REASON

    def test_filter_drops_weak_reasons(self) -> None:
        items = [
            _item("group", group_id="g-2"),
            _item("nothing"),
            _item("trending", recent_engagement_velocity=20),
        ]
        kept = filter_by_reason_strength(items, _user())
        assert [i.content_id for i in kept] == ["group", "trending"]

    def test_filter_threshold_is_inclusive(self) -> None:
        kept = filter_by_reason_strength([_item(group_id="g-2")], _user(), min_priority=40)
        assert len(kept) == 1
        assert filter_by_reason_strength([_item(group_id="g-2")], _user(), min_priority=41) == []


class TestDescribeReason:
    def test_labels(self) -> None:
        assert describe_reason(ContentReason(category=ReasonCategory.YOUR_CONTENT, priority=100)) == "Your content"
        assert describe_reason(ContentReason(category=ReasonCategory.TRENDING, priority=80)) == "Trending now"
        assert describe_reason(
            ContentReason(category=ReasonCategory.POPULAR_TOPIC, context="housing", priority=65)
        ) == "Popular in housing"
        assert describe_reason(
            ContentReason(category=ReasonCategory.SIMILAR_GROUPS, priority=40)
        ) == "Similar to groups you follow"
