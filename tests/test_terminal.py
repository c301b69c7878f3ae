"""Tests for decision evaluation, tallying and terminal ordering."""

from datetime import timedelta
from unittest.mock import patch

from decision_pulse.core.terminal import (
    TerminalSummary,
    evaluate_decision,
    evaluate_decisions,
    result_from_tally,
    sort_for_terminal,
    tally_entries,
)
from decision_pulse.domain.decision import VoteEntry, VoteTally
from decision_pulse.domain.enums import DecisionKind, DecisionStatus, TrendDirection

from tests.test_models import BASE, _decision, _state


def _ends_in(delta: timedelta) -> str:
    return (BASE + delta).isoformat()


class TestEvaluateDecision:
    def test_final_minutes_vote(self) -> None:
        state = evaluate_decision(_decision(ends_at=_ends_in(timedelta(minutes=10))), now=BASE)
        assert state.status == DecisionStatus.FINAL_MINUTES
        assert state.is_urgent
        assert state.is_closing_soon
        assert not state.is_closed

    def test_recently_closed_with_result(self) -> None:
        state = evaluate_decision(
            _decision(ends_at=_ends_in(timedelta(minutes=-1)), result="passed"), now=BASE,
        )
        assert state.status == DecisionStatus.PASSED
        assert state.is_closed
        assert not state.is_urgent
        assert not state.is_closing_soon

    def test_closed_vote_result_from_tally(self) -> None:
        ended = _ends_in(timedelta(hours=-1))
        passed = _decision(ends_at=ended, votes={"support": 5, "oppose": 2})
        failed = _decision(ends_at=ended, votes={"support": 2, "oppose": 5})
        tied = _decision(ends_at=ended, votes={"support": 3, "oppose": 3, "abstain": 4})
        assert evaluate_decision(passed, now=BASE).status == DecisionStatus.PASSED
        assert evaluate_decision(failed, now=BASE).status == DecisionStatus.FAILED
        assert evaluate_decision(tied, now=BASE).status == DecisionStatus.TIED

    def test_closed_election_is_elected(self) -> None:
        election = _decision(kind="election", votes=None, ends_at=_ends_in(timedelta(hours=-1)))
        assert evaluate_decision(election, now=BASE).status == DecisionStatus.ELECTED

    def test_completed_by_host_is_closed_early(self) -> None:
        d = _decision(ends_at=_ends_in(timedelta(minutes=5)), completed=True, votes={"support": 1, "oppose": 4})
        state = evaluate_decision(d, now=BASE)
        assert state.is_closed
        assert state.status == DecisionStatus.FAILED
        assert not state.is_urgent

    def test_vote_support_and_voted_count(self) -> None:
        state = evaluate_decision(_decision(), now=BASE)
        assert state.support_percentage == 60
        assert state.voted_count == 10
        assert state.status == DecisionStatus.OPEN

    def test_election_without_tally(self) -> None:
        d = _decision(kind="election", votes=None, voted_count=12, eligible_count=40)
        state = evaluate_decision(d, now=BASE)
        assert state.kind == DecisionKind.ELECTION
        assert state.support_percentage is None
        assert state.trend.direction == TrendDirection.STABLE
        assert state.voted_count == 12
        assert state.turnout == 30
        assert state.quorum_reached is False

    def test_turnout_and_quorum(self) -> None:
        d = _decision(eligible_count=20)
        state = evaluate_decision(d, now=BASE)
        assert state.turnout == 50
        assert state.quorum_reached is True
        assert evaluate_decision(d, now=BASE, quorum=60).quorum_reached is False

    def test_no_eligible_count_means_no_turnout(self) -> None:
        state = evaluate_decision(_decision(), now=BASE)
        assert state.turnout is None
        assert state.quorum_reached is None

    def test_trend_from_snapshots(self) -> None:
        d = _decision(
            votes={"support": 8, "oppose": 2},
            snapshots=[{"timestamp": BASE.isoformat(), "votes": {"support": 7, "oppose": 3}}],
        )
        trend = evaluate_decision(d, now=BASE).trend
        assert trend.direction == TrendDirection.UP
        assert trend.percentage == 10

    def test_zero_tally_with_history_is_stable(self) -> None:
        d = _decision(
            votes={"support": 0, "oppose": 0},
            snapshots=[{"timestamp": BASE.isoformat(), "votes": {"support": 4, "oppose": 1}}],
        )
        state = evaluate_decision(d, now=BASE)
        assert state.trend.direction == TrendDirection.STABLE
        assert state.trend.percentage == 0
        assert state.support_percentage == 0

    def test_evaluation_is_repeatable(self) -> None:
        d = _decision()
        before = d.model_dump()
        assert evaluate_decision(d, now=BASE) == evaluate_decision(d, now=BASE)
        assert d.model_dump() == before

    def test_defaults_to_current_time(self) -> None:
        d = _decision(ends_at=_ends_in(timedelta(minutes=30)))
        with patch("decision_pulse.core.terminal.utc_now", return_value=BASE):
            assert evaluate_decision(d).status == DecisionStatus.LAST_HOUR


class TestTerminalOrdering:
    def test_open_first_then_recently_closed(self) -> None:
        decisions = [
            _decision(decision_id="closed-old", ends_at=_ends_in(timedelta(days=-2))),
            _decision(decision_id="open-late", ends_at=_ends_in(timedelta(days=3))),
            _decision(decision_id="closed-new", ends_at=_ends_in(timedelta(hours=-1))),
            _decision(decision_id="open-soon", ends_at=_ends_in(timedelta(minutes=5))),
        ]
        states = evaluate_decisions(decisions, now=BASE)
        assert [s.decision_id for s in states] == ["open-soon", "open-late", "closed-new", "closed-old"]

    def test_sort_keeps_every_state(self) -> None:
        states = [_state("a", closed=True), _state("b"), _state("c", closed=True)]
        assert sorted(s.decision_id for s in sort_for_terminal(states)) == ["a", "b", "c"]

    def test_empty_input(self) -> None:
        assert evaluate_decisions([], now=BASE) == []


class TestTallying:
    def test_entries_split_into_actual_and_indication(self) -> None:
        entries = [
            VoteEntry(vote="yes"),
            VoteEntry(vote="Accept"),
            VoteEntry(vote="NO"),
            VoteEntry(vote="reject"),
            VoteEntry(vote="abstain"),
            VoteEntry(vote="maybe"),
            VoteEntry(vote="yes", is_indication=True),
            VoteEntry(vote="no", is_indication=True),
        ]
        actual, indication = tally_entries(entries)
        assert actual == VoteTally(support=2, oppose=2, abstain=1)
        assert indication == VoteTally(support=1, oppose=1, abstain=0)

    def test_result_from_tally(self) -> None:
        assert result_from_tally(VoteTally(support=3, oppose=1)) == DecisionStatus.PASSED
        assert result_from_tally(VoteTally(support=1, oppose=3)) == DecisionStatus.FAILED
        assert result_from_tally(VoteTally()) == DecisionStatus.TIED


class TestTerminalSummary:
    def test_counts(self) -> None:
        decisions = [
            _decision(decision_id="urgent", ends_at=_ends_in(timedelta(minutes=20))),
            _decision(decision_id="open", ends_at=_ends_in(timedelta(days=5))),
            _decision(decision_id="closed", ends_at=_ends_in(timedelta(minutes=-20))),
        ]
        summary = TerminalSummary.from_states(evaluate_decisions(decisions, now=BASE))
        assert summary.to_dict() == {
            "urgent_count": 1,
            "active_count": 2,
            "recently_closed_count": 1,
        }

    def test_empty_summary(self) -> None:
        assert TerminalSummary.from_states([]).to_dict() == {
            "urgent_count": 0,
            "active_count": 0,
            "recently_closed_count": 0,
        }
