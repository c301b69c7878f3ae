"""Support-trend and volatility computation over vote tallies.

Trend:
    share     = support / (support + oppose + abstain)
    delta     = current_share * 100 - previous_share * 100
    direction = STABLE if |delta| < 1 else UP / DOWN by sign
    percentage = delta rounded half-up to a whole point

    The 1-point dead band keeps rounding noise from flipping the arrow.
    A missing previous tally, or a zero total on either side, yields
    (STABLE, 0).

Volatility:
    Given >= 3 snapshots (oldest first), compute the trend between each
    consecutive pair and count reversals: a non-stable direction that
    differs from the last non-stable direction seen (starting from STABLE).
    Two or more reversals ⇒ volatile.

    A volatile decision reports the bulk change from the OLDEST snapshot
    to the current tally, with its direction forced to VOLATILE.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from decision_pulse.domain.decision import TrendData, VoteSnapshot, VoteTally
from decision_pulse.domain.enums import TrendDirection

STABLE_BAND = 1.0
VOLATILITY_MIN_SNAPSHOTS = 3
VOLATILITY_MIN_REVERSALS = 2
DEFAULT_QUORUM = 50


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity."""
    return int(math.floor(value + 0.5))


def _support_share(tally: VoteTally) -> float:
    return tally.support / tally.total


def calculate_trend(current: VoteTally, previous: VoteTally | None) -> TrendData:
    """Trend of support share from *previous* to *current*."""
    if previous is None or current.total == 0 or previous.total == 0:
        return TrendData(direction=TrendDirection.STABLE, percentage=0)

    delta = _support_share(current) * 100 - _support_share(previous) * 100

    if abs(delta) < STABLE_BAND:
        direction = TrendDirection.STABLE
    elif delta > 0:
        direction = TrendDirection.UP
    else:
        direction = TrendDirection.DOWN

    return TrendData(direction=direction, percentage=round_half_up(delta))


def count_reversals(snapshots: Sequence[VoteSnapshot]) -> int:
    """Count direction reversals between consecutive snapshots."""
    reversals = 0
    last_direction = TrendDirection.STABLE

    for older, newer in zip(snapshots, snapshots[1:]):
        direction = calculate_trend(newer.votes, older.votes).direction
        if direction == TrendDirection.STABLE:
            continue
        if direction != last_direction:
            reversals += 1
        last_direction = direction

    return reversals


def detect_volatility(snapshots: Sequence[VoteSnapshot]) -> bool:
    """True if recent history reversed direction repeatedly."""
    if len(snapshots) < VOLATILITY_MIN_SNAPSHOTS:
        return False
    return count_reversals(snapshots) >= VOLATILITY_MIN_REVERSALS


def trend_with_volatility(
    current: VoteTally,
    snapshots: Sequence[VoteSnapshot],
) -> TrendData:
    """Trend against the latest snapshot, or VOLATILE with the bulk change."""
    if detect_volatility(snapshots):
        bulk = calculate_trend(current, snapshots[0].votes)
        return TrendData(direction=TrendDirection.VOLATILE, percentage=bulk.percentage)

    latest = snapshots[-1].votes if snapshots else None
    return calculate_trend(current, latest)


# ── Derived helpers ──────────────────────────────────────────────────────────

def calculate_support_percentage(tally: VoteTally) -> int:
    """Support share as a whole percentage; 0 when nobody has voted."""
    if tally.total == 0:
        return 0
    return round_half_up(_support_share(tally) * 100)


def calculate_turnout(voted: int, total: int) -> int:
    """Percent of *total* members who voted; 0 when *total* is 0."""
    if total <= 0:
        return 0
    return round_half_up(voted / total * 100)


def is_quorum_reached(turnout: int, quorum: int = DEFAULT_QUORUM) -> bool:
    return turnout >= quorum
