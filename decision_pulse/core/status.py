"""Decision status resolution — pure time arithmetic over ``ends_at``.

Remaining time is bucketed through a single ordered threshold table:

    remaining <= 0        → closed (terminal result, default PASSED)
    remaining <= 15 min   → FINAL_MINUTES
    remaining <= 60 min   → LAST_HOUR
    remaining <= 24 h     → CLOSING_SOON
    otherwise             → OPEN

``is_urgent`` and ``is_closing_soon`` read the same table, so they can
never disagree with ``resolve_status`` at a boundary:

    is_urgent        ⇔  status ∈ {FINAL_MINUTES, LAST_HOUR}
    is_closing_soon  ⇔  status ∈ {FINAL_MINUTES, LAST_HOUR, CLOSING_SOON}

Every function accepts an explicit ``now``; it defaults to utc_now().
"""

from __future__ import annotations

from datetime import datetime, timedelta

from decision_pulse.domain.enums import DecisionKind, DecisionStatus
from decision_pulse.foundation.clock import ensure_utc, utc_now

DEFAULT_CLOSED_STATUS = DecisionStatus.PASSED

# Ordered tightest first.  The first bound that remaining time fits wins.
STATUS_THRESHOLDS: tuple[tuple[timedelta, DecisionStatus], ...] = (
    (timedelta(minutes=15), DecisionStatus.FINAL_MINUTES),
    (timedelta(hours=1), DecisionStatus.LAST_HOUR),
    (timedelta(hours=24), DecisionStatus.CLOSING_SOON),
)

URGENT_STATUSES = frozenset({DecisionStatus.FINAL_MINUTES, DecisionStatus.LAST_HOUR})
CLOSING_SOON_STATUSES = frozenset(status for _, status in STATUS_THRESHOLDS)


def remaining(ends_at: datetime, now: datetime | None = None) -> timedelta:
    """Time left until *ends_at*; zero or negative once closed."""
    now = ensure_utc(now) if now is not None else utc_now()
    return ensure_utc(ends_at) - now


def _bucket(left: timedelta) -> DecisionStatus | None:
    """Open-time bucket for *left*, or None if the decision is closed."""
    if left <= timedelta(0):
        return None
    for bound, status in STATUS_THRESHOLDS:
        if left <= bound:
            return status
    return DecisionStatus.OPEN


def resolve_status(
    ends_at: datetime,
    result: DecisionStatus | None = None,
    now: datetime | None = None,
) -> DecisionStatus:
    """Resolve the live status of a decision ending at *ends_at*.

    Closed decisions return *result* (or the default closed status); they
    never fall into a time bucket.
    """
    bucket = _bucket(remaining(ends_at, now))
    if bucket is None:
        return result or DEFAULT_CLOSED_STATUS
    return bucket


def is_closed(ends_at: datetime, now: datetime | None = None) -> bool:
    return _bucket(remaining(ends_at, now)) is None


def is_urgent(ends_at: datetime, now: datetime | None = None) -> bool:
    """True while remaining time is in (0, 1h]."""
    return _bucket(remaining(ends_at, now)) in URGENT_STATUSES


def is_closing_soon(ends_at: datetime, now: datetime | None = None) -> bool:
    """True while remaining time is in (0, 24h]."""
    return _bucket(remaining(ends_at, now)) in CLOSING_SOON_STATUSES


# ── Display helpers ──────────────────────────────────────────────────────────

def format_countdown(ends_at: datetime, now: datetime | None = None) -> str:
    """Format remaining time as ``HH:MM:SS``, or ``Nd HH:MM:SS`` past a day."""
    left = remaining(ends_at, now)
    if left <= timedelta(0):
        return "00:00:00"

    total_seconds = int(left.total_seconds())
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    if hours >= 24:
        days, hours = divmod(hours, 24)
        return f"{days}d {hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def decision_code(kind: DecisionKind, index: int) -> str:
    """Short display code: ``V-001`` for votes, ``E-001`` for elections."""
    prefix = "V" if kind == DecisionKind.VOTE else "E"
    return f"{prefix}-{index:03d}"
