"""
Review scheduling.

One fixed rule, no ease factors:
  correct   -> interval doubles, clamped to a cap (ten years unless configured lower)
  incorrect -> interval resets to 1 hour
The next review is always ``now + interval`` hours, so ``next_review_at`` and
``last_reviewed_at`` are derived together and never drift apart.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

MIN_INTERVAL_HOURS = 1
# now + interval must stay a representable datetime
MAX_INTERVAL_HOURS = 24 * 365 * 10


@dataclass(frozen=True)
class ReviewState:
    """The scheduling fields of a flashcard, before or after a review."""

    times_reviewed: int = 0
    correct_reviews: int = 0
    current_interval: int | None = MIN_INTERVAL_HOURS
    last_reviewed_at: datetime | None = None
    next_review_at: datetime | None = None


def utcnow() -> datetime:
    """Current UTC time truncated to whole seconds (the storage precision)."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def normalize_timestamp(value: datetime) -> datetime:
    """Make ``value`` UTC-aware with second precision; naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).replace(microsecond=0)


def next_interval(
    current_interval: int | None,
    correct: bool,
    max_interval: int | None = None,
) -> int:
    if not correct:
        return MIN_INTERVAL_HOURS

    if not isinstance(current_interval, int) or current_interval < MIN_INTERVAL_HOURS:
        current_interval = MIN_INTERVAL_HOURS
    cap = MAX_INTERVAL_HOURS
    if max_interval is not None:
        cap = min(max(max_interval, MIN_INTERVAL_HOURS), MAX_INTERVAL_HOURS)
    return min(current_interval * 2, cap)


def apply_review(
    state: ReviewState,
    correct: bool,
    now: datetime,
    max_interval: int | None = None,
) -> ReviewState:
    """Return the state after one review; ``state`` itself is not modified."""
    now = normalize_timestamp(now)
    interval = next_interval(state.current_interval, correct, max_interval)
    return ReviewState(
        times_reviewed=(state.times_reviewed or 0) + 1,
        correct_reviews=(state.correct_reviews or 0) + (1 if correct else 0),
        current_interval=interval,
        last_reviewed_at=now,
        next_review_at=now + timedelta(hours=interval),
    )
