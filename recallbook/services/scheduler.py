"""
SM-2 spaced-repetition scheduler.

Pure functions over review state: no I/O, no clock reads. The calendar date
is always passed in by the caller.

  compute_next_review(rating, current, today)  - next state after a rating
  initial_review_state(today)                  - state of a never-reviewed item
  is_review_due(next_review_date, today)       - inclusive due check
  preview_ratings(current, today)              - outcome of every rating
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5
PASSING_RATING = 3          # ratings below this are lapses

INITIAL_INTERVAL_DAYS = 1
INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
SECOND_INTERVAL_DAYS = 6


class InvalidArgumentError(ValueError):
    """Raised when a rating or prior state is outside its documented domain."""


@dataclass(frozen=True)
class ReviewState:
    interval_days: int
    ease_factor: float
    repetitions: int


@dataclass(frozen=True)
class NextReview:
    next_review_date: date
    interval_days: int
    ease_factor: float
    repetitions: int

    @property
    def state(self) -> ReviewState:
        return ReviewState(
            interval_days=self.interval_days,
            ease_factor=self.ease_factor,
            repetitions=self.repetitions,
        )


def _as_date(value: date | datetime) -> date:
    # datetime is a subclass of date, so check it first
    if isinstance(value, datetime):
        return value.date()
    return value


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero (12.5 -> 13)."""
    if value < 0:
        return -math.floor(-value + 0.5)
    return math.floor(value + 0.5)


def validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidArgumentError(f"rating must be an integer, got {rating!r}")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidArgumentError(
            f"rating must be between {MIN_RATING} and {MAX_RATING}, got {rating}"
        )
    return rating


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _checked_state(current: ReviewState) -> ReviewState:
    """Reject out-of-domain state; clamp a sub-floor ease factor left by old data."""
    ease = current.ease_factor
    if isinstance(ease, bool) or not isinstance(ease, (int, float)):
        raise InvalidArgumentError(f"ease_factor must be a number, got {ease!r}")
    if not math.isfinite(ease) or ease <= 0:
        raise InvalidArgumentError(f"ease_factor must be a positive number, got {ease!r}")
    if not _is_int(current.interval_days) or current.interval_days < 1:
        raise InvalidArgumentError(
            f"interval_days must be an integer >= 1, got {current.interval_days!r}"
        )
    if not _is_int(current.repetitions) or current.repetitions < 0:
        raise InvalidArgumentError(
            f"repetitions must be an integer >= 0, got {current.repetitions!r}"
        )
    if ease < MIN_EASE_FACTOR:
        logger.warning(
            "Clamping stored ease factor %.4f to %.1f", ease, MIN_EASE_FACTOR
        )
        return ReviewState(
            interval_days=current.interval_days,
            ease_factor=MIN_EASE_FACTOR,
            repetitions=current.repetitions,
        )
    return current


def updated_ease_factor(ease_factor: float, rating: int) -> float:
    """SM-2 ease update: +0.1 at rating 5, ~0 at 4, -0.14 at 3. Floored at 1.3."""
    miss = MAX_RATING - rating
    new_ease = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, new_ease)


def compute_next_review(
    rating: int,
    current: ReviewState,
    today: date | datetime,
) -> NextReview:
    """
    Compute the state that follows a review rated ``rating`` (1-5).

    Ratings below 3 are lapses: the streak resets, the interval drops to one
    day and the ease factor is kept. Otherwise the streak grows by one and the
    interval is 1 day, then 6 days, then ``round(previous_interval * new_ease)``.

    Raises InvalidArgumentError for out-of-domain input.
    """
    validate_rating(rating)
    current = _checked_state(current)
    base = _as_date(today)

    if rating < PASSING_RATING:
        repetitions = 0
        ease_factor = current.ease_factor
        interval = INITIAL_INTERVAL_DAYS
    else:
        repetitions = current.repetitions + 1
        ease_factor = updated_ease_factor(current.ease_factor, rating)
        if repetitions == 1:
            interval = INITIAL_INTERVAL_DAYS
        elif repetitions == 2:
            interval = SECOND_INTERVAL_DAYS
        else:
            # previous interval, new ease
            interval = round_half_up(current.interval_days * ease_factor)

    return NextReview(
        next_review_date=base + timedelta(days=interval),
        interval_days=interval,
        ease_factor=ease_factor,
        repetitions=repetitions,
    )


def initial_review_state(today: date | datetime) -> NextReview:
    """State assigned to an item at creation time, due the following day."""
    return NextReview(
        next_review_date=_as_date(today) + timedelta(days=INITIAL_INTERVAL_DAYS),
        interval_days=INITIAL_INTERVAL_DAYS,
        ease_factor=INITIAL_EASE_FACTOR,
        repetitions=0,
    )


def is_review_due(next_review_date: date | datetime, today: date | datetime) -> bool:
    return _as_date(next_review_date) <= _as_date(today)


def preview_ratings(
    current: ReviewState, today: date | datetime
) -> dict[int, NextReview]:
    return {
        rating: compute_next_review(rating, current, today)
        for rating in range(MIN_RATING, MAX_RATING + 1)
    }
