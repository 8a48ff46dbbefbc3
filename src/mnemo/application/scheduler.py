"""
SM-2 update rule.

This is a pure computation module with no I/O: it never touches the store
and never mutates the card it is given.
"""

import copy
import math
from dataclasses import fields
from datetime import datetime, timedelta

from mnemo.domain.constants import (
    FIRST_INTERVAL_DAYS,
    GRADUATING_REPETITIONS,
    LAPSE_INTERVAL_DAYS,
    MAX_INTERVAL_DAYS,
    MAX_QUALITY,
    MIN_EASE_FACTOR,
    MIN_QUALITY,
    PASSING_QUALITY,
    SECOND_INTERVAL_DAYS,
)
from mnemo.domain.errors import InvalidQualityError
from mnemo.domain.models import Card, CardState, ReviewRecord, ensure_utc


def validate_quality(quality: object) -> int:
    """
    Return *quality* as an int, or raise InvalidQualityError.

    Integral floats (``4.0``) are accepted; bools and anything outside 0..5 are not.
    """
    if isinstance(quality, bool):
        raise InvalidQualityError(quality)
    if isinstance(quality, float):
        if not quality.is_integer():
            raise InvalidQualityError(quality)
        quality = int(quality)
    if not isinstance(quality, int) or not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """
    SM-2 ease update, floored at 1.3.

    EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    """
    miss = MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (round() would go to even)."""
    return math.floor(value + 0.5)


def next_state(state: CardState, passed: bool, repetitions: int) -> CardState:
    """
    Transition table for the learning phase.

    Args:
        state: Phase before the review.
        passed: Whether the review quality was >= 3.
        repetitions: Repetition count after the review was applied.
    """
    if not passed:
        if state == CardState.REVIEW:
            return CardState.RELEARNING
        return CardState.LEARNING

    if state == CardState.NEW:
        return CardState.LEARNING
    if state in (CardState.LEARNING, CardState.RELEARNING):
        if repetitions >= GRADUATING_REPETITIONS:
            return CardState.REVIEW
        return state
    return state


def apply_review(card: Card, quality: int, now: datetime) -> Card:
    """
    Compute the card that results from reviewing *card* with *quality* at *now*.

    Returns:
        A new Card; the argument is left untouched.

    Raises:
        InvalidQualityError: If quality is not an integer in 0..5.
    """
    quality = validate_quality(quality)
    now = ensure_utc(now)
    updated = copy.deepcopy(card)

    updated.review_history.append(
        ReviewRecord(
            date=now,
            quality=quality,
            interval=card.interval,
            ease_factor=card.ease_factor,
            state=card.state,
        )
    )
    updated.last_review_date = now

    passed = quality >= PASSING_QUALITY
    if passed:
        if card.repetitions == 0:
            updated.interval = FIRST_INTERVAL_DAYS
        elif card.repetitions == 1:
            updated.interval = SECOND_INTERVAL_DAYS
        else:
            updated.interval = min(
                round_half_up(card.interval * card.ease_factor), MAX_INTERVAL_DAYS
            )
        updated.repetitions = card.repetitions + 1
    else:
        updated.repetitions = 0
        updated.interval = LAPSE_INTERVAL_DAYS
        updated.lapses = card.lapses + 1

    updated.state = next_state(card.state, passed, updated.repetitions)
    updated.ease_factor = next_ease_factor(card.ease_factor, quality)
    updated.next_review_date = now + timedelta(days=updated.interval)
    return updated


def commit(target: Card, source: Card) -> Card:
    """Copy every field of *source* onto *target* in one step and return *target*."""
    values = {f.name: getattr(source, f.name) for f in fields(Card)}
    for name, value in values.items():
        setattr(target, name, value)
    return target
