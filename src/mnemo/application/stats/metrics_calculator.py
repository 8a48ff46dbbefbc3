"""
Forgetting-curve model for predicting retention.

This is a pure computation module with no I/O.
"""

import math
from collections.abc import Iterator
from datetime import datetime

from mnemo.domain.constants import (
    CURVE_SEGMENTS,
    DEFAULT_CURVE_DAYS,
    DEFAULT_EASE_FACTOR,
    HOURS_PER_DAY,
    MIN_STABILITY_HOURS,
)
from mnemo.domain.models import Card, ensure_utc
from mnemo.domain.stats.models import RetentionPoint


class MetricsCalculator:
    """
    Computes derived memory metrics from a card.

    Stateless and side-effect free.
    """

    def stability_hours(self, card: Card) -> float:
        """
        Memory stability in hours, floored at 1.

        S = interval_days * 24 * (ease_factor / 2.5)
        """
        raw = card.interval * HOURS_PER_DAY * (card.ease_factor / DEFAULT_EASE_FACTOR)
        return max(raw, MIN_STABILITY_HOURS)

    def predict_retention(
        self,
        card: Card,
        now: datetime,
        hours_from_now: float = 0.0,
    ) -> float:
        """
        Predict recall probability using R(t) = e^(-t/S).

        t is hours since the last review plus *hours_from_now*.
        A card that has never been reviewed, or t <= 0, has retention 1.0.
        """
        if card.last_review_date is None:
            return 1.0

        elapsed = (ensure_utc(now) - card.last_review_date).total_seconds() / 3600.0
        total_hours = elapsed + hours_from_now
        if total_hours <= 0:
            return 1.0
        retention = math.exp(-total_hours / self.stability_hours(card))
        return max(0.0, min(1.0, retention))

    def retention_curve(
        self,
        card: Card,
        now: datetime,
        days: float = DEFAULT_CURVE_DAYS,
    ) -> "RetentionCurve":
        return RetentionCurve(self, card, now, days)


class RetentionCurve:
    """
    Evenly spaced retention samples spanning [0, days].

    Iterating starts a fresh generator each time, so the curve can be walked
    any number of times. Values reflect the card as it is when iterated.
    """

    def __init__(
        self,
        calculator: MetricsCalculator,
        card: Card,
        now: datetime,
        days: float = DEFAULT_CURVE_DAYS,
    ):
        if days < 0:
            raise ValueError(f"days must not be negative, got {days}")
        self._calc = calculator
        self._card = card
        self._now = ensure_utc(now)
        self.days = days

    def __len__(self) -> int:
        return CURVE_SEGMENTS + 1

    def __iter__(self) -> Iterator[RetentionPoint]:
        step = (self.days * HOURS_PER_DAY) / CURVE_SEGMENTS
        for i in range(CURVE_SEGMENTS + 1):
            hours = i * step
            yield RetentionPoint(
                hours_from_review=hours,
                days_from_review=hours / HOURS_PER_DAY,
                retention=self._calc.predict_retention(self._card, self._now, hours),
            )
