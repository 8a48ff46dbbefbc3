import math
from datetime import timedelta

import pytest

from mnemo.application.stats.metrics_calculator import MetricsCalculator, RetentionCurve
from mnemo.domain.models import Card, CardState

from conftest import T0, make_card


@pytest.fixture
def calculator():
    return MetricsCalculator()


def test_unreviewed_card_has_full_retention(calculator):
    card = Card.new("q1", T0)
    assert calculator.predict_retention(card, T0 + timedelta(days=400)) == 1.0
    assert calculator.predict_retention(card, T0, hours_from_now=10_000) == 1.0


def test_stability_scales_with_interval_and_ease(calculator):
    card = make_card("q1", interval=6, ease_factor=2.6)
    # 6 days * 24h * (2.6 / 2.5)
    assert calculator.stability_hours(card) == pytest.approx(149.76)


def test_stability_floor(calculator):
    card = make_card("q1", CardState.LEARNING, interval=0, repetitions=0, last_review=T0)
    assert calculator.stability_hours(card) == 1.0


def test_retention_formula(calculator):
    # Last review 1 day ago, stability 24h: R = e^-1
    card = make_card(
        "q1", CardState.LEARNING, interval=1, repetitions=1, last_review=T0 - timedelta(days=1)
    )
    assert calculator.predict_retention(card, T0) == pytest.approx(math.exp(-1))


def test_hours_from_now_projects_forward(calculator):
    card = make_card("q1", CardState.LEARNING, interval=1, repetitions=1, last_review=T0)
    assert calculator.predict_retention(card, T0, hours_from_now=12) == pytest.approx(
        math.exp(-0.5)
    )


def test_retention_is_clamped(calculator):
    card = make_card("q1", CardState.LEARNING, interval=1, repetitions=1, last_review=T0)
    # A review in the future must not push retention above 1.
    assert calculator.predict_retention(card, T0 - timedelta(hours=5)) == 1.0
    assert calculator.predict_retention(card, T0 + timedelta(days=3650)) >= 0.0


def test_large_negative_offset_is_full_retention(calculator):
    card = make_card("q1", CardState.LEARNING, interval=1, repetitions=1, last_review=T0)
    assert calculator.predict_retention(card, T0, hours_from_now=-100_000) == 1.0


def test_clock_far_behind_last_review(calculator):
    card = make_card("q1", interval=6, last_review=T0)
    assert calculator.predict_retention(card, T0 - timedelta(days=3650)) == 1.0
    curve = calculator.retention_curve(card, T0 - timedelta(days=3650), days=5)
    assert {p.retention for p in curve} == {1.0}


def test_retention_decreases_monotonically(calculator):
    card = make_card("q1", interval=6, ease_factor=2.5, last_review=T0)
    values = [calculator.predict_retention(card, T0, hours_from_now=h) for h in range(0, 500, 25)]
    assert all(a > b for a, b in zip(values, values[1:]))


class TestRetentionCurve:
    def test_shape(self, calculator):
        card = make_card("q1", interval=6, last_review=T0)
        curve = calculator.retention_curve(card, T0, days=30)

        points = list(curve)

        assert len(curve) == 51
        assert len(points) == 51
        assert points[0].hours_from_review == 0
        assert points[0].retention == pytest.approx(1.0)
        assert points[1].hours_from_review == pytest.approx(30 * 24 / 50)
        assert points[-1].days_from_review == pytest.approx(30)
        assert all(a.retention >= b.retention for a, b in zip(points, points[1:]))

    def test_can_be_iterated_repeatedly(self, calculator):
        card = make_card("q1", last_review=T0)
        curve = RetentionCurve(calculator, card, T0, days=5)
        assert list(curve) == list(curve)

    def test_unreviewed_card_is_flat(self, calculator):
        curve = calculator.retention_curve(Card.new("q1", T0), T0)
        assert {p.retention for p in curve} == {1.0}

    def test_zero_days(self, calculator):
        curve = calculator.retention_curve(make_card("q1", last_review=T0), T0, days=0)
        points = list(curve)
        assert len(points) == 51
        assert all(p.hours_from_review == 0 for p in points)

    def test_negative_days_rejected(self, calculator):
        with pytest.raises(ValueError):
            calculator.retention_curve(make_card("q1"), T0, days=-1)
