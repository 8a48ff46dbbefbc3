from datetime import datetime, timedelta, timezone

import pytest

from mnemo.application.engine import SpacedRepetitionEngine
from mnemo.domain.models import Card, CardState, ReviewRecord
from mnemo.infrastructure.adapters.memory_repository import InMemoryCardRepository
from mnemo.infrastructure.clock import FixedClock

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(T0)


@pytest.fixture
def repo():
    return InMemoryCardRepository()


@pytest.fixture
def engine(repo, clock):
    return SpacedRepetitionEngine(repository=repo, clock=clock)


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and environment overrides
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "MNEMO_STORE_PATH",
        "MNEMO_DUE_LIMIT",
        "MNEMO_UPCOMING_DAYS",
        "MNEMO_CURVE_DAYS",
        "MNEMO_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)
    return home


def make_card(
    card_id: str,
    state: CardState = CardState.REVIEW,
    *,
    interval: int = 6,
    ease_factor: float = 2.5,
    repetitions: int = 2,
    lapses: int = 0,
    due: datetime = T0,
    last_review: datetime | None = None,
    history: list[ReviewRecord] | None = None,
) -> Card:
    """Build a card in an arbitrary scheduling state for tests."""
    if state != CardState.NEW and last_review is None:
        last_review = due - timedelta(days=interval)
    return Card(
        id=card_id,
        next_review_date=due,
        created_at=T0 - timedelta(days=30),
        ease_factor=ease_factor,
        interval=interval,
        repetitions=repetitions,
        last_review_date=last_review,
        review_history=list(history or []),
        state=state,
        lapses=lapses,
    )
