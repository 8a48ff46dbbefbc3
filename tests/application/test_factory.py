import pytest

from mnemo.application.config import resolve_config
from mnemo.application.factory import build_engine, get_card_repository
from mnemo.application.id_service import generate_card_id
from mnemo.domain.errors import StorageError
from mnemo.infrastructure.adapters.json_repository import JsonFileCardRepository
from mnemo.infrastructure.clock import FixedClock

from conftest import T0


def test_repository_points_at_configured_store(mock_home, tmp_path):
    config = resolve_config({"store_path": tmp_path / "cards.json"})
    repo = get_card_repository(config)
    assert isinstance(repo, JsonFileCardRepository)
    assert repo.path == tmp_path / "cards.json"


def test_built_engines_share_the_store_file(mock_home, tmp_path):
    config = resolve_config({"store_path": tmp_path / "cards.json"})

    first = build_engine(config, clock=FixedClock(T0))
    first.review_card(first.get_or_create_card("q1"), 5)

    second = build_engine(config, clock=FixedClock(T0))
    assert second.get_card("q1").repetitions == 1


def test_corrupt_store_fails_fast(mock_home, tmp_path):
    path = tmp_path / "cards.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(StorageError):
        build_engine(resolve_config({"store_path": path}))


def test_generated_ids_are_unique_and_prefixed():
    ids = {generate_card_id() for _ in range(100)}
    assert len(ids) == 100
    assert all(i.startswith("card_") for i in ids)
