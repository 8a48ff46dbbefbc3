from pathlib import Path

import pytest
from pydantic import ValidationError

from mnemo.application.config import AppConfig, resolve_config


def test_defaults(mock_home):
    config = resolve_config()

    assert config.store_path == mock_home / ".config/mnemo/store.json"
    assert config.due_limit == 20
    assert config.upcoming_days == 7
    assert config.curve_days == 30
    assert config.log_level == "WARNING"


def test_toml_file_is_loaded(mock_home):
    cfg_dir = mock_home / ".config/mnemo"
    cfg_dir.mkdir(parents=True)
    (cfg_dir / "config.toml").write_text('due_limit = 5\nstore_path = "~/cards.json"\n')

    config = resolve_config()

    assert config.due_limit == 5
    assert config.store_path == mock_home / "cards.json"


def test_home_dotfile_is_fallback(mock_home):
    (mock_home / ".mnemo.toml").write_text("upcoming_days = 3\n")
    assert resolve_config().upcoming_days == 3


def test_env_beats_toml(mock_home, monkeypatch):
    (mock_home / ".mnemo.toml").write_text("due_limit = 5\n")
    monkeypatch.setenv("MNEMO_DUE_LIMIT", "9")

    assert resolve_config().due_limit == 9


def test_overrides_beat_env(mock_home, monkeypatch):
    monkeypatch.setenv("MNEMO_DUE_LIMIT", "9")
    assert resolve_config({"due_limit": 2}).due_limit == 2


def test_none_overrides_are_ignored(mock_home, monkeypatch):
    monkeypatch.setenv("MNEMO_DUE_LIMIT", "9")
    assert resolve_config({"due_limit": None}).due_limit == 9


def test_store_path_expands_user(mock_home):
    config = resolve_config({"store_path": "~/elsewhere.json"})
    assert config.store_path == mock_home / "elsewhere.json"
    assert isinstance(config.store_path, Path)


@pytest.mark.parametrize(
    "field, value",
    [("due_limit", 0), ("upcoming_days", -1), ("curve_days", 0), ("log_level", "LOUD")],
)
def test_invalid_values_rejected(mock_home, field, value):
    with pytest.raises(ValidationError):
        AppConfig(**{field: value})
