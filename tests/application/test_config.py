"""Tests for layered configuration resolution."""

import os
from pathlib import Path

import pytest

from cadence.application import config as config_module
from cadence.application.config import AppConfig, resolve_config
from cadence.application.factory import build_study_service, get_card_repository
from cadence.domain.errors import ConfigurationError
from cadence.infrastructure.adapters.memory_repository import InMemoryCardRepository
from cadence.infrastructure.adapters.yaml_deck import YamlDeckRepository


@pytest.fixture(autouse=True)
def isolated_config_files(mock_home, monkeypatch):
    files = [mock_home / ".config/cadence/config.toml", mock_home / ".cadence.toml"]
    monkeypatch.setattr(config_module, "CONFIG_FILES", files)
    for name in list(os.environ):
        if name.startswith("CADENCE_"):
            monkeypatch.delenv(name)
    return files


def test_defaults_produce_default_scheduling_config():
    cfg = resolve_config()

    sched = cfg.scheduling_config()
    assert sched.learning_steps == (1, 10)
    assert sched.easy_interval == 4
    assert sched.ease_factor_change.hard == -0.15


def test_env_overrides_defaults(monkeypatch):
    monkeypatch.setenv("CADENCE_EASY_INTERVAL", "6")
    monkeypatch.setenv("CADENCE_LEARNING_STEPS", "[1, 5, 15]")

    cfg = resolve_config()

    assert cfg.easy_interval == 6
    assert cfg.scheduling_config().learning_steps == (1, 5, 15)


def test_toml_file_is_read(isolated_config_files):
    path = isolated_config_files[0]
    path.parent.mkdir(parents=True)
    path.write_text('hard_multiplier = 1.5\nbackend = "memory"\n')

    cfg = resolve_config()

    assert cfg.hard_multiplier == 1.5
    assert cfg.backend == "memory"


def test_cli_overrides_beat_env(monkeypatch):
    monkeypatch.setenv("CADENCE_PORT", "9000")

    cfg = resolve_config({"port": 9100, "host": None})

    assert cfg.port == 9100
    assert cfg.host == "127.0.0.1"


def test_deck_path_is_resolved(tmp_path):
    cfg = resolve_config({"deck_path": str(tmp_path / "sub" / ".." / "deck.yaml")})
    assert cfg.deck_path == (tmp_path / "deck.yaml").resolve()
    assert isinstance(cfg.deck_path, Path)


def test_invalid_scheduling_values_raise_configuration_error():
    cfg = AppConfig(min_ease_factor=3.0, max_ease_factor=2.0)
    with pytest.raises(ConfigurationError):
        cfg.scheduling_config()


def test_empty_learning_steps_fail_at_setup():
    with pytest.raises(ConfigurationError):
        build_study_service(AppConfig(learning_steps=[], backend="memory"))


def test_repository_selection(tmp_path):
    assert isinstance(get_card_repository(AppConfig(backend="memory")), InMemoryCardRepository)

    repo = get_card_repository(AppConfig(deck_path=tmp_path / "d.yaml"))
    assert isinstance(repo, YamlDeckRepository)
    assert repo.path == (tmp_path / "d.yaml").resolve()
