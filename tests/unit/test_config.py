"""Unit tests for settings loading and logging setup."""

import logging

import pytest
from pydantic import ValidationError

from clubrank.config import Settings
from clubrank.logging_config import setup_logging


def test_defaults(monkeypatch):
    monkeypatch.delenv("CLUBRANK_NEWS_LIMIT", raising=False)
    settings = Settings(_env_file=None)

    assert settings.elo_k_factor == 32
    assert settings.elo_default_rating == 1500
    assert settings.news_limit == 5
    assert settings.guard_rating_reapply is True


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("CLUBRANK_NEWS_LIMIT", "8")
    monkeypatch.setenv("CLUBRANK_GUARD_RATING_REAPPLY", "false")

    settings = Settings(_env_file=None)

    assert settings.news_limit == 8
    assert settings.guard_rating_reapply is False


def test_log_level_normalized():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


@pytest.mark.parametrize(
    "overrides",
    [{"log_level": "LOUD"}, {"log_format": "json"}, {"elo_k_factor": 0}, {"news_limit": 0}],
)
def test_invalid_values_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_setup_logging_sets_root_level():
    root = logging.getLogger()
    saved_level, saved_handlers = root.level, list(root.handlers)
    try:
        setup_logging(level="warning", log_format="plain")
        assert root.level == logging.WARNING
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)


def test_setup_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        setup_logging(level="chatty")
