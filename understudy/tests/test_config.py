"""Tests for settings loading and logging configuration."""

import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from understudy.config import Settings, configure_logging, load_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run every test away from any real .env file or UNDERSTUDY_* variable."""
    monkeypatch.chdir(tmp_path)
    for name in ("AUTO_RESET", "MAX_REPORTED_CALLS", "LOG_LEVEL", "LOG_FORMAT", "DEBUG"):
        monkeypatch.delenv(f"UNDERSTUDY_{name}", raising=False)


@pytest.fixture
def restore_library_logger():
    logger = logging.getLogger("understudy")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    logger.handlers[:], logger.level, logger.propagate = saved


def test_defaults() -> None:
    settings = load_settings()

    assert settings.auto_reset is True
    assert settings.max_reported_calls == 10
    assert settings.log_level == "WARNING"
    assert settings.log_format == "text"
    assert settings.debug is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNDERSTUDY_AUTO_RESET", "false")
    monkeypatch.setenv("UNDERSTUDY_MAX_REPORTED_CALLS", "3")
    monkeypatch.setenv("UNDERSTUDY_LOG_FORMAT", "json")

    settings = load_settings()

    assert settings.auto_reset is False
    assert settings.max_reported_calls == 3
    assert settings.log_format == "json"


def test_env_file(tmp_path: Path) -> None:
    env_file = tmp_path / "understudy.env"
    env_file.write_text("UNDERSTUDY_DEBUG=true\nUNDERSTUDY_LOG_LEVEL=DEBUG\n")

    settings = load_settings(str(env_file))

    assert settings.debug is True
    assert settings.log_level == "DEBUG"


def test_report_limit_must_be_positive() -> None:
    with pytest.raises(ValidationError, match="max_reported_calls must be positive"):
        Settings(max_reported_calls=0)


def test_unknown_log_level_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UNDERSTUDY_LOG_LEVEL", "LOUD")

    with pytest.raises(ValidationError):
        load_settings()


def test_configure_logging_owns_library_logger(restore_library_logger: logging.Logger) -> None:
    configure_logging("DEBUG", "json")
    configure_logging("DEBUG", "json")

    logger = restore_library_logger
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert len(logger.handlers) == 1
    assert '"level": "%(levelname)s"' in logger.handlers[0].formatter._fmt
