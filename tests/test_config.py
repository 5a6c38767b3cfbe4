"""Tests for settings and logging configuration."""

from loguru import logger

from banker.config import load_settings
from banker.database.factories import resolve_database_path
from banker.logging_config import configure_logging

ENV_VARS = ("BANKER_DB_PATH", "BANKER_LOG_LEVEL", "SYNC_VERBOSE", "SYNC_PREVIEW_LIMIT")


def _clear_env(monkeypatch):
    # setenv first so the variables are removed again after the test
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def test_defaults(monkeypatch, tmp_path):
    """Without configuration the defaults apply."""
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)

    settings = load_settings()

    assert settings.db_path is None
    assert settings.log_level == "INFO"
    assert settings.verbose is False
    assert settings.preview_limit == 5


def test_environment_values(monkeypatch, tmp_path):
    """Environment variables override the defaults."""
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("BANKER_DB_PATH", "/tmp/banker-test.db")
    monkeypatch.setenv("BANKER_LOG_LEVEL", "warning")
    monkeypatch.setenv("SYNC_VERBOSE", "true")
    monkeypatch.setenv("SYNC_PREVIEW_LIMIT", "12")

    settings = load_settings()

    assert settings.db_path == "/tmp/banker-test.db"
    assert settings.log_level == "WARNING"
    assert settings.verbose is True
    assert settings.preview_limit == 12


def test_env_local_file(monkeypatch, tmp_path):
    """.env.local in the working directory is read."""
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env.local").write_text("SYNC_PREVIEW_LIMIT=7\n", encoding="utf-8")

    assert load_settings().preview_limit == 7


def test_bad_preview_limit(monkeypatch, tmp_path):
    """An unparseable preview limit falls back to the default."""
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SYNC_PREVIEW_LIMIT", "many")

    assert load_settings().preview_limit == 5


def test_resolve_database_path(monkeypatch):
    """Explicit paths win over the environment."""
    monkeypatch.setenv("BANKER_DB_PATH", "/tmp/from-env.db")

    assert resolve_database_path("/tmp/explicit.db") == "/tmp/explicit.db"
    assert resolve_database_path() == "/tmp/from-env.db"


def test_configure_logging_level(capsys):
    """Records below the configured level are dropped."""
    configure_logging(level="WARNING")
    logger.info("hidden message")
    logger.warning("shown message")

    err = capsys.readouterr().err
    assert "shown message" in err
    assert "hidden message" not in err
    assert "[WARNING]" in err


def test_configure_logging_verbose(capsys):
    """Verbose mode logs debug records."""
    configure_logging(level="WARNING", verbose=True)
    logger.debug("debug message")

    assert "debug message" in capsys.readouterr().err
