from __future__ import annotations

from pathlib import Path

import pytest

from jobmail.config import Settings


def test_settings_defaults_under_home(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("JOBMAIL_HOME", str(tmp_path))
    for name in ["JOBMAIL_DATA_DIR", "JOBMAIL_DB_PATH", "JOBMAIL_MAX_RESULTS", "JOBMAIL_RECENCY_FILTER"]:
        monkeypatch.delenv(name, raising=False)

    settings = Settings.load()

    assert settings.root_dir == tmp_path.resolve()
    assert settings.db_path == (tmp_path / "data" / "jobmail.sqlite3").resolve()
    assert settings.max_results == 100
    assert settings.recency_filter == "newer_than:5d"


def test_settings_reads_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("JOBMAIL_HOME", str(tmp_path))
    monkeypatch.setenv("JOBMAIL_MAX_RESULTS", "25")
    monkeypatch.setenv("JOBMAIL_RECENCY_FILTER", "newer_than:2d label:jobs")
    monkeypatch.setenv("JOBMAIL_TIMEZONE", "America/New_York")

    settings = Settings.load()

    assert settings.max_results == 25
    assert settings.recency_filter == "newer_than:2d label:jobs"
    assert settings.resolve_timezone() is not None


def test_settings_rejects_non_positive_max_results(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("JOBMAIL_HOME", str(tmp_path))
    monkeypatch.setenv("JOBMAIL_MAX_RESULTS", "0")

    with pytest.raises(ValueError):
        Settings.load()


def test_unknown_timezone_is_reported(settings) -> None:  # noqa: ANN001
    settings.timezone = "Mars/Olympus_Mons"
    with pytest.raises(ValueError):
        settings.resolve_timezone()
