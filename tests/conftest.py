# tests/conftest.py — v2
"""Shared test fixtures for all unit and integration tests.

Provides an isolated home directory, settings pointing at tmp_path cache
and log directories, a controllable clock, and a ready CacheEngine.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from vanish.config.settings import Settings, load_settings
from vanish.core.models import CacheEntry
from vanish.engine.cache_engine import CacheEngine
from vanish.logging.audit import AuditLog


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current = self.current + timedelta(**kwargs)


# === FIXTURES: Environment ===


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir and drop any VANISH_* variables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    for key in list(os.environ):
        if key.startswith("VANISH_"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    path = tmp_path / "work"
    path.mkdir()
    return path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def settings(tmp_path: Path, cache_dir: Path, log_dir: Path) -> Settings:
    """Settings with absolute tmp_path directories and the debug JSON ledger on."""
    return load_settings(
        tmp_path / "absent.toml",
        cache={"directory": str(cache_dir), "days": 10},
        logging={"directory": str(log_dir), "level": "debug"},
        behavior={"auto_confirm": True},
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2026, 3, 14, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def engine(settings: Settings, clock: FixedClock):
    eng = CacheEngine(settings, clock=clock)
    yield eng
    eng.close()


@pytest.fixture
def audit(log_dir: Path):
    log = AuditLog(log_dir, level="debug")
    yield log
    log.close()


# === FIXTURES: Sample data ===


@pytest.fixture
def make_file(work_dir: Path):
    """Factory writing a file under work_dir and returning its path."""

    def _make(name: str, content: str = "hello", mode: int | None = None) -> Path:
        path = work_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        if mode is not None:
            path.chmod(mode)
        return path

    return _make


@pytest.fixture
def sample_entry() -> CacheEntry:
    """Minimal valid CacheEntry for testing."""
    return CacheEntry(
        id="1700000000000000000",
        original_path="/home/user/docs/report.txt",
        delete_time=datetime(2026, 3, 10, 9, 30, 0, tzinfo=timezone.utc),
        cache_path="/home/user/.cache/vanish/1700000000000000000-2026-03-10-09-30-00-report.txt",
        size_bytes=42,
    )
