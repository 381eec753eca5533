from __future__ import annotations

import sys
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
for path in (TESTS_DIR.parent, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

import pytest

from app.core.config import Settings
from app.services.browser import BrowserPool
from fakes import FakeClock, FakeLauncher


@pytest.fixture
def test_settings(monkeypatch) -> Settings:
    settings = Settings(
        navigation_timeout_ms=1_000,
        draw_read_timeout_ms=100,
        settle_wait_ms=0,
        interaction_wait_ms=0,
        poll_interval_ms=50,
        browser_acquire_timeout_seconds=1,
        http_timeout_seconds=1,
        revenue_api_key=None,
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_pool(test_settings):
    """Build a ``BrowserPool`` whose pages come from ``page_factory``."""

    def _make(page_factory=None, *, error: Exception | None = None):
        launcher = FakeLauncher(page_factory, error=error)
        pool = BrowserPool.from_settings(test_settings, launcher=launcher)
        return pool, launcher

    return _make
