from __future__ import annotations

import threading

import pytest

from app.domain import Confidence
from app.services.cache import TTLCache
from app.services.revenue_service import CACHE_KEY, RevenueService
from scraper.errors import SourceUnavailableError
from scraper.revenue import RevenueSource, build_snapshot


class StubSource(RevenueSource):
    name = "stub"

    def __init__(
        self,
        settings,
        symbol: str,
        *,
        weekly: float = 1_000.0,
        error: Exception | None = None,
        requires_browser: bool = True,
    ) -> None:
        super().__init__(settings)
        self.symbol = symbol
        self.weekly = weekly
        self.error = error
        self.requires_browser = requires_browser
        self.sessions: list[object] = []

    def fetch_live(self, session):
        self.sessions.append(session)
        if self.error is not None:
            raise self.error
        return build_snapshot(
            self.symbol,
            weekly_revenue=self.weekly,
            annual_revenue=self.weekly * 52,
            accrual_fraction=0.5,
            confidence=Confidence.LIVE,
            source=self.name,
        )


@pytest.fixture
def sources(test_settings) -> list[StubSource]:
    return [
        StubSource(test_settings, "PUMP", weekly=7_000),
        StubSource(test_settings, "RLB", weekly=5_000),
        StubSource(test_settings, "HYPE", weekly=20_000, requires_browser=False),
    ]


@pytest.fixture
def service_and_launcher(make_pool, sources, test_settings, clock):
    pool, launcher = make_pool()
    cache = TTLCache(test_settings.revenue_cache_ttl_seconds, clock=clock)
    return RevenueService(pool, sources, cache), launcher


def test_one_failing_source_is_estimated_alone(service_and_launcher, sources):
    service, launcher = service_and_launcher
    sources[1].error = SourceUnavailableError("layout changed")

    report = service.get_revenue()

    assert [s.token_symbol for s in report.snapshots] == ["PUMP", "RLB", "HYPE"]
    assert [s.confidence for s in report.snapshots] == [
        Confidence.LIVE,
        Confidence.ESTIMATED,
        Confidence.LIVE,
    ]
    assert report.live_count_label == "2/3"
    assert report.source == "live"
    assert not report.cached
    assert launcher.launches == 1


def test_browser_sources_share_one_session(service_and_launcher, sources):
    service, _ = service_and_launcher

    service.get_revenue()

    pump_session, rlb_session = sources[0].sessions[0], sources[1].sessions[0]
    assert pump_session is rlb_session
    assert sources[2].sessions == [None]


def test_fresh_report_is_served_from_cache(service_and_launcher, clock):
    service, launcher = service_and_launcher
    first = service.get_revenue()
    clock.advance(60)

    second = service.get_revenue()

    assert second.cached
    assert second.snapshots == first.snapshots
    assert second.cache_age_seconds == 60
    assert second.next_refresh_seconds == service.cache.ttl - 60
    assert launcher.launches == 1


def test_refresh_bypasses_fresh_cache(service_and_launcher):
    service, launcher = service_and_launcher
    service.get_revenue()

    report = service.get_revenue(refresh=True)

    assert not report.cached
    assert launcher.launches == 2


def test_total_failure_serves_stale_cache(service_and_launcher, clock):
    service, launcher = service_and_launcher
    first = service.get_revenue()
    clock.advance(service.cache.ttl * 3)
    launcher.error = OSError("chromium crashed")

    report = service.get_revenue()

    assert report.cached
    assert report.source == "cached"
    assert report.snapshots == first.snapshots
    assert report.cache_age_seconds == service.cache.ttl * 3


def test_total_failure_without_cache_serves_estimates(make_pool, sources, clock, test_settings):
    pool, _ = make_pool(error=OSError("chromium missing"))
    service = RevenueService(pool, sources, TTLCache(60, clock=clock))

    report = service.get_revenue()

    assert not report.cached
    assert report.source == "estimated"
    assert report.live_count_label == "0/3"
    assert [s.token_symbol for s in report.snapshots] == ["PUMP", "RLB", "HYPE"]
    for snapshot in report.snapshots:
        estimate = test_settings.revenue_estimate(snapshot.token_symbol)
        assert snapshot.weekly_revenue == estimate["weekly_revenue"]
        assert 0 <= snapshot.accrual_fraction <= 1


def test_all_estimated_reports_are_not_cached(service_and_launcher, sources):
    service, launcher = service_and_launcher
    for source in sources:
        source.error = RuntimeError("down")

    report = service.get_revenue()

    assert report.source == "estimated"
    assert service.cache.entry(CACHE_KEY) is None
    service.get_revenue()
    assert launcher.launches == 2


def test_service_requires_sources(make_pool, clock):
    pool, _ = make_pool()
    with pytest.raises(ValueError):
        RevenueService(pool, [], TTLCache(60, clock=clock))


class BlockingSource(StubSource):
    def __init__(self, settings, symbol: str) -> None:
        super().__init__(settings, symbol)
        self.started = threading.Event()
        self.release = threading.Event()

    def fetch_live(self, session):
        self.started.set()
        self.release.wait(timeout=5)
        return super().fetch_live(session)


def test_concurrent_requests_share_one_refresh(make_pool, test_settings, clock):
    pool, launcher = make_pool()
    source = BlockingSource(test_settings, "PUMP")
    service = RevenueService(pool, [source], TTLCache(60, clock=clock))
    reports = []

    first = threading.Thread(target=lambda: reports.append(service.get_revenue()))
    first.start()
    assert source.started.wait(timeout=5)
    second = threading.Thread(target=lambda: reports.append(service.get_revenue()))
    second.start()
    source.release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert launcher.launches == 1
    assert len(source.sessions) == 1
    assert sorted(report.cached for report in reports) == [False, True]
