"""Aggregates the per-token revenue fetchers behind a top-level cache."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Sequence

from loguru import logger

from app.domain import RevenueSnapshot
from scraper.revenue import RevenueSource

from .browser import BrowserPool
from .cache import CacheEntry, TTLCache

CACHE_KEY = "revenue"


@dataclass(frozen=True, slots=True)
class RevenueReport:
    """Combined revenue response; ``source`` is live, estimated, or cached."""

    snapshots: tuple[RevenueSnapshot, ...]
    source: str
    cached: bool = False
    scraped_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    cache_age_seconds: float | None = None
    next_refresh_seconds: float | None = None

    @property
    def live_count(self) -> int:
        return sum(1 for snapshot in self.snapshots if snapshot.is_live)

    @property
    def live_count_label(self) -> str:
        return f"{self.live_count}/{len(self.snapshots)}"


class RevenueService:
    """Run every fetcher in order inside one browser session.

    A fresh cached report is returned as-is. When the browser cannot start,
    the last report (however stale) is served, then configured estimates.
    """

    def __init__(
        self,
        pool: BrowserPool,
        sources: Sequence[RevenueSource],
        cache: TTLCache[str, RevenueReport],
    ) -> None:
        if not sources:
            raise ValueError("RevenueService needs at least one source")
        self.pool = pool
        self.sources = tuple(sources)
        self.cache = cache
        self._refresh_lock = threading.Lock()

    def get_revenue(self, *, refresh: bool = False) -> RevenueReport:
        if not refresh:
            hit = self._fresh_hit()
            if hit is not None:
                return hit

        with self._refresh_lock:
            # Another request may have refreshed while this one waited.
            if not refresh:
                hit = self._fresh_hit()
                if hit is not None:
                    return hit
            try:
                snapshots = self._fetch_all()
            except Exception:  # noqa: BLE001
                logger.exception("Revenue scrape failed as a whole")
                return self._fallback()

            report = RevenueReport(
                snapshots=snapshots,
                source="live" if any(s.is_live for s in snapshots) else "estimated",
            )
            logger.info("Revenue refreshed: {} live", report.live_count_label)
            if report.live_count:
                self.cache.put(CACHE_KEY, report)
            return report

    def _fresh_hit(self) -> RevenueReport | None:
        entry = self.cache.entry(CACHE_KEY)
        now = self.cache.now()
        if entry is None or not entry.is_fresh(now):
            return None
        logger.info("Revenue served from cache (age {:.0f}s)", entry.age(now))
        return self._from_entry(entry, now, source=entry.payload.source)

    def _from_entry(
        self, entry: CacheEntry[RevenueReport], now: float, *, source: str
    ) -> RevenueReport:
        return replace(
            entry.payload,
            source=source,
            cached=True,
            cache_age_seconds=entry.age(now),
            next_refresh_seconds=entry.remaining(now),
        )

    def _fetch_all(self) -> tuple[RevenueSnapshot, ...]:
        results: dict[str, RevenueSnapshot] = {}
        browser_sources = [source for source in self.sources if source.requires_browser]
        if browser_sources:
            with self.pool.session() as session:
                for source in browser_sources:
                    results[source.symbol] = source.resolve(session)
        for source in self.sources:
            if not source.requires_browser:
                results[source.symbol] = source.resolve(None)
        return tuple(results[source.symbol] for source in self.sources)

    def _fallback(self) -> RevenueReport:
        entry = self.cache.entry(CACHE_KEY)
        if entry is not None:
            logger.warning("Serving stale revenue from cache")
            return self._from_entry(entry, self.cache.now(), source="cached")
        logger.warning("No cached revenue; serving configured estimates")
        return RevenueReport(
            snapshots=tuple(source.estimate() for source in self.sources),
            source="estimated",
        )

    def close(self) -> None:
        for source in self.sources:
            source.close()


__all__ = ["CACHE_KEY", "RevenueReport", "RevenueService"]
