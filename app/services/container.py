"""Process-wide wiring of caches, the browser pool, and services."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from app.core.config import Settings
from app.domain import DrawSnapshot
from scraper.draws import BrowserDrawSource
from scraper.graphql import GraphQLDrawSource, LotteryGraphQLClient
from scraper.revenue import build_sources

from .browser import BrowserLauncher, BrowserPool
from .cache import TTLCache
from .lottery_service import DEFAULT_METHOD, LotteryService
from .revenue_service import RevenueReport, RevenueService


@dataclass
class ServiceContainer:
    settings: Settings
    pool: BrowserPool
    lottery: LotteryService
    revenue: RevenueService
    graphql_client: LotteryGraphQLClient

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        launcher: BrowserLauncher | None = None,
        graphql_client: LotteryGraphQLClient | None = None,
    ) -> "ServiceContainer":
        pool = BrowserPool.from_settings(settings, launcher=launcher)
        graphql_client = graphql_client or LotteryGraphQLClient(settings=settings)

        draw_cache: TTLCache[int, DrawSnapshot] = TTLCache(settings.draw_cache_ttl_seconds)
        lottery = LotteryService(
            draw_cache,
            {
                DEFAULT_METHOD: BrowserDrawSource(pool, settings),
                "graphql": GraphQLDrawSource(graphql_client),
            },
        )

        revenue_cache: TTLCache[str, RevenueReport] = TTLCache(
            settings.revenue_cache_ttl_seconds
        )
        revenue = RevenueService(pool, build_sources(settings), revenue_cache)

        logger.info(
            "Services ready (draw ttl {}s, revenue ttl {}s)",
            settings.draw_cache_ttl_seconds,
            settings.revenue_cache_ttl_seconds,
        )
        return cls(
            settings=settings,
            pool=pool,
            lottery=lottery,
            revenue=revenue,
            graphql_client=graphql_client,
        )

    def close(self) -> None:
        self.revenue.close()
        self.graphql_client.close()


__all__ = ["ServiceContainer"]
