"""Contracts shared by the per-token revenue fetchers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from app.core.config import Settings
from app.domain import Confidence, RevenueSnapshot

from ..errors import BrowserUnavailableError, SourceUnavailableError

if TYPE_CHECKING:
    from app.services.browser import BrowserSession
else:  # pragma: no cover - runtime import cycle guard
    BrowserSession = Any  # type: ignore[assignment]

DAYS_PER_WEEK = 7
DAYS_PER_YEAR = 365


def build_snapshot(
    symbol: str,
    *,
    weekly_revenue: float,
    annual_revenue: float,
    accrual_fraction: float,
    confidence: Confidence,
    source: str | None,
) -> RevenueSnapshot:
    """Derive holder earnings from revenue and wrap everything in a snapshot."""

    return RevenueSnapshot(
        token_symbol=symbol,
        weekly_revenue=float(weekly_revenue),
        annual_revenue=float(annual_revenue),
        weekly_earnings=float(weekly_revenue) * accrual_fraction,
        annual_earnings=float(annual_revenue) * accrual_fraction,
        accrual_fraction=accrual_fraction,
        confidence=confidence,
        source=source,
    )


def estimated_snapshot(symbol: str, settings: Settings) -> RevenueSnapshot:
    """Configured fallback figures for ``symbol`` tagged as estimated."""

    estimate = settings.revenue_estimate(symbol)
    weekly = estimate["weekly_revenue"]
    return build_snapshot(
        symbol.upper(),
        weekly_revenue=weekly,
        annual_revenue=weekly * 52,
        accrual_fraction=estimate["accrual_fraction"],
        confidence=Confidence.ESTIMATED,
        source="estimate",
    )


class RevenueSource:
    """One token's revenue fetcher.

    Subclasses implement :meth:`fetch_live`; :meth:`resolve` turns any failure
    into the configured estimate so one token never aborts the others.
    """

    symbol: str = ""
    name: str = ""
    requires_browser: bool = True

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def fetch_live(self, session: BrowserSession | None) -> RevenueSnapshot:
        """Return a live snapshot or raise :class:`SourceUnavailableError`."""

        raise NotImplementedError

    def estimate(self) -> RevenueSnapshot:
        return estimated_snapshot(self.symbol, self.settings)

    def resolve(self, session: BrowserSession | None) -> RevenueSnapshot:
        if self.requires_browser and session is None:
            logger.warning("{} needs a browser session; using estimate", self.symbol)
            return self.estimate()
        try:
            snapshot = self.fetch_live(session)
        except BrowserUnavailableError:
            raise
        except SourceUnavailableError as exc:
            logger.warning("{} revenue via {} unavailable: {}", self.symbol, self.name, exc)
            return self.estimate()
        except Exception:  # noqa: BLE001
            logger.exception("{} revenue via {} failed", self.symbol, self.name)
            return self.estimate()
        logger.info(
            "{} revenue via {}: weekly={:.2f} accrual={:.4f}",
            self.symbol,
            self.name,
            snapshot.weekly_revenue,
            snapshot.accrual_fraction,
        )
        return snapshot

    def close(self) -> None:
        """Release resources held by the fetcher."""


__all__ = [
    "DAYS_PER_WEEK",
    "DAYS_PER_YEAR",
    "RevenueSource",
    "build_snapshot",
    "estimated_snapshot",
]
