"""Structured API revenue fetcher (daily revenue series over JSON)."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

import httpx
from dateutil import parser as date_parser
from loguru import logger

from app.core.config import Settings
from app.domain import Confidence, RevenueSnapshot

from ..errors import SourceUnavailableError
from .base import DAYS_PER_WEEK, DAYS_PER_YEAR, BrowserSession, RevenueSource, build_snapshot

_SERIES_KEYS = ("totalDataChart", "data", "series", "values", "result")
_VALUE_KEYS = ("value", "revenue", "dailyRevenue", "total", "val")
_TIME_KEYS = ("timestamp", "date", "time", "ts", "day")


def _as_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_sort_key(value: Any) -> float | None:
    number = _as_float(value)
    if number is not None:
        return number
    if isinstance(value, str):
        try:
            parsed: datetime = date_parser.parse(value)
        except (ValueError, OverflowError):
            return None
        return parsed.timestamp()
    return None


def _point(item: Any) -> tuple[float | None, float] | None:
    if isinstance(item, (list, tuple)) and len(item) >= 2:
        value = _as_float(item[1])
        return None if value is None else (_as_sort_key(item[0]), value)
    if isinstance(item, dict):
        value = next(
            (_as_float(item[key]) for key in _VALUE_KEYS if key in item), None
        )
        if value is None:
            return None
        moment = next((item[key] for key in _TIME_KEYS if key in item), None)
        return _as_sort_key(moment), value
    value = _as_float(item)
    return None if value is None else (None, value)


def extract_series(payload: Any) -> list[float]:
    """Return the daily values in chronological order.

    Accepts a bare list of points, or an object carrying one under a known
    key. Points may be ``[timestamp, value]`` pairs, objects, or bare numbers.
    """

    items: Iterable[Any] | None = None
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        for key in _SERIES_KEYS:
            candidate = payload.get(key)
            if isinstance(candidate, list):
                items = candidate
                break
    if not items:
        return []

    points = [point for point in (_point(item) for item in items) if point is not None]
    if points and all(moment is not None for moment, _ in points):
        points.sort(key=lambda point: point[0])
    return [value for _, value in points]


def daily_rate(values: list[float], *, window: int = DAYS_PER_WEEK) -> float:
    """Average of the most recent ``window`` values."""

    if not values:
        raise SourceUnavailableError("Revenue series is empty")
    recent = values[-window:]
    if len(recent) < window:
        logger.warning(
            "Revenue series has only {} points; averaging what is available", len(recent)
        )
    return sum(recent) / len(recent)


class StructuredApiRevenueSource(RevenueSource):
    """HYPE revenue from a JSON endpoint with a fixed accrual fraction."""

    symbol = "HYPE"
    name = "api"
    requires_browser = False

    def __init__(
        self,
        settings: Settings,
        *,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(settings)
        self.url = str(settings.hype_revenue_api_url)
        self.accrual_fraction = settings.hype_accrual_fraction
        self.client = client or httpx.Client(
            timeout=settings.http_timeout_seconds,
            headers={"Accept": "application/json", "User-Agent": settings.user_agent},
        )

    def _headers(self) -> dict[str, str]:
        if not self.settings.revenue_api_key:
            return {}
        return {self.settings.revenue_api_key_header: self.settings.revenue_api_key}

    def fetch_live(self, session: BrowserSession | None = None) -> RevenueSnapshot:
        logger.info("Fetching {} revenue series from {}", self.symbol, self.url)
        try:
            response = self.client.get(self.url, headers=self._headers())
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SourceUnavailableError(f"revenue API request failed: {exc}") from exc

        daily = daily_rate(extract_series(payload))
        if daily <= 0:
            raise SourceUnavailableError(f"non-positive daily revenue {daily}")
        return build_snapshot(
            self.symbol,
            weekly_revenue=daily * DAYS_PER_WEEK,
            annual_revenue=daily * DAYS_PER_YEAR,
            accrual_fraction=self.accrual_fraction,
            confidence=Confidence.LIVE,
            source=self.name,
        )

    def close(self) -> None:
        self.client.close()


__all__ = ["StructuredApiRevenueSource", "daily_rate", "extract_series"]
