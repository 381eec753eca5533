"""Scraped revenue with a per-category breakdown (RLB buy-and-burn page)."""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any, Mapping

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from app.core.config import Settings
from app.domain import Confidence, RevenueSnapshot

from .. import pages
from ..errors import SourceUnavailableError
from ..extract import find_labeled_amount, money_values
from .base import DAYS_PER_WEEK, DAYS_PER_YEAR, BrowserSession, RevenueSource, build_snapshot

_COMBINED_RE = re.compile(
    r"(?:(?P<days>\d+)\s*(?:d|days?)\s+)?combined\s+revenue", re.IGNORECASE
)
_PERIOD_CONTROL_RE = re.compile(r"^\s*(?:30\s*(?:d|days?)?|month(?:ly)?)\s*$", re.IGNORECASE)

CATEGORY_LABELS: dict[str, str] = {
    "casino": r"\bcasino\b",
    "trading": r"\b(?:crypto\s*)?(?:futures|trading)\b",
    "sports": r"\bsports(?:book)?\b",
}

DEFAULT_PERIOD_DAYS = 30


def find_combined_revenue(text: str, *, window: int = 80) -> tuple[Decimal, int] | None:
    """Return the ``N Days Combined Revenue`` figure and its period length."""

    for match in _COMBINED_RE.finditer(text or ""):
        values = money_values(text[match.end() : match.end() + window])
        positive = [value for value in values if value > 0]
        if not positive:
            continue
        days = int(match.group("days")) if match.group("days") else DEFAULT_PERIOD_DAYS
        return positive[0], max(days, 1)
    return None


def find_category_revenues(
    text: str, categories: Mapping[str, str] = CATEGORY_LABELS
) -> dict[str, Decimal | None]:
    return {
        name: find_labeled_amount(text, pattern, require_currency=True)
        for name, pattern in categories.items()
    }


def blended_accrual(
    revenues: Mapping[str, Decimal | None],
    accruals: Mapping[str, float],
    total: Decimal,
) -> float | None:
    """``sum(category_revenue * category_accrual) / total_revenue``.

    Returns ``None`` unless every configured category was extracted. The
    denominator never drops below the category sum, keeping the result in [0, 1].
    """

    if not accruals:
        return None
    picked: list[tuple[Decimal, float]] = []
    for category, fraction in accruals.items():
        revenue = revenues.get(category)
        if revenue is None or revenue < 0:
            return None
        picked.append((revenue, fraction))
    category_sum = sum((revenue for revenue, _ in picked), Decimal("0"))
    denominator = max(total, category_sum)
    if denominator <= 0:
        return None
    weighted = sum((revenue * Decimal(str(fraction)) for revenue, fraction in picked), Decimal("0"))
    return float(weighted / denominator)


class BreakdownRevenueSource(RevenueSource):
    """RLB revenue from the combined figure plus casino/trading/sports split."""

    symbol = "RLB"
    name = "breakdown"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.url = str(settings.rollbit_revenue_url)
        self.category_accruals = dict(settings.rollbit_category_accruals)
        self.default_accrual = settings.rollbit_default_accrual

    def fetch_live(self, session: BrowserSession | None) -> RevenueSnapshot:
        with session.page() as page:
            pages.load(
                page,
                self.url,
                timeout_ms=self.settings.navigation_timeout_ms,
                settle_ms=self.settings.settle_wait_ms,
            )
            self._select_period(page)
            text = pages.read_text(page)
        return self.parse(text)

    def _select_period(self, page: Any) -> None:
        # Best effort: the page defaults to a shorter window on some layouts.
        try:
            for control in page.query_selector_all("button, [role='button']"):
                if _PERIOD_CONTROL_RE.match(control.inner_text() or ""):
                    control.click(timeout=self.settings.draw_read_timeout_ms)
                    page.wait_for_timeout(self.settings.interaction_wait_ms)
                    return
        except PlaywrightError as exc:
            logger.debug("Period selector unavailable: {}", exc)

    def parse(self, text: str) -> RevenueSnapshot:
        labels = {
            name: CATEGORY_LABELS[name]
            for name in self.category_accruals
            if name in CATEGORY_LABELS
        }
        categories = find_category_revenues(text, labels)
        extracted = [value for value in categories.values() if value is not None]
        combined = find_combined_revenue(text)
        if combined is not None:
            total, days = combined
        elif extracted and len(extracted) == len(categories):
            total = sum(extracted, Decimal("0"))
            days = DEFAULT_PERIOD_DAYS
            logger.warning("No combined revenue figure; summing {} categories", len(categories))
        else:
            raise SourceUnavailableError("combined revenue figure not found")
        if total <= 0:
            raise SourceUnavailableError(f"non-positive combined revenue {total}")

        accrual = blended_accrual(categories, self.category_accruals, total)
        if accrual is None:
            logger.warning(
                "Category revenues incomplete ({}); using flat accrual {}",
                {name: value is not None for name, value in categories.items()},
                self.default_accrual,
            )
            accrual = self.default_accrual

        daily = float(total) / days
        return build_snapshot(
            self.symbol,
            weekly_revenue=daily * DAYS_PER_WEEK,
            annual_revenue=daily * DAYS_PER_YEAR,
            accrual_fraction=accrual,
            confidence=Confidence.LIVE,
            source=self.name,
        )


__all__ = [
    "BreakdownRevenueSource",
    "CATEGORY_LABELS",
    "blended_accrual",
    "find_category_revenues",
    "find_combined_revenue",
]
