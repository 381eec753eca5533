"""Scraped revenue table with a per-period revenue-share column (PUMP fees)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Sequence

from dateutil import parser as date_parser
from loguru import logger

from app.core.config import Settings
from app.domain import Confidence, RevenueSnapshot

from .. import pages
from ..errors import SourceUnavailableError
from ..extract import parse_money, parse_percentage
from .base import BrowserSession, RevenueSource, build_snapshot

WEEK_ROWS = 7
MONTH_ROWS = 30

_AMOUNT_HEADERS = ("amount", "usd", "revenue", "fees", "volume")
_SHARE_HEADERS = ("%", "percent", "share", "pct")
_PERIOD_HEADERS = ("date", "day", "period", "week")


@dataclass(frozen=True, slots=True)
class PeriodRow:
    amount: Decimal
    fraction: Decimal | None = None
    period: datetime | None = None


@dataclass(frozen=True, slots=True)
class ColumnLayout:
    amount: int
    share: int
    period: int | None = None


def _parse_period(text: str) -> datetime | None:
    if not text or not any(char.isdigit() for char in text):
        return None
    try:
        return date_parser.parse(text, fuzzy=True)
    except (ValueError, OverflowError):
        return None


def detect_layout(header: Sequence[str]) -> ColumnLayout | None:
    """Find the amount, share and (optional) period columns of a header row."""

    amount = share = period = None
    for index, cell in enumerate(header):
        label = (cell or "").strip().lower()
        if not label:
            continue
        if share is None and any(token in label for token in _SHARE_HEADERS):
            share = index
        elif amount is None and any(token in label for token in _AMOUNT_HEADERS):
            amount = index
        elif period is None and any(token in label for token in _PERIOD_HEADERS):
            period = index
    if amount is None or share is None:
        return None
    return ColumnLayout(amount=amount, share=share, period=period)


def parse_period_rows(rows: Sequence[Sequence[str]]) -> list[PeriodRow]:
    """Rows of the first table whose header names an amount and a share column.

    Rows come back newest first when every row carries a parseable period,
    otherwise in document order.
    """

    if not rows:
        return []
    layout = detect_layout(rows[0])
    if layout is None:
        return []

    parsed: list[PeriodRow] = []
    for cells in rows[1:]:
        if len(cells) <= max(layout.amount, layout.share):
            continue
        amount = parse_money(cells[layout.amount])
        if amount is None or amount < 0:
            continue
        fraction = parse_percentage(cells[layout.share])
        if fraction is not None and not Decimal("0") <= fraction <= Decimal("1"):
            fraction = None
        period = None
        if layout.period is not None and layout.period < len(cells):
            period = _parse_period(cells[layout.period])
        parsed.append(PeriodRow(amount=amount, fraction=fraction, period=period))

    if parsed and all(row.period is not None for row in parsed):
        parsed.sort(key=lambda row: row.period, reverse=True)
    return parsed


def summarize(rows: Sequence[PeriodRow], default_accrual: float) -> tuple[float, float, float]:
    """Return ``(weekly, annual, accrual_fraction)`` from newest-first rows."""

    if not rows:
        raise SourceUnavailableError("revenue table has no usable rows")
    week = rows[:WEEK_ROWS]
    month = rows[:MONTH_ROWS]
    weekly = sum((row.amount for row in week), Decimal("0"))
    monthly = sum((row.amount for row in month), Decimal("0"))
    if len(rows) >= MONTH_ROWS:
        annual = monthly * 12
    else:
        annual = weekly * 52

    fractions = [row.fraction for row in week if row.fraction is not None]
    if fractions:
        accrual = float(sum(fractions, Decimal("0")) / len(fractions))
    else:
        logger.warning("Revenue-share column empty; using default accrual {}", default_accrual)
        accrual = default_accrual
    return float(weekly), float(annual), accrual


class AccrualColumnRevenueSource(RevenueSource):
    """PUMP revenue from a daily table carrying an amount and a share column."""

    symbol = "PUMP"
    name = "accrual_table"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.url = str(settings.pump_fees_url)
        self.default_accrual = settings.pump_default_accrual

    def fetch_live(self, session: BrowserSession | None) -> RevenueSnapshot:
        with session.page() as page:
            pages.load(
                page,
                self.url,
                timeout_ms=self.settings.navigation_timeout_ms,
                settle_ms=self.settings.settle_wait_ms,
            )
            page.wait_for_selector("table", timeout=self.settings.draw_read_timeout_ms)
            tables = pages.read_tables(page)
        return self.parse_tables(tables)

    def parse_tables(self, tables: Sequence[pages.TableRows]) -> RevenueSnapshot:
        for index, rows in enumerate(tables):
            period_rows = parse_period_rows(rows)
            if period_rows:
                logger.debug("Revenue table {} has {} period rows", index, len(period_rows))
                break
        else:
            raise SourceUnavailableError("no table with amount and share columns")

        weekly, annual, accrual = summarize(period_rows, self.default_accrual)
        if weekly <= 0:
            raise SourceUnavailableError("weekly revenue summed to zero")
        return build_snapshot(
            self.symbol,
            weekly_revenue=weekly,
            annual_revenue=annual,
            accrual_fraction=accrual,
            confidence=Confidence.LIVE,
            source=self.name,
        )


__all__ = [
    "AccrualColumnRevenueSource",
    "ColumnLayout",
    "PeriodRow",
    "detect_layout",
    "parse_period_rows",
    "summarize",
]
