"""Prize breakdown extraction from a rendered draw page.

Strategies run in order (table scan, then whole-page text scan) and each
returns either the divisions it found or ``None`` for a miss. An extractor
that misses with every strategy still returns a snapshot, just one with no
divisions, which callers must treat as low confidence.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol, Sequence

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from app.core.config import Settings
from app.domain import CANONICAL_DIVISIONS, DrawSnapshot, PrizeDivision

from .extract import money_values, parse_count
from .pages import TableRows, read_tables, read_text

_WINNERS_RE = re.compile(r"(\d{1,3}(?:,\d{3})+|\d+)\s*winners?\b", re.IGNORECASE)

_ORDINALS = ("first", "second", "third", "fourth", "fifth", "sixth", "seventh", "eighth", "ninth")
_SUFFIXES = {1: "st", 2: "nd", 3: "rd"}


def _division_pattern(index: int) -> re.Pattern[str]:
    return re.compile(
        rf"\b(?:div(?:ision)?\.?|tier|category)[\s_]*{index}(?!\d)", re.IGNORECASE
    )


def _ordinal_pattern(index: int) -> re.Pattern[str]:
    # Covers both "Second Prize" and "2nd prize", plus the SECOND_PRIZE enum.
    ordinal = _ORDINALS[index - 1]
    numeral = f"{index}{_SUFFIXES.get(index, 'th')}"
    return re.compile(rf"\b(?:{ordinal}|{numeral})[\s_-]*prize\b", re.IGNORECASE)


DIVISION_ALIASES: dict[str, tuple[re.Pattern[str], ...]] = {
    "Jackpot": (
        re.compile(r"\bjack[\s_-]?pot\b", re.IGNORECASE),
        re.compile(r"\bgrand\s+prize\b", re.IGNORECASE),
        _ordinal_pattern(1),
        _division_pattern(1),
    ),
}
for _index in range(2, 10):
    DIVISION_ALIASES[f"Division {_index}"] = (
        _division_pattern(_index),
        _ordinal_pattern(_index),
    )


def match_division(text: str | None) -> str | None:
    """Return the canonical division label named in ``text``, if any."""

    if not text:
        return None
    for label in CANONICAL_DIVISIONS:
        if any(pattern.search(text) for pattern in DIVISION_ALIASES[label]):
            return label
    return None


def build_division(label: str, pool: Decimal, winners: int) -> PrizeDivision:
    """A division with winners pays out its whole pool; otherwise it rolls over."""

    return PrizeDivision(
        label=label,
        prize_pool_amount=pool,
        winner_count=winners,
        payout_amount=pool if winners > 0 else Decimal("0"),
    )


class ExtractionStrategy(Protocol):
    name: str

    def extract(self, page: Any) -> list[PrizeDivision] | None:
        """Return divisions found on ``page`` or ``None`` on a miss."""


@dataclass(slots=True)
class TableScanStrategy:
    """Scan rendered tables row by row for division labels."""

    min_amount: Decimal = Decimal("100")
    max_winners: int = 1_000_000
    name: str = "table"

    def extract(self, page: Any) -> list[PrizeDivision] | None:
        try:
            tables = read_tables(page)
        except PlaywrightError as exc:
            logger.warning("Could not read tables from page: {}", exc)
            return None
        return self.extract_from_tables(tables)

    def extract_from_tables(self, tables: Sequence[TableRows]) -> list[PrizeDivision] | None:
        for table_index, rows in enumerate(tables):
            divisions = self._scan_rows(rows)
            if divisions:
                logger.debug(
                    "Table {} yielded {} prize divisions", table_index, len(divisions)
                )
                return divisions
        return None

    def _scan_rows(self, rows: Sequence[Sequence[str]]) -> list[PrizeDivision]:
        found: dict[str, PrizeDivision] = {}
        for cells in rows:
            division = self._parse_row(cells, seen=found)
            if division is not None:
                found[division.label] = division
        return [found[label] for label in CANONICAL_DIVISIONS if label in found]

    def _parse_row(
        self, cells: Sequence[str], *, seen: dict[str, PrizeDivision]
    ) -> PrizeDivision | None:
        for label_index, cell in enumerate(cells):
            label = match_division(cell)
            if label is None:
                continue
            if label in seen:
                return None
            tail = list(cells[label_index + 1 :])
            found = self._find_pool(tail, require_currency=True) or self._find_pool(
                tail, require_currency=False
            )
            if found is None:
                return None
            pool_index, pool = found
            winners = self._find_winners(tail, skip=pool_index)
            return build_division(label, pool, winners)
        return None

    def _find_pool(
        self, cells: Sequence[str], *, require_currency: bool
    ) -> tuple[int, Decimal] | None:
        # Bare integers may be winner counts, so marked amounts win first.
        for index, cell in enumerate(cells):
            for amount in money_values(cell, require_currency=require_currency):
                if amount >= self.min_amount:
                    return index, amount
        return None

    def _find_winners(self, cells: Sequence[str], *, skip: int) -> int:
        # Winner counts sit right of the pool; cells left of it are match patterns.
        ordered = list(cells[skip + 1 :]) + list(cells[:skip])
        for cell in ordered:
            count = parse_count(cell)
            if count is not None and count <= self.max_winners:
                return count
            match = _WINNERS_RE.search(cell or "")
            if match:
                return int(match.group(1).replace(",", ""))
        return 0


@dataclass(slots=True)
class TextScanStrategy:
    """Fallback: match division aliases anywhere in the page text."""

    min_amount: Decimal = Decimal("100")
    max_winners: int = 1_000_000
    name: str = "text"

    def extract(self, page: Any) -> list[PrizeDivision] | None:
        try:
            text = read_text(page)
        except PlaywrightError as exc:
            logger.warning("Could not read page text: {}", exc)
            return None
        return self.extract_from_text(text)

    def extract_from_text(self, text: str | None) -> list[PrizeDivision] | None:
        if not text:
            return None
        anchors: list[tuple[int, int, str]] = []
        for label in CANONICAL_DIVISIONS:
            for pattern in DIVISION_ALIASES[label]:
                for match in pattern.finditer(text):
                    anchors.append((match.start(), match.end(), label))
        anchors.sort()

        found: dict[str, PrizeDivision] = {}
        for position, (_, end, label) in enumerate(anchors):
            if label in found:
                continue
            stop = anchors[position + 1][0] if position + 1 < len(anchors) else len(text)
            segment = text[end:stop]
            pool = self._first_amount(segment, require_currency=True)
            if pool is None:
                pool = self._first_amount(segment, require_currency=False)
            if pool is None:
                continue
            winners_match = _WINNERS_RE.search(segment)
            winners = int(winners_match.group(1).replace(",", "")) if winners_match else 0
            if winners > self.max_winners:
                winners = 0
            found[label] = build_division(label, pool, winners)

        if not found:
            return None
        return [found[label] for label in CANONICAL_DIVISIONS if label in found]

    def _first_amount(self, segment: str, *, require_currency: bool) -> Decimal | None:
        for value in money_values(segment, require_currency=require_currency):
            if value >= self.min_amount:
                return value
        return None


class PrizeTableExtractor:
    """Run extraction strategies in order and wrap the first hit in a snapshot."""

    def __init__(self, strategies: Sequence[ExtractionStrategy]) -> None:
        if not strategies:
            raise ValueError("PrizeTableExtractor needs at least one strategy")
        self.strategies = tuple(strategies)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PrizeTableExtractor":
        return cls(
            [
                TableScanStrategy(
                    min_amount=settings.prize_min_amount,
                    max_winners=settings.max_winner_count,
                ),
                TextScanStrategy(
                    min_amount=settings.prize_min_amount,
                    max_winners=settings.max_winner_count,
                ),
            ]
        )

    def extract(self, page: Any, draw_number: int) -> DrawSnapshot:
        for strategy in self.strategies:
            divisions = strategy.extract(page)
            if divisions:
                logger.info(
                    "Draw {}: {} divisions via {} strategy",
                    draw_number,
                    len(divisions),
                    strategy.name,
                )
                return DrawSnapshot(
                    draw_number=draw_number,
                    prize_divisions=tuple(divisions),
                    source=strategy.name,
                )
        logger.warning("Draw {}: no prize divisions extracted", draw_number)
        return DrawSnapshot(draw_number=draw_number, prize_divisions=(), source=None)


__all__ = [
    "DIVISION_ALIASES",
    "ExtractionStrategy",
    "PrizeTableExtractor",
    "TableScanStrategy",
    "TextScanStrategy",
    "build_division",
    "match_division",
]
