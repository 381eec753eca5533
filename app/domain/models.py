"""Typed domain representations shared by the scrapers, services, and APIs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum


CANONICAL_DIVISIONS: tuple[str, ...] = ("Jackpot",) + tuple(
    f"Division {index}" for index in range(2, 10)
)


class Confidence(str, Enum):
    LIVE = "live"
    ESTIMATED = "estimated"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class PrizeDivision:
    """One prize tier of a draw; nothing is paid when nobody wins."""

    label: str
    prize_pool_amount: Decimal
    winner_count: int
    payout_amount: Decimal

    def __post_init__(self) -> None:
        if self.label not in CANONICAL_DIVISIONS:
            raise ValueError(f"Unknown prize division label: {self.label!r}")
        if self.winner_count < 0:
            raise ValueError("winner_count must be non-negative")
        if self.winner_count == 0 and self.payout_amount != 0:
            raise ValueError("payout_amount must be 0 when there are no winners")


@dataclass(frozen=True, slots=True)
class DrawSnapshot:
    """Immutable prize breakdown for a single draw."""

    draw_number: int
    prize_divisions: tuple[PrizeDivision, ...] = ()
    extracted_at: datetime = field(default_factory=_utcnow)
    source: str | None = None

    def __post_init__(self) -> None:
        if self.draw_number < 1:
            raise ValueError("draw_number must be positive")
        labels = [division.label for division in self.prize_divisions]
        if len(labels) != len(set(labels)):
            raise ValueError("prize_divisions may hold at most one entry per label")

    @property
    def total_prize_pool(self) -> Decimal:
        return sum((d.prize_pool_amount for d in self.prize_divisions), Decimal("0"))

    @property
    def total_payouts(self) -> Decimal:
        return sum((d.payout_amount for d in self.prize_divisions), Decimal("0"))

    @property
    def total_winners(self) -> int:
        return sum(d.winner_count for d in self.prize_divisions)

    @property
    def success(self) -> bool:
        """False when extraction found no divisions (low-confidence result)."""

        return bool(self.prize_divisions)

    @property
    def rollover(self) -> Decimal:
        return self.total_prize_pool - self.total_payouts


@dataclass(frozen=True, slots=True)
class NGRResult:
    """Outcome of reconciling a draw against its predecessor."""

    draw_number: int
    success: bool
    ngr_added: Decimal | None = None
    current_total_prizes: Decimal | None = None
    previous_total_prizes: Decimal | None = None
    previous_payouts: Decimal | None = None
    previous_rollover: Decimal | None = None
    formula: str | None = None
    trace: str | None = None
    anomaly: bool = False
    error: str | None = None


@dataclass(frozen=True, slots=True)
class RevenueSnapshot:
    """Weekly/annual revenue and holder earnings estimate for one token."""

    token_symbol: str
    weekly_revenue: float
    annual_revenue: float
    weekly_earnings: float
    annual_earnings: float
    accrual_fraction: float
    confidence: Confidence
    captured_at: datetime = field(default_factory=_utcnow)
    source: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.accrual_fraction <= 1.0:
            raise ValueError("accrual_fraction must be between 0 and 1")

    @property
    def is_live(self) -> bool:
        return self.confidence is Confidence.LIVE
