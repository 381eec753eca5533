from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain import DrawSnapshot, PrizeDivision
from scraper.errors import MissingDrawDataError
from scraper.extract import parse_money
from scraper.reconcile import NGR_FORMULA, reconcile, reconcile_or_failure


def snapshot(draw_number: int, *divisions: tuple[str, str, int]) -> DrawSnapshot:
    return DrawSnapshot(
        draw_number=draw_number,
        prize_divisions=tuple(
            PrizeDivision(
                label=label,
                prize_pool_amount=Decimal(pool),
                winner_count=winners,
                payout_amount=Decimal(pool) if winners else Decimal("0"),
            )
            for label, pool, winners in divisions
        ),
    )


@pytest.fixture
def previous() -> DrawSnapshot:
    # pool 1,200,000 of which 50,000 paid out
    return snapshot(63, ("Jackpot", "1150000", 0), ("Division 2", "50000", 3))


@pytest.fixture
def current() -> DrawSnapshot:
    return snapshot(64, ("Jackpot", "1300000", 0), ("Division 2", "100000", 0))


def test_reconcile_subtracts_rollover(previous, current):
    result = reconcile(64, current, previous)

    assert result.success
    assert result.previous_total_prizes == Decimal("1200000")
    assert result.previous_payouts == Decimal("50000")
    assert result.previous_rollover == Decimal("1150000")
    assert result.current_total_prizes == Decimal("1400000")
    assert result.ngr_added == Decimal("250000")
    assert not result.anomaly
    assert result.formula == NGR_FORMULA


def test_trace_reproduces_the_arithmetic(previous, current):
    result = reconcile(64, current, previous)

    assert result.trace is not None
    left, right = result.trace.split(" = ", 1)[1].rsplit(" = ", 1)
    operands = [parse_money(part) for part in left.replace("(", "").replace(")", "").split(" - ")]
    assert operands == [Decimal("1400000"), Decimal("1200000"), Decimal("50000")]
    assert parse_money(right) == operands[0] - (operands[1] - operands[2])


def test_negative_ngr_is_reported_and_flagged(previous):
    shrunk = snapshot(64, ("Jackpot", "1000000", 0))
    result = reconcile(64, shrunk, previous)

    assert result.success
    assert result.ngr_added == Decimal("-150000")
    assert result.anomaly


def test_exact_decimal_arithmetic():
    prev = snapshot(9, ("Jackpot", "0.10", 0), ("Division 2", "0.20", 1))
    cur = snapshot(10, ("Jackpot", "0.30", 0))
    assert reconcile(10, cur, prev).ngr_added == Decimal("0.20")


def test_missing_previous_draw_raises(current):
    with pytest.raises(MissingDrawDataError, match="draw 63"):
        reconcile(64, current, None)


def test_empty_snapshot_counts_as_missing(current):
    with pytest.raises(MissingDrawDataError, match="No prize divisions extracted for draw 63"):
        reconcile(64, current, DrawSnapshot(draw_number=63))


def test_non_adjacent_pair_is_rejected(current):
    older = snapshot(60, ("Jackpot", "1000", 0))
    with pytest.raises(MissingDrawDataError):
        reconcile(64, current, older)


def test_reconcile_or_failure_reports_instead_of_raising(current):
    result = reconcile_or_failure(64, current, None)

    assert not result.success
    assert result.ngr_added is None
    assert "63" in (result.error or "")
