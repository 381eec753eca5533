from __future__ import annotations

from decimal import Decimal

import pytest

from scraper.extract import (
    find_labeled_amount,
    format_money,
    money_values,
    parse_count,
    parse_money,
    parse_percentage,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1.2B", Decimal("1200000000")),
        ("$1,234,567.89", Decimal("1234567.89")),
        ("€ 15.5k", Decimal("15500")),
        ("2.5 million", Decimal("2500000")),
        ("Jackpot: $250,000 (rollover)", Decimal("250000")),
        ("-$40", Decimal("-40")),
        ("$.5M", Decimal("500000")),
    ],
)
def test_parse_money_reads_amounts(text, expected):
    assert parse_money(text) == expected


@pytest.mark.parametrize("text", ["$", "", None, "no figures here", "—"])
def test_parse_money_without_digits_is_a_miss(text):
    assert parse_money(text) is None


def test_dash_separator_is_not_a_sign():
    assert parse_money("Jackpot - $1,000") == Decimal("1000")


def test_money_values_can_require_a_currency_marker():
    text = "Draw #64 on 2025 paid $1,000 and 2M tokens"
    assert money_values(text) == [
        Decimal("64"),
        Decimal("2025"),
        Decimal("1000"),
        Decimal("2000000"),
    ]
    assert money_values(text, require_currency=True) == [Decimal("1000"), Decimal("2000000")]


def test_parse_percentage_returns_fraction():
    assert parse_percentage("45%") == Decimal("0.45")
    assert parse_percentage("Share: 12.5 %") == Decimal("0.125")
    assert parse_percentage("12.5") is None


def test_parse_count_accepts_only_bare_integers():
    assert parse_count("1,204") == 1204
    assert parse_count(" 7 ") == 7
    assert parse_count("$7") is None
    assert parse_count("7.5") is None
    assert parse_count("3 winners") is None


def test_find_labeled_amount_scans_after_label():
    text = "Casino revenue 30 days: $4.2M Sports $900K"
    assert find_labeled_amount(text, r"casino") == Decimal("30")
    assert find_labeled_amount(text, r"casino", require_currency=True) == Decimal("4200000")
    assert find_labeled_amount(text, r"sports") == Decimal("900000")
    assert find_labeled_amount(text, r"poker") is None


@pytest.mark.parametrize(
    "value", [Decimal("250000"), Decimal("-1234.5"), Decimal("0"), Decimal("1E+3")]
)
def test_format_money_reads_back(value):
    rendered = format_money(value)
    assert "E" not in rendered
    assert parse_money(rendered) == value


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("$1,234,567.89", Decimal("1234567.89")),
        ("2.5M", Decimal("2500000")),
        ("125K", Decimal("125000")),
        ("$0", Decimal("0")),
    ],
)
def test_parsed_amounts_survive_formatting(text, expected):
    parsed = parse_money(text)

    assert parsed == expected
    assert parse_money(format_money(parsed)) == parsed
