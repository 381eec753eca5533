"""Pattern helpers that pull amounts, percentages, and counts out of page text.

Every helper is best-effort: unparseable input yields ``None`` (or an empty
list) and never raises, so callers decide whether a miss is fatal.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation
from typing import Any

_MAGNITUDES: dict[str, Decimal] = {
    "k": Decimal(10) ** 3,
    "thousand": Decimal(10) ** 3,
    "m": Decimal(10) ** 6,
    "million": Decimal(10) ** 6,
    "b": Decimal(10) ** 9,
    "billion": Decimal(10) ** 9,
    "t": Decimal(10) ** 12,
    "trillion": Decimal(10) ** 12,
}

_MONEY_RE = re.compile(
    r"(?:(?<![\w.])(?P<sign>-))?(?P<currency>[$€£])?\s*"
    r"(?P<number>\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+)?|\.\d+)"
    r"(?:\s*(?P<suffix>thousand|million|billion|trillion|[kmbt])\b)?",
    re.IGNORECASE,
)

_PERCENT_RE = re.compile(
    r"(?:(?<![\w.])(?P<sign>-))?(?P<number>\d+(?:\.\d+)?|\.\d+)\s*%"
)

_COUNT_RE = re.compile(r"^\s*(?P<number>\d{1,3}(?:,\d{3})+|\d+)\s*$")


def _to_decimal(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw.replace(",", ""))
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def _money_from_match(match: re.Match[str]) -> Decimal | None:
    value = _to_decimal(match.group("number"))
    if value is None:
        return None
    suffix = match.group("suffix")
    if suffix:
        value *= _MAGNITUDES[suffix.lower()]
    if match.group("sign"):
        value = -value
    return value


def parse_money(text: Any) -> Decimal | None:
    """Return the first monetary amount in ``text``.

    Currency symbols and thousands separators are ignored and K/M/B/T
    suffixes (or the spelled-out words) scale the value.
    """

    if text is None:
        return None
    match = _MONEY_RE.search(str(text))
    if not match:
        return None
    return _money_from_match(match)


def money_values(text: Any, *, require_currency: bool = False) -> list[Decimal]:
    """Return every monetary amount in ``text`` in document order.

    With ``require_currency`` only figures carrying a currency symbol or a
    magnitude suffix count, which skips dates and stray counters.
    """

    if text is None:
        return []
    values: list[Decimal] = []
    for match in _MONEY_RE.finditer(str(text)):
        if require_currency and not (match.group("currency") or match.group("suffix")):
            continue
        value = _money_from_match(match)
        if value is not None:
            values.append(value)
    return values


def parse_percentage(text: Any) -> Decimal | None:
    """Return a ``NN.N%`` figure as a fraction (``"45%"`` -> ``0.45``)."""

    if text is None:
        return None
    match = _PERCENT_RE.search(str(text))
    if not match:
        return None
    value = _to_decimal(match.group("number"))
    if value is None:
        return None
    if match.group("sign"):
        value = -value
    return value / Decimal(100)


def parse_count(text: Any) -> int | None:
    """Return a bare integer such as a winner count.

    Only cells holding nothing but digits (and separators) qualify; amounts
    with currency symbols, decimals, or magnitude suffixes are rejected.
    """

    if text is None:
        return None
    match = _COUNT_RE.match(str(text))
    if not match:
        return None
    return int(match.group("number").replace(",", ""))


def find_labeled_amount(
    text: Any,
    label: str,
    *,
    window: int = 80,
    require_currency: bool = False,
) -> Decimal | None:
    """Return the first amount that follows ``label`` (a regex) within ``window`` chars."""

    if text is None:
        return None
    haystack = str(text)
    for match in re.finditer(label, haystack, re.IGNORECASE):
        tail = haystack[match.end() : match.end() + window]
        values = money_values(tail, require_currency=require_currency)
        if values:
            return values[0]
    return None


def format_money(value: Decimal) -> str:
    """Render an amount so that :func:`parse_money` reads back the same value."""

    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,f}"


__all__ = [
    "find_labeled_amount",
    "format_money",
    "money_values",
    "parse_count",
    "parse_money",
    "parse_percentage",
]
