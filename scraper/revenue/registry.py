"""Ordered registry of per-token revenue fetchers."""

from __future__ import annotations

from typing import Callable, Dict

from app.core.config import Settings

from .accrual_source import AccrualColumnRevenueSource
from .api_source import StructuredApiRevenueSource
from .base import RevenueSource
from .breakdown_source import BreakdownRevenueSource

SourceBuilder = Callable[[Settings], RevenueSource]


class UnknownRevenueSourceError(LookupError):
    """Raised when a token has no registered fetcher."""


_BUILDERS: Dict[str, SourceBuilder] = {}


def register_source(symbol: str, builder: SourceBuilder) -> None:
    """Register or replace the fetcher for ``symbol``; order of first registration is kept."""

    _BUILDERS[symbol.upper()] = builder


def get_builder(symbol: str) -> SourceBuilder:
    try:
        return _BUILDERS[symbol.upper()]
    except KeyError as exc:
        raise UnknownRevenueSourceError(
            f"No revenue source registered for '{symbol}'"
        ) from exc


def registered_symbols() -> tuple[str, ...]:
    """Symbols in the order their fetchers run."""

    return tuple(_BUILDERS)


def build_sources(settings: Settings) -> list[RevenueSource]:
    return [builder(settings) for builder in _BUILDERS.values()]


# Fetch order matters: browser-backed sources first, the HTTP one last.
register_source(AccrualColumnRevenueSource.symbol, AccrualColumnRevenueSource)
register_source(BreakdownRevenueSource.symbol, BreakdownRevenueSource)
register_source(StructuredApiRevenueSource.symbol, StructuredApiRevenueSource)


__all__ = [
    "SourceBuilder",
    "UnknownRevenueSourceError",
    "build_sources",
    "get_builder",
    "register_source",
    "registered_symbols",
]
