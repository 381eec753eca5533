"""Per-token revenue fetchers."""

from .accrual_source import AccrualColumnRevenueSource
from .api_source import StructuredApiRevenueSource
from .base import RevenueSource, build_snapshot, estimated_snapshot
from .breakdown_source import BreakdownRevenueSource
from .registry import build_sources, registered_symbols

__all__ = [
    "AccrualColumnRevenueSource",
    "BreakdownRevenueSource",
    "RevenueSource",
    "StructuredApiRevenueSource",
    "build_snapshot",
    "build_sources",
    "estimated_snapshot",
    "registered_symbols",
]
