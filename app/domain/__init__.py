"""Domain models representing draw and revenue data."""

from .models import (
    CANONICAL_DIVISIONS,
    Confidence,
    DrawSnapshot,
    NGRResult,
    PrizeDivision,
    RevenueSnapshot,
)

__all__ = [
    "CANONICAL_DIVISIONS",
    "Confidence",
    "DrawSnapshot",
    "NGRResult",
    "PrizeDivision",
    "RevenueSnapshot",
]
