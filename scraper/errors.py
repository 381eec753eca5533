"""Failure taxonomy shared by the scrapers and the services driving them."""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for scraping and reconciliation failures."""


class NavigationError(ScraperError):
    """Raised when a draw cannot be reached on the results surface."""


class MissingDrawDataError(ScraperError):
    """Raised when reconciliation lacks one of the two adjacent snapshots."""


class SourceUnavailableError(ScraperError):
    """Raised when a revenue or prize source yields nothing usable."""


class BrowserUnavailableError(ScraperError):
    """Raised when the automation runtime cannot start or its slot is busy."""


__all__ = [
    "BrowserUnavailableError",
    "MissingDrawDataError",
    "NavigationError",
    "ScraperError",
    "SourceUnavailableError",
]
