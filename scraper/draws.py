"""Sources that resolve draw numbers into prize snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence

from loguru import logger
from playwright.sync_api import Error as PlaywrightError

from app.core.config import Settings
from app.domain import DrawSnapshot

from .errors import BrowserUnavailableError, NavigationError
from .navigator import DrawNavigator
from .prizes import PrizeTableExtractor

if TYPE_CHECKING:
    from app.services.browser import BrowserPool


@dataclass(frozen=True, slots=True)
class DrawResolution:
    """Snapshot for a draw, or the reason it could not be produced."""

    draw_number: int
    snapshot: DrawSnapshot | None = None
    error: str | None = None
    cached: bool = False

    @property
    def resolved(self) -> bool:
        return self.snapshot is not None and self.snapshot.success


class DrawSource(Protocol):
    name: str

    def resolve(self, draw_numbers: Sequence[int]) -> dict[int, DrawResolution]:
        """Resolve every draw in ``draw_numbers``; failures are reported per draw."""


class BrowserDrawSource:
    """Walks the rendered results page to each draw inside one browser session."""

    name = "scraper"

    def __init__(
        self,
        pool: "BrowserPool",
        settings: Settings,
        *,
        extractor: PrizeTableExtractor | None = None,
    ) -> None:
        self._pool = pool
        self._settings = settings
        self._extractor = extractor or PrizeTableExtractor.from_settings(settings)

    def resolve(self, draw_numbers: Sequence[int]) -> dict[int, DrawResolution]:
        # Newest first so the page only ever steps backwards.
        ordered = sorted(set(draw_numbers), reverse=True)
        results: dict[int, DrawResolution] = {}
        if not ordered:
            return results

        try:
            with self._pool.session() as session, session.page() as page:
                navigator = DrawNavigator.from_settings(page, self._settings)
                for draw_number in ordered:
                    results[draw_number] = self._resolve_one(navigator, page, draw_number)
        except (BrowserUnavailableError, PlaywrightError) as exc:
            logger.error("Draw scraping unavailable: {}", exc)
            for draw_number in ordered:
                results.setdefault(
                    draw_number, DrawResolution(draw_number=draw_number, error=str(exc))
                )
        return results

    def _resolve_one(
        self, navigator: DrawNavigator, page: object, draw_number: int
    ) -> DrawResolution:
        try:
            navigator.navigate_to(draw_number)
        except NavigationError as exc:
            logger.warning("Navigation to draw {} failed: {}", draw_number, exc)
            return DrawResolution(draw_number=draw_number, error=str(exc))
        snapshot = self._extractor.extract(page, draw_number)
        if not snapshot.success:
            return DrawResolution(
                draw_number=draw_number,
                snapshot=snapshot,
                error=f"No prize divisions found for draw {draw_number}",
            )
        return DrawResolution(draw_number=draw_number, snapshot=snapshot)


__all__ = ["BrowserDrawSource", "DrawResolution", "DrawSource"]
