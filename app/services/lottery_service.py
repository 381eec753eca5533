"""Draw resolution, prize lookups and NGR batches over the draw cache."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Iterable, Mapping, Sequence

from loguru import logger

from app.domain import DrawSnapshot, NGRResult
from scraper.draws import DrawResolution, DrawSource
from scraper.reconcile import reconcile_or_failure

from .cache import TTLCache

DEFAULT_METHOD = "scraper"


class UnknownDrawMethodError(LookupError):
    """Raised when a request names a draw source that is not configured."""


@dataclass(frozen=True, slots=True)
class PrizeLookup:
    draw_number: int
    snapshot: DrawSnapshot | None
    cached: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.snapshot is not None and self.snapshot.success


@dataclass(frozen=True, slots=True)
class NGRBatch:
    method: str
    results: list[NGRResult]
    scraped_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def parse_draw_numbers(raw: str | None) -> list[int]:
    """Positive integers from a comma-separated list; anything else is skipped."""

    numbers: list[int] = []
    for part in (raw or "").split(","):
        try:
            value = int(part.strip())
        except ValueError:
            continue
        if value > 0 and value not in numbers:
            numbers.append(value)
    return numbers


def _unique(draw_numbers: Iterable[int]) -> list[int]:
    seen: set[int] = set()
    ordered: list[int] = []
    for draw_number in draw_numbers:
        if draw_number not in seen:
            seen.add(draw_number)
            ordered.append(draw_number)
    return ordered


class LotteryService:
    """Resolve draws cache-first, then through the requested source."""

    def __init__(
        self,
        cache: TTLCache[int, DrawSnapshot],
        sources: Mapping[str, DrawSource],
        *,
        default_method: str = DEFAULT_METHOD,
    ) -> None:
        if default_method not in sources:
            raise ValueError(f"default method '{default_method}' has no source")
        self.cache = cache
        self.sources = dict(sources)
        self.default_method = default_method

    def available_methods(self) -> tuple[str, ...]:
        return tuple(self.sources)

    def _method(self, method: str | None) -> str:
        """Return the configured source key for ``method``."""

        key = (method or self.default_method).lower()
        if key not in self.sources:
            raise UnknownDrawMethodError(
                f"Unknown method '{method}'. Expected one of: {', '.join(self.sources)}"
            )
        return key

    def resolve_draws(
        self,
        draw_numbers: Sequence[int],
        *,
        method: str | None = None,
        refresh: bool = False,
    ) -> dict[int, DrawResolution]:
        """Return a resolution for every draw; failures are reported, never raised."""

        source = self.sources[self._method(method)]
        wanted = _unique(draw_numbers)
        if refresh:
            self.cache.evict(*wanted)

        results: dict[int, DrawResolution] = {}
        misses: list[int] = []
        for draw_number in wanted:
            snapshot = self.cache.get(draw_number)
            if snapshot is not None:
                logger.info("Draw {} served from cache", draw_number)
                results[draw_number] = DrawResolution(
                    draw_number=draw_number, snapshot=snapshot, cached=True
                )
            else:
                misses.append(draw_number)

        if misses:
            logger.info("Resolving draws {} via {}", misses, source.name)
            try:
                resolved = source.resolve(misses)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Draw source {} failed", source.name)
                resolved = {
                    draw_number: DrawResolution(draw_number=draw_number, error=str(exc))
                    for draw_number in misses
                }
            for draw_number in misses:
                resolution = resolved.get(draw_number) or DrawResolution(
                    draw_number=draw_number, error=f"Draw {draw_number} was not resolved"
                )
                if resolution.resolved:
                    self.cache.put(draw_number, resolution.snapshot)
                results[draw_number] = resolution
        return results

    def lookup_prizes(
        self,
        draw_number: int,
        *,
        method: str | None = None,
        refresh: bool = False,
    ) -> PrizeLookup:
        resolution = self.resolve_draws([draw_number], method=method, refresh=refresh)[
            draw_number
        ]
        return PrizeLookup(
            draw_number=draw_number,
            snapshot=resolution.snapshot,
            cached=resolution.cached,
            error=resolution.error,
        )

    def compute_ngr(
        self,
        draw_numbers: Sequence[int],
        *,
        method: str | None = None,
        refresh: bool = False,
    ) -> NGRBatch:
        """Reconcile each draw against its predecessor.

        A forced refresh evicts both the draw and the one before it, since
        the figure depends on the pair.
        """

        key = self._method(method)
        requested = _unique(draw_numbers)
        needed = _unique(
            number
            for draw_number in requested
            for number in (draw_number, draw_number - 1)
            if number >= 1
        )
        resolutions = self.resolve_draws(needed, method=key, refresh=refresh)

        results: list[NGRResult] = []
        for draw_number in requested:
            if draw_number <= 1:
                results.append(
                    NGRResult(
                        draw_number=draw_number,
                        success=False,
                        error=f"Draw {draw_number} has no previous draw to reconcile against",
                    )
                )
                continue
            current = resolutions.get(draw_number)
            previous = resolutions.get(draw_number - 1)
            result = reconcile_or_failure(
                draw_number,
                current.snapshot if current else None,
                previous.snapshot if previous else None,
            )
            if not result.success:
                details = [
                    f"draw {resolution.draw_number}: {resolution.error}"
                    for resolution in (previous, current)
                    if resolution is not None and resolution.error
                ]
                if details:
                    result = replace(result, error=f"{result.error} ({'; '.join(details)})")
            results.append(result)

        succeeded = sum(1 for result in results if result.success)
        logger.info(
            "NGR batch via {}: {}/{} draws reconciled", key, succeeded, len(results)
        )
        return NGRBatch(method=key, results=results)


__all__ = [
    "DEFAULT_METHOD",
    "LotteryService",
    "NGRBatch",
    "PrizeLookup",
    "UnknownDrawMethodError",
    "parse_draw_numbers",
]
