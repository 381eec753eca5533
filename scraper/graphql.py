"""Structured prize source backed by the lottery GraphQL endpoint."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

import httpx
from loguru import logger

from app.core.config import Settings, settings as default_settings
from app.domain import DrawSnapshot, PrizeDivision

from .draws import DrawResolution
from .errors import SourceUnavailableError
from .prizes import match_division

PRIZES_QUERY = """query getPrizesAndResults($drawId: Float) {
  prizesAndResults(drawId: $drawId) {
    category
    currency
    amount
    winCount
    win
    __typename
  }
}"""


def _to_decimal(value: Any) -> Decimal:
    if value in (None, ""):
        return Decimal("0")
    try:
        parsed = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return parsed if parsed.is_finite() else Decimal("0")


def _to_int(value: Any) -> int:
    try:
        return max(0, int(value or 0))
    except (TypeError, ValueError):
        return 0


def normalize_prizes(draw_number: int, prizes: Sequence[dict[str, Any]]) -> DrawSnapshot:
    """Map ``prizesAndResults`` entries onto canonical prize divisions."""

    divisions: dict[str, PrizeDivision] = {}
    for prize in prizes:
        if not isinstance(prize, dict):
            continue
        category = str(prize.get("category") or "").replace("_", " ")
        label = match_division(category)
        if label is None:
            logger.debug("Ignoring unrecognised prize category {!r}", category)
            continue
        if label in divisions:
            continue
        winners = _to_int(prize.get("winCount"))
        divisions[label] = PrizeDivision(
            label=label,
            prize_pool_amount=_to_decimal(prize.get("amount")),
            winner_count=winners,
            payout_amount=_to_decimal(prize.get("win")) if winners else Decimal("0"),
        )
    ordered = tuple(
        divisions[label] for label in sorted(divisions, key=_division_sort_key)
    )
    return DrawSnapshot(draw_number=draw_number, prize_divisions=ordered, source="graphql")


def _division_sort_key(label: str) -> int:
    return 1 if label == "Jackpot" else int(label.rsplit(" ", 1)[-1])


class LotteryGraphQLClient:
    """Thin wrapper around the lottery GraphQL endpoint."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        settings = settings or default_settings
        self.url = str(settings.lottery_graphql_url)
        self.client = client or httpx.Client(
            timeout=settings.http_timeout_seconds,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": settings.user_agent,
                "Origin": "https://shuffle.com",
                "Referer": "https://shuffle.com/lottery",
            },
        )

    def fetch_prizes(self, draw_number: int) -> list[dict[str, Any]]:
        payload = {
            "operationName": "getPrizesAndResults",
            "query": PRIZES_QUERY,
            "variables": {"drawId": draw_number},
        }
        logger.info("Lottery GraphQL prizesAndResults drawId={}", draw_number)
        try:
            response = self.client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise SourceUnavailableError(
                f"prizesAndResults failed for draw {draw_number}: {exc}"
            ) from exc

        data = body.get("data") if isinstance(body, dict) else None
        prizes = data.get("prizesAndResults") if isinstance(data, dict) else None
        if not isinstance(prizes, list) or not prizes:
            raise SourceUnavailableError(f"No prize data for draw {draw_number}")
        return prizes

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "LotteryGraphQLClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class GraphQLDrawSource:
    """Resolve draws through the structured prize endpoint instead of the page."""

    name = "graphql"

    def __init__(self, client: LotteryGraphQLClient) -> None:
        self._client = client

    def resolve(self, draw_numbers: Sequence[int]) -> dict[int, DrawResolution]:
        results: dict[int, DrawResolution] = {}
        for draw_number in sorted(set(draw_numbers), reverse=True):
            try:
                prizes = self._client.fetch_prizes(draw_number)
            except SourceUnavailableError as exc:
                logger.warning("{}", exc)
                results[draw_number] = DrawResolution(draw_number=draw_number, error=str(exc))
                continue
            snapshot = normalize_prizes(draw_number, prizes)
            error = None
            if not snapshot.success:
                error = f"No prize divisions found for draw {draw_number}"
            results[draw_number] = DrawResolution(
                draw_number=draw_number, snapshot=snapshot, error=error
            )
        return results

    def close(self) -> None:
        self._client.close()


__all__ = [
    "GraphQLDrawSource",
    "LotteryGraphQLClient",
    "PRIZES_QUERY",
    "normalize_prizes",
]
