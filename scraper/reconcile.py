"""Net gaming revenue reconciliation between adjacent draws."""

from __future__ import annotations

from decimal import Decimal

from loguru import logger

from app.domain import DrawSnapshot, NGRResult

from .errors import MissingDrawDataError
from .extract import format_money

NGR_FORMULA = "NGR = CurrentPrizes - (PrevPrizes - PrevPayouts)"


def _require(snapshot: DrawSnapshot | None, draw_number: int) -> DrawSnapshot:
    if snapshot is None:
        raise MissingDrawDataError(f"Missing data for draw {draw_number}")
    if not snapshot.success:
        raise MissingDrawDataError(f"No prize divisions extracted for draw {draw_number}")
    return snapshot


def reconcile(
    draw_number: int,
    current: DrawSnapshot | None,
    previous: DrawSnapshot | None,
) -> NGRResult:
    """Return the NGR added by ``draw_number``.

    ``ngr_added = current.total_prize_pool - (previous.total_prize_pool - previous.total_payouts)``

    Both snapshots must be resolved and adjacent, otherwise
    :class:`MissingDrawDataError` is raised. A negative result is reported
    as-is and flagged as an anomaly.
    """

    current = _require(current, draw_number)
    previous = _require(previous, draw_number - 1)
    if current.draw_number != draw_number or previous.draw_number != draw_number - 1:
        raise MissingDrawDataError(
            f"Draws {previous.draw_number} and {current.draw_number} are not "
            f"the pair {draw_number - 1}/{draw_number}"
        )

    current_prizes = current.total_prize_pool
    previous_prizes = previous.total_prize_pool
    previous_payouts = previous.total_payouts
    previous_rollover = previous_prizes - previous_payouts
    ngr_added = current_prizes - previous_rollover

    anomaly = ngr_added < Decimal("0")
    if anomaly:
        logger.warning(
            "Draw {} reconciled to negative NGR {} (rollover {} exceeds pool {})",
            draw_number,
            ngr_added,
            previous_rollover,
            current_prizes,
        )

    trace = (
        f"NGR = {format_money(current_prizes)} - ({format_money(previous_prizes)} - "
        f"{format_money(previous_payouts)}) = {format_money(ngr_added)}"
    )
    return NGRResult(
        draw_number=draw_number,
        success=True,
        ngr_added=ngr_added,
        current_total_prizes=current_prizes,
        previous_total_prizes=previous_prizes,
        previous_payouts=previous_payouts,
        previous_rollover=previous_rollover,
        formula=NGR_FORMULA,
        trace=trace,
        anomaly=anomaly,
    )


def reconcile_or_failure(
    draw_number: int,
    current: DrawSnapshot | None,
    previous: DrawSnapshot | None,
) -> NGRResult:
    """Like :func:`reconcile`, but reports missing data as an unsuccessful result."""

    try:
        return reconcile(draw_number, current, previous)
    except MissingDrawDataError as exc:
        logger.warning("Cannot reconcile draw {}: {}", draw_number, exc)
        return NGRResult(draw_number=draw_number, success=False, error=str(exc))


__all__ = ["NGR_FORMULA", "reconcile", "reconcile_or_failure"]
