from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .domain import Confidence, NGRResult as NGRResultRecord

if TYPE_CHECKING:
    from .services.lottery_service import NGRBatch, PrizeLookup
    from .services.revenue_service import RevenueReport

NGR_EXPLANATION = (
    "NGR added by a draw is its total prize pool minus the rollover carried in "
    "from the previous draw (previous pool minus previous payouts)."
)


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class PrizeDivision(ApiModel):
    label: str
    prize_pool_amount: float
    winner_count: int
    payout_amount: float

    @field_validator("prize_pool_amount", "payout_amount", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float:
        return float(value)


class DrawSnapshot(ApiModel):
    draw_number: int
    prize_divisions: list[PrizeDivision] = Field(default_factory=list)
    total_prize_pool: float
    total_payouts: float
    total_winners: int
    rollover: float
    success: bool
    extracted_at: datetime
    source: str | None = None

    @field_validator("total_prize_pool", "total_payouts", "rollover", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float:
        return float(value)


class NGRBreakdown(ApiModel):
    formula: str
    result: str


class NGRResult(ApiModel):
    draw_number: int
    success: bool
    ngr_added: float | None = None
    current_total_prizes: float | None = None
    previous_total_prizes: float | None = None
    previous_payouts: float | None = None
    previous_rollover: float | None = None
    breakdown: NGRBreakdown | None = None
    anomaly: bool = False
    error: str | None = None

    @field_validator(
        "ngr_added",
        "current_total_prizes",
        "previous_total_prizes",
        "previous_payouts",
        "previous_rollover",
        mode="before",
    )
    @classmethod
    def _coerce_decimal(cls, value: Any) -> float | None:
        if value is None:
            return None
        return float(value)

    @classmethod
    def from_record(cls, record: NGRResultRecord) -> "NGRResult":
        breakdown = None
        if record.formula and record.trace:
            breakdown = NGRBreakdown(formula=record.formula, result=record.trace)
        return cls(
            draw_number=record.draw_number,
            success=record.success,
            ngr_added=record.ngr_added,
            current_total_prizes=record.current_total_prizes,
            previous_total_prizes=record.previous_total_prizes,
            previous_payouts=record.previous_payouts,
            previous_rollover=record.previous_rollover,
            breakdown=breakdown,
            anomaly=record.anomaly,
            error=record.error,
        )


class NGRResponse(ApiModel):
    success: bool
    method: str
    results: list[NGRResult]
    scraped_at: datetime
    explanation: str = NGR_EXPLANATION

    @classmethod
    def from_batch(cls, batch: NGRBatch) -> NGRResponse:
        return cls(
            success=True,
            method=batch.method,
            results=[NGRResult.from_record(result) for result in batch.results],
            scraped_at=batch.scraped_at,
        )


class PrizeResponse(ApiModel):
    success: bool
    cached: bool
    draw_number: int
    data: DrawSnapshot | None = None
    error: str | None = None

    @classmethod
    def from_lookup(cls, lookup: PrizeLookup) -> PrizeResponse:
        data = None
        if lookup.snapshot is not None:
            data = DrawSnapshot.model_validate(lookup.snapshot)
        return cls(
            success=lookup.success,
            cached=lookup.cached,
            draw_number=lookup.draw_number,
            data=data,
            error=lookup.error,
        )


class RevenueSnapshot(ApiModel):
    token_symbol: str
    weekly_revenue: float
    annual_revenue: float
    weekly_earnings: float
    annual_earnings: float
    accrual_fraction: float
    confidence: Confidence
    captured_at: datetime
    source: str | None = None


class RevenueResponse(ApiModel):
    success: bool
    data: list[RevenueSnapshot]
    cached: bool
    live_count: str
    scraped_at: datetime
    source: str
    cache_age_seconds: float | None = None
    next_refresh_seconds: float | None = None

    @classmethod
    def from_report(cls, report: RevenueReport) -> RevenueResponse:
        return cls(
            success=True,
            data=[RevenueSnapshot.model_validate(s) for s in report.snapshots],
            cached=report.cached,
            live_count=report.live_count_label,
            scraped_at=report.scraped_at,
            source=report.source,
            cache_age_seconds=report.cache_age_seconds,
            next_refresh_seconds=report.next_refresh_seconds,
        )


class HealthResponse(ApiModel):
    status: str
    timestamp: datetime


class ServiceInfo(ApiModel):
    name: str
    version: str
    endpoints: list[str]
