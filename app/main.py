from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from loguru import logger

from . import schemas
from .core.config import get_settings, settings
from .services.container import ServiceContainer
from .services.lottery_service import (
    DEFAULT_METHOD,
    LotteryService,
    UnknownDrawMethodError,
    parse_draw_numbers,
)
from .services.revenue_service import RevenueService

API_VERSION = "0.1.0"

app = FastAPI(title="Revenue Reconciliation API", version=API_VERSION, debug=settings.debug)


@app.on_event("startup")
def on_startup() -> None:
    """Build caches, the browser pool and services once per process."""

    app.state.services = ServiceContainer.build(get_settings())


@app.on_event("shutdown")
def on_shutdown() -> None:
    services: ServiceContainer | None = getattr(app.state, "services", None)
    if services is not None:
        services.close()


def _services(request: Request) -> ServiceContainer:
    services: ServiceContainer | None = getattr(request.app.state, "services", None)
    if services is None:
        logger.info("Service container missing at request time; building it now")
        services = ServiceContainer.build(get_settings())
        request.app.state.services = services
    return services


def _lottery_service(services: ServiceContainer = Depends(_services)) -> LotteryService:
    return services.lottery


def _revenue_service(services: ServiceContainer = Depends(_services)) -> RevenueService:
    return services.revenue


@app.get("/", response_model=schemas.ServiceInfo, tags=["system"])
def root() -> schemas.ServiceInfo:
    return schemas.ServiceInfo(
        name=app.title,
        version=API_VERSION,
        endpoints=["/api/revenue", "/api/lottery-ngr", "/api/lottery-prizes", "/api/health"],
    )


@app.get("/api/health", response_model=schemas.HealthResponse, tags=["system"])
def healthcheck() -> schemas.HealthResponse:
    """Basic readiness probe consumed by infrastructure monitors."""

    return schemas.HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))


@app.get("/api/revenue", response_model=schemas.RevenueResponse, tags=["revenue"])
def get_revenue(
    *,
    refresh: Annotated[bool, Query(description="Bypass the cached response")] = False,
    service: RevenueService = Depends(_revenue_service),
):
    """Weekly and annual revenue plus holder earnings for every tracked token."""

    return schemas.RevenueResponse.from_report(service.get_revenue(refresh=refresh))


@app.get("/api/lottery-ngr", response_model=schemas.NGRResponse, tags=["lottery"])
def get_lottery_ngr(
    *,
    draws: Annotated[
        str | None, Query(description="Comma-separated draw numbers", example="63,64")
    ] = None,
    refresh: Annotated[
        bool, Query(description="Re-resolve the draws and their predecessors")
    ] = False,
    method: Annotated[str, Query(description="Draw source (scraper|graphql)")] = DEFAULT_METHOD,
    service: LotteryService = Depends(_lottery_service),
):
    """Net gaming revenue added by each requested draw."""

    draw_numbers = parse_draw_numbers(draws)
    if not draw_numbers:
        raise HTTPException(
            status_code=400,
            detail="Provide draws as comma-separated positive integers, e.g. draws=63,64",
        )
    try:
        batch = service.compute_ngr(draw_numbers, method=method, refresh=refresh)
    except UnknownDrawMethodError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return schemas.NGRResponse.from_batch(batch)


@app.get("/api/lottery-prizes", response_model=schemas.PrizeResponse, tags=["lottery"])
def get_lottery_prizes(
    *,
    draw: Annotated[str | None, Query(description="Draw number", example="64")] = None,
    refresh: Annotated[bool, Query(description="Bypass the draw cache")] = False,
    method: Annotated[str, Query(description="Draw source (scraper|graphql)")] = DEFAULT_METHOD,
    service: LotteryService = Depends(_lottery_service),
):
    """Prize breakdown for a single draw."""

    draw_numbers = parse_draw_numbers(draw)
    if len(draw_numbers) != 1 or "," in (draw or ""):
        raise HTTPException(status_code=400, detail="Provide draw as a positive integer")
    try:
        lookup = service.lookup_prizes(draw_numbers[0], method=method, refresh=refresh)
    except UnknownDrawMethodError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return schemas.PrizeResponse.from_lookup(lookup)
