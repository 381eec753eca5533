from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from app.domain import Confidence, DrawSnapshot, NGRResult, PrizeDivision, RevenueSnapshot
from app.main import _lottery_service, _revenue_service, app
from app.services.lottery_service import NGRBatch, PrizeLookup, UnknownDrawMethodError
from app.services.revenue_service import RevenueReport


@pytest.fixture
def client():
    """Test client that cleans up dependency overrides after each test."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def lottery_service():
    service = MagicMock()
    app.dependency_overrides[_lottery_service] = lambda: service
    return service


@pytest.fixture
def revenue_service():
    service = MagicMock()
    app.dependency_overrides[_revenue_service] = lambda: service
    return service


def revenue_snapshot(symbol: str, confidence: Confidence) -> RevenueSnapshot:
    return RevenueSnapshot(
        token_symbol=symbol,
        weekly_revenue=1_000.0,
        annual_revenue=52_000.0,
        weekly_earnings=500.0,
        annual_earnings=26_000.0,
        accrual_fraction=0.5,
        confidence=confidence,
        source="stub",
    )


def test_healthcheck(client):
    """Verify the health endpoint reports a healthy service."""
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert "timestamp" in body


def test_root_lists_endpoints(client):
    response = client.get("/")
    assert response.status_code == 200
    assert "/api/lottery-ngr" in response.json()["endpoints"]


def test_revenue_response_shape(client, revenue_service):
    """Verify /api/revenue returns three tokens with camelCase fields."""
    revenue_service.get_revenue.return_value = RevenueReport(
        snapshots=(
            revenue_snapshot("PUMP", Confidence.LIVE),
            revenue_snapshot("RLB", Confidence.ESTIMATED),
            revenue_snapshot("HYPE", Confidence.LIVE),
        ),
        source="live",
    )

    response = client.get("/api/revenue")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["cached"] is False
    assert body["liveCount"] == "2/3"
    assert "scrapedAt" in body
    assert [item["confidence"] for item in body["data"]] == ["live", "estimated", "live"]
    assert body["data"][0]["weeklyEarnings"] == 500.0
    revenue_service.get_revenue.assert_called_once_with(refresh=False)


def test_revenue_refresh_flag(client, revenue_service):
    revenue_service.get_revenue.return_value = RevenueReport(
        snapshots=(revenue_snapshot("PUMP", Confidence.LIVE),), source="live", cached=False
    )

    client.get("/api/revenue", params={"refresh": "true"})

    revenue_service.get_revenue.assert_called_once_with(refresh=True)


def test_lottery_ngr_success(client, lottery_service):
    """Verify /api/lottery-ngr serialises the reconciliation detail."""
    lottery_service.compute_ngr.return_value = NGRBatch(
        method="scraper",
        results=[
            NGRResult(
                draw_number=64,
                success=True,
                ngr_added=Decimal("250000"),
                current_total_prizes=Decimal("1400000"),
                previous_total_prizes=Decimal("1200000"),
                previous_payouts=Decimal("50000"),
                previous_rollover=Decimal("1150000"),
                formula="NGR = CurrentPrizes - (PrevPrizes - PrevPayouts)",
                trace="NGR = $1,400,000 - ($1,200,000 - $50,000) = $250,000",
            ),
            NGRResult(draw_number=70, success=False, error="Missing data for draw 69"),
        ],
    )

    response = client.get("/api/lottery-ngr", params={"draws": "64, 70"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["method"] == "scraper"
    first, second = body["results"]
    assert first["drawNumber"] == 64
    assert first["ngrAdded"] == 250000.0
    assert first["previousRollover"] == 1150000.0
    assert first["breakdown"]["result"].endswith("= $250,000")
    assert first["anomaly"] is False
    assert second["success"] is False
    assert second["error"] == "Missing data for draw 69"
    assert second["breakdown"] is None
    lottery_service.compute_ngr.assert_called_once_with([64, 70], method="scraper", refresh=False)


@pytest.mark.parametrize("query", [{}, {"draws": ""}, {"draws": "abc"}, {"draws": "0,-3"}])
def test_lottery_ngr_rejects_invalid_draws(client, lottery_service, query):
    response = client.get("/api/lottery-ngr", params=query)
    assert response.status_code == 400
    lottery_service.compute_ngr.assert_not_called()


def test_lottery_ngr_rejects_unknown_method(client, lottery_service):
    lottery_service.compute_ngr.side_effect = UnknownDrawMethodError("Unknown method 'x'")
    response = client.get("/api/lottery-ngr", params={"draws": "64", "method": "x"})
    assert response.status_code == 400


def test_lottery_prizes_success(client, lottery_service):
    snapshot = DrawSnapshot(
        draw_number=64,
        prize_divisions=(
            PrizeDivision("Jackpot", Decimal("1300000"), 0, Decimal("0")),
            PrizeDivision("Division 2", Decimal("100000"), 2, Decimal("100000")),
        ),
        source="table",
    )
    lottery_service.lookup_prizes.return_value = PrizeLookup(
        draw_number=64, snapshot=snapshot, cached=True
    )

    response = client.get("/api/lottery-prizes", params={"draw": "64"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["cached"] is True
    data = body["data"]
    assert data["drawNumber"] == 64
    assert data["totalPrizePool"] == 1400000.0
    assert data["totalPayouts"] == 100000.0
    assert data["totalWinners"] == 2
    assert data["source"] == "table"
    assert data["prizeDivisions"][1]["payoutAmount"] == 100000.0
    lottery_service.lookup_prizes.assert_called_once_with(64, method="scraper", refresh=False)


def test_lottery_prizes_failure_is_reported(client, lottery_service):
    lottery_service.lookup_prizes.return_value = PrizeLookup(
        draw_number=64, snapshot=None, error="No 'previous' control found"
    )

    response = client.get("/api/lottery-prizes", params={"draw": "64"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["data"] is None
    assert "previous" in body["error"]


@pytest.mark.parametrize("query", [{}, {"draw": "x"}, {"draw": "0"}, {"draw": "63,64"}])
def test_lottery_prizes_rejects_invalid_draw(client, lottery_service, query):
    response = client.get("/api/lottery-prizes", params=query)
    assert response.status_code == 400
    lottery_service.lookup_prizes.assert_not_called()
