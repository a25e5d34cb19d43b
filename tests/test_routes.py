"""HTTP route tests."""

from __future__ import annotations

from fastapi.testclient import TestClient

from headline_odds.app import create_app
from headline_odds.core.errors import FetchError
from headline_odds.core.models import MatchBatchResult, MatchResult, WarmCacheResult

ORIGIN = "https://primary.test/trade-api/v2"


class FakeService:
    def __init__(self, *, error: FetchError | None = None) -> None:
        self.error = error
        self.received: list[list[str]] = []

    async def match_headlines(self, headlines):
        self.received.append(list(headlines))
        if self.error:
            raise self.error
        match = MatchResult(
            ticker="KXBTC-A",
            title="Bitcoin price above 120000 on Friday?",
            url="https://kalshi.com/markets/KXBTC",
            score=1.1,
        )
        return MatchBatchResult(ok=True, results={headlines[0]: [match]}, market_count=5, origin=ORIGIN)

    async def warm_cache(self):
        if self.error:
            raise self.error
        return WarmCacheResult(ok=True, market_count=5, origin=ORIGIN)


def _client(service=None) -> TestClient:
    app = create_app()
    if service is not None:
        app.state.service = service
    return TestClient(app)


def test_health():
    response = _client().get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_match_route():
    service = FakeService()
    response = _client(service).post("/v1/match", json={"headlines": ["Bitcoin surges"]})

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["marketCount"] == 5
    assert body["origin"] == ORIGIN
    assert body["results"]["Bitcoin surges"][0]["ticker"] == "KXBTC-A"
    assert body["results"]["Bitcoin surges"][0]["divergent"] is False
    assert service.received == [["Bitcoin surges"]]


def test_match_route_reports_unavailable_catalog():
    service = FakeService(error=FetchError("No markets retrieved from any Kalshi API"))
    response = _client(service).post("/v1/match", json={"headlines": ["Bitcoin surges"]})

    assert response.status_code == 503
    assert response.json() == {"ok": False, "error": "No markets retrieved from any Kalshi API"}


def test_match_route_rejects_oversized_batches():
    service = FakeService()
    response = _client(service).post("/v1/match", json={"headlines": ["headline"] * 501})

    assert response.status_code == 422
    assert service.received == []


def test_match_route_validates_body():
    response = _client(FakeService()).post("/v1/match", json={"headlines": "not a list"})
    assert response.status_code == 422


def test_warm_route():
    response = _client(FakeService()).post("/v1/warm")

    assert response.status_code == 200
    assert response.json() == {"ok": True, "marketCount": 5, "origin": ORIGIN}


def test_warm_route_reports_unavailable_catalog():
    response = _client(FakeService(error=FetchError("down"))).post("/v1/warm")

    assert response.status_code == 503
    assert response.json() == {"ok": False, "error": "down"}


def test_missing_service_is_a_server_error():
    response = _client().post("/v1/warm")
    assert response.status_code == 500
