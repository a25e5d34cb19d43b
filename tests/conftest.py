"""Shared fixtures for the matcher test suite."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable

import pytest

from headline_odds.core.errors import FetchError
from headline_odds.core.models import CatalogSnapshot, Contract

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class ManualClock:
    """Monotonic clock stand-in advanced explicitly by tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class StubFetcher:
    """Returns queued snapshots (or raises queued errors) and counts calls."""

    def __init__(self, *outcomes: CatalogSnapshot | Exception) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0
        self.gate: asyncio.Event | None = None

    def queue(self, outcome: CatalogSnapshot | Exception) -> None:
        self._outcomes.append(outcome)

    async def fetch_catalog(self) -> CatalogSnapshot:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if not self._outcomes:
            raise FetchError("No markets retrieved from any Kalshi API")
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def make_contract() -> Callable[..., Contract]:
    def _make(ticker: str = "KXTEST-1", title: str = "Test market", **fields: Any) -> Contract:
        fields.setdefault("url", f"https://kalshi.com/markets/{ticker}")
        return Contract(ticker=ticker, title=title, **fields)

    return _make


@pytest.fixture
def make_snapshot() -> Callable[..., CatalogSnapshot]:
    def _make(*contracts: Contract, origin: str = "https://primary.test/trade-api/v2") -> CatalogSnapshot:
        return CatalogSnapshot(contracts=tuple(contracts), origin=origin, fetched_at=NOW)

    return _make


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def crypto_catalog(make_contract) -> list[Contract]:
    return [
        make_contract("KXBTC-A", "Bitcoin price above 120000 on Friday?", category="Crypto", yes_bid=20),
        make_contract("KXETH-B", "Will Ethereum reach 5000?", category="Crypto"),
        make_contract("KXRAIN-C", "Will it rain in Seattle?", category="Climate"),
        make_contract("KXBTC-D", "Bitcoin price above 120000 on Friday?", category="Crypto", yes_bid=60),
        make_contract("KXETF-E", "Bitcoin ETF approved?", category="Crypto"),
    ]
