from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Sequence

from ..core.errors import FetchError, MalformedUpstreamItem
from ..core.models import CatalogSnapshot, Contract
from ..core.normalize import normalize_contract
from .kalshi import KalshiClient

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _extract_cursor(payload: dict[str, Any]) -> str | None:
    cursor = payload.get("cursor")
    if not isinstance(cursor, str) or not cursor.strip():
        return None
    return cursor


class CatalogFetcher:
    """Builds a catalog snapshot from the first Kalshi mirror that yields contracts.

    Mirrors are tried in order and never merged. A mirror that raises or
    times out is logged and skipped; its partial pages are discarded.
    """

    def __init__(
        self,
        clients: Sequence[KalshiClient],
        *,
        page_limit: int = 200,
        max_pages: int = 4,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not clients:
            raise ValueError("CatalogFetcher requires at least one endpoint")
        self._clients = list(clients)
        self._page_limit = max(page_limit, 1)
        self._max_pages = max(max_pages, 1)
        self._clock = clock

    async def fetch_catalog(self) -> CatalogSnapshot:
        failures: dict[str, str] = {}

        for client in self._clients:
            endpoint = client.base_url
            try:
                contracts = await self._fetch_endpoint(client)
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
                logger.warning("Kalshi endpoint %s failed, trying next: %s", endpoint, reason)
                failures[endpoint] = reason
                continue

            if contracts:
                logger.info("Fetched %s open contracts from %s", len(contracts), endpoint)
                return CatalogSnapshot(
                    contracts=tuple(contracts),
                    origin=endpoint,
                    fetched_at=self._clock(),
                )

            logger.warning("Kalshi endpoint %s returned no open contracts", endpoint)
            failures[endpoint] = "no open contracts"

        raise FetchError("No markets retrieved from any Kalshi API", failures=failures)

    async def _fetch_endpoint(self, client: KalshiClient) -> List[Contract]:
        contracts: List[Contract] = []
        seen_tickers: set[str] = set()
        seen_cursors: set[str] = set()
        cursor: str | None = None
        now = self._clock()

        for _ in range(self._max_pages):
            payload = await client.fetch_events(limit=self._page_limit, cursor=cursor)
            events = payload.get("events") or []
            if not isinstance(events, list):
                raise ValueError(f"Kalshi events payload from {client.base_url} has no event list")

            for event in events:
                if not isinstance(event, dict):
                    continue
                self._collect_event(event, contracts, seen_tickers, now)

            cursor = _extract_cursor(payload)
            if cursor is None or len(events) < self._page_limit:
                break
            if cursor in seen_cursors:
                logger.warning("Received repeated cursor '%s' from %s; stopping pagination", cursor, client.base_url)
                break
            seen_cursors.add(cursor)
        else:
            logger.debug("Stopped paginating %s at the %s page cap", client.base_url, self._max_pages)

        return contracts

    def _collect_event(
        self,
        event: dict[str, Any],
        contracts: List[Contract],
        seen_tickers: set[str],
        now: datetime,
    ) -> None:
        markets = event.get("markets") or []
        if not isinstance(markets, list):
            return

        for raw_market in markets:
            try:
                contract = normalize_contract(event, raw_market)
            except MalformedUpstreamItem as exc:
                logger.debug("Skipping malformed market in event %s: %s", event.get("event_ticker"), exc)
                continue

            # First occurrence wins, even when that occurrence is expired.
            if contract.ticker in seen_tickers:
                continue
            seen_tickers.add(contract.ticker)

            if contract.close_time is not None and contract.close_time <= now:
                continue
            contracts.append(contract)

    async def aclose(self) -> None:
        for client in self._clients:
            await client.close()


__all__ = ["CatalogFetcher"]
