from __future__ import annotations

import asyncio
from typing import Any, Dict

import httpx


class KalshiClient:
    """Async HTTP client for one Kalshi trade API mirror."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_events(self, *, limit: int, cursor: str | None = None) -> Dict[str, Any]:
        """Fetch one page of open events with their nested markets."""

        params = {
            "limit": limit,
            "status": "open",
            "with_nested_markets": "true",
        }
        if cursor:
            params["cursor"] = cursor
        # httpx timeouts are per phase; wait_for bounds the whole call.
        response = await asyncio.wait_for(
            self._client.get(f"{self._base_url}/events", params=params),
            timeout=self._timeout,
        )
        response.raise_for_status()
        payload = response.json()

        if not isinstance(payload, dict):
            raise ValueError(f"Kalshi events payload from {self._base_url} was not a JSON object")
        return payload

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "KalshiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
