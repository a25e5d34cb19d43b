from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Protocol

from .errors import FetchError
from .models import CatalogSnapshot

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    def fetch_catalog(self) -> Awaitable[CatalogSnapshot]: ...


class CatalogCache:
    """In-memory holder of the live catalog snapshot with a time-to-live.

    The snapshot and its publication time are swapped together in a single
    assignment, so readers never see a partial update. Concurrent refreshes
    share one in-flight fetch.
    """

    def __init__(
        self,
        fetcher: SnapshotSource,
        *,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fetcher = fetcher
        self._ttl = max(float(ttl_seconds), 0.0)
        self._clock = clock
        self._state: tuple[CatalogSnapshot, float] | None = None
        self._generation = 0
        self._inflight: asyncio.Task[CatalogSnapshot] | None = None

    @property
    def current(self) -> CatalogSnapshot | None:
        return self._state[0] if self._state else None

    @property
    def generation(self) -> int:
        return self._state[0].generation if self._state else 0

    def is_fresh(self) -> bool:
        if self._state is None:
            return False
        _, published_at = self._state
        return self._clock() - published_at < self._ttl

    async def get(self) -> CatalogSnapshot:
        """Return the live snapshot, refreshing it first when stale.

        A failed refresh keeps serving the previous snapshot; FetchError
        only propagates when nothing has been fetched yet.
        """

        if self.is_fresh():
            return self._state[0]  # type: ignore[index]

        try:
            return await self.refresh()
        except FetchError:
            previous = self.current
            if previous is None:
                raise
            logger.warning(
                "Catalog refresh failed; serving stale snapshot (generation=%s, origin=%s)",
                previous.generation,
                previous.origin,
            )
            return previous

    async def refresh(self) -> CatalogSnapshot:
        """Fetch and publish a new snapshot regardless of freshness."""

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.create_task(self._refresh(), name="catalog-refresh")
        # Shielded so one cancelled caller does not abort the shared fetch.
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> CatalogSnapshot:
        snapshot = await self._fetcher.fetch_catalog()
        if not snapshot.contracts:
            raise FetchError("Catalog fetch returned no contracts")

        self._generation += 1
        published = snapshot.model_copy(update={"generation": self._generation})
        self._state = (published, self._clock())
        logger.info(
            "Cached %s markets from %s (generation=%s)",
            len(published.contracts),
            published.origin,
            published.generation,
        )
        return published


__all__ = ["CatalogCache", "SnapshotSource"]
