from __future__ import annotations

import asyncio
import logging

from .core.cache import CatalogCache
from .core.errors import FetchError
from .workers.embedding import EmbeddingIndex

logger = logging.getLogger(__name__)


class CatalogRefresher:
    """Background task that keeps the catalog cache warm.

    Each tick calls ``cache.get()``, so upstream is only contacted once the
    cached snapshot has gone stale.
    """

    def __init__(
        self,
        *,
        cache: CatalogCache,
        index: EmbeddingIndex | None = None,
        interval: float,
    ) -> None:
        self._cache = cache
        self._index = index
        self._interval = max(interval, 1)
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="catalog-refresher")

    async def stop(self) -> None:
        if not self._task:
            return
        self._stop_event.set()
        await self._task
        self._task = None

    async def run_once(self) -> bool:
        try:
            snapshot = await self._cache.get()
        except FetchError as exc:
            logger.warning("Catalog refresh failed with no cached data: %s", exc)
            return False
        except Exception:
            logger.exception("Unexpected error refreshing the catalog")
            return False

        if self._index is not None:
            self._index.schedule_catalog(snapshot)
        return True

    async def _run(self) -> None:
        logger.info("Starting catalog refresher (interval=%ss)", self._interval)
        try:
            while not self._stop_event.is_set():
                await self.run_once()
                try:
                    await asyncio.wait_for(
                        self._stop_event.wait(),
                        timeout=self._interval,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            logger.info("Catalog refresher stopped")
