from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Mapping

import numpy as np

from ..core.models import CatalogSnapshot, Contract
from ..integrations.embed_client import MAX_TEXTS_PER_REQUEST, EmbeddingClient

logger = logging.getLogger(__name__)

MAX_CONTRACT_TEXT = 256
MAX_HEADLINE_VECTORS = 10_000


def _contract_to_text(contract: Contract) -> str:
    parts = [contract.title, contract.subtitle, contract.event_title]
    return " ".join(part for part in parts if part)[:MAX_CONTRACT_TEXT]


class EmbeddingIndex:
    """Vector cache for contracts and headlines.

    Contract vectors are stored with the catalog generation they were built
    for and are only served to callers asking for that same generation.
    Headline vectors are keyed by exact text and outlive snapshots.
    """

    def __init__(
        self,
        client: EmbeddingClient | None,
        *,
        batch_size: int = 50,
        max_headlines: int = MAX_HEADLINE_VECTORS,
    ) -> None:
        self._client = client
        self._batch_size = min(max(batch_size, 1), MAX_TEXTS_PER_REQUEST)
        self._max_headlines = max(max_headlines, 1)
        self._contracts: tuple[int, Mapping[str, np.ndarray]] = (0, {})
        self._headlines: dict[str, np.ndarray] = {}
        self._tasks: dict[int, asyncio.Task[None]] = {}

    @property
    def enabled(self) -> bool:
        return self._client is not None

    @property
    def generation(self) -> int:
        return self._contracts[0]

    def contract_vectors(self, generation: int) -> Mapping[str, np.ndarray] | None:
        embedded_generation, vectors = self._contracts
        if embedded_generation != generation or not vectors:
            return None
        return vectors

    def headline_vector(self, headline: str) -> np.ndarray | None:
        return self._headlines.get(headline)

    async def embed_catalog(self, snapshot: CatalogSnapshot) -> None:
        if self._client is None or self.generation == snapshot.generation:
            return

        contracts = list(snapshot.contracts)
        logger.info("Embedding %s contracts (generation=%s)", len(contracts), snapshot.generation)
        vectors: dict[str, np.ndarray] = {}
        for i in range(0, len(contracts), self._batch_size):
            chunk = contracts[i : i + self._batch_size]
            batch = await self._client.embed([_contract_to_text(contract) for contract in chunk])
            if batch is None:
                logger.warning("Embedding batch failed; stopping after %s contracts", len(vectors))
                break
            for contract, vector in zip(chunk, batch):
                if vector is not None:
                    vectors[contract.ticker] = vector

        if vectors and snapshot.generation > self.generation:
            self._contracts = (snapshot.generation, vectors)
            logger.info("Stored %s contract embeddings (generation=%s)", len(vectors), snapshot.generation)

    def schedule_catalog(self, snapshot: CatalogSnapshot) -> asyncio.Task[None] | None:
        """Embed ``snapshot`` in the background, at most once per generation."""

        if self._client is None or self.generation == snapshot.generation:
            return None
        existing = self._tasks.get(snapshot.generation)
        if existing is not None:
            return existing

        # Tasks for superseded generations are left to finish; their result is ignored on lookup.
        self._tasks = {
            generation: task for generation, task in self._tasks.items() if not task.done()
        }
        task = asyncio.create_task(
            self._embed_catalog_logged(snapshot),
            name=f"embed-catalog-{snapshot.generation}",
        )
        self._tasks[snapshot.generation] = task
        return task

    async def _embed_catalog_logged(self, snapshot: CatalogSnapshot) -> None:
        try:
            await self.embed_catalog(snapshot)
        except Exception:
            logger.exception("Contract embedding failed (generation=%s)", snapshot.generation)

    async def embed_headlines(self, headlines: Iterable[str]) -> int:
        """Embed headlines that have no cached vector yet; return how many were stored."""

        if self._client is None:
            return 0

        pending = [
            headline
            for headline in dict.fromkeys(headlines)
            if headline and headline not in self._headlines
        ]
        stored = 0
        for i in range(0, len(pending), MAX_TEXTS_PER_REQUEST):
            chunk = pending[i : i + MAX_TEXTS_PER_REQUEST]
            batch = await self._client.embed(chunk)
            if batch is None:
                break
            for headline, vector in zip(chunk, batch):
                if vector is not None:
                    self._headlines[headline] = vector
                    stored += 1
        # Oldest first: dicts keep insertion order.
        overflow = len(self._headlines) - self._max_headlines
        for stale in list(self._headlines)[: max(overflow, 0)]:
            del self._headlines[stale]
        return stored

    async def aclose(self) -> None:
        """Cancel background catalog embedding still in flight."""

        tasks = [task for task in self._tasks.values() if not task.done()]
        self._tasks = {}
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


__all__ = ["EmbeddingIndex"]
