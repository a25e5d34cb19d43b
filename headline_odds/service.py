from __future__ import annotations

import logging
from typing import Sequence

from .core.cache import CatalogCache
from .core.models import MatchBatchResult, MatchResult, WarmCacheResult
from .core.scoring import DEFAULT_WEIGHTS, ScoringWeights, find_matches
from .workers.embedding import EmbeddingIndex

logger = logging.getLogger(__name__)


class MatchService:
    """Entry point used by the overlay: match headline batches and warm the catalog."""

    def __init__(
        self,
        *,
        cache: CatalogCache,
        index: EmbeddingIndex,
        weights: ScoringWeights = DEFAULT_WEIGHTS,
        min_score: float = 0.15,
        max_results: int = 3,
    ) -> None:
        self._cache = cache
        self._index = index
        self._weights = weights
        self._min_score = min_score
        self._max_results = max(max_results, 1)

    async def warm_cache(self) -> WarmCacheResult:
        snapshot = await self._cache.get()
        self._index.schedule_catalog(snapshot)
        return WarmCacheResult(ok=True, market_count=len(snapshot.contracts), origin=snapshot.origin)

    async def match_headlines(self, headlines: Sequence[str]) -> MatchBatchResult:
        """Return up to ``max_results`` matches per headline.

        Raises FetchError when no catalog can be obtained at all.
        """

        snapshot = await self._cache.get()
        self._index.schedule_catalog(snapshot)

        unique = [headline for headline in dict.fromkeys(headlines) if headline]
        if self._index.enabled and unique:
            await self._index.embed_headlines(unique)

        contract_vectors = self._index.contract_vectors(snapshot.generation)
        results: dict[str, list[MatchResult]] = {}
        for headline in unique:
            matches = find_matches(
                headline,
                snapshot.contracts,
                headline_vector=self._index.headline_vector(headline),
                contract_vectors=contract_vectors,
                weights=self._weights,
                min_score=self._min_score,
                limit=self._max_results,
            )
            if matches:
                results[headline] = matches

        logger.debug(
            "Matched %s of %s headlines against %s markets",
            len(results),
            len(unique),
            len(snapshot.contracts),
        )
        return MatchBatchResult(
            ok=True,
            results=results,
            market_count=len(snapshot.contracts),
            origin=snapshot.origin,
        )


__all__ = ["MatchService"]
