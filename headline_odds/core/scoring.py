from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict

from .clusters import get_clusters
from .divergence import is_divergent
from .keywords import extract_keywords
from .models import Contract, MatchResult


class ScoringWeights(BaseModel):
    """Tunable constants of the composite relevance score."""

    model_config = ConfigDict(frozen=True)

    cluster_bonus: float = 0.4
    cluster_only_factor: float = 0.5
    long_keyword_length: int = 5
    long_keyword_bonus: float = 0.1
    bigram_min_length: int = 6
    bigram_bonus: float = 0.2
    recency_window: timedelta = timedelta(days=7)
    recency_bonus: float = 0.2
    semantic_floor: float = 0.5


DEFAULT_WEIGHTS = ScoringWeights()


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    left = np.asarray(a, dtype=np.float32)
    right = np.asarray(b, dtype=np.float32)
    if left.ndim != 1 or left.size == 0 or left.shape != right.shape:
        return 0.0
    denom = float(np.linalg.norm(left)) * float(np.linalg.norm(right))
    if denom == 0:
        return 0.0
    return float(np.dot(left, right)) / denom


def score_contract(
    headline_keywords: Sequence[str],
    headline_clusters: Iterable[str],
    headline_vector: np.ndarray | None,
    contract: Contract,
    *,
    contract_vector: np.ndarray | None = None,
    now: datetime | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
) -> float:
    """Return the composite relevance of ``contract`` for one headline.

    Zero means no shared keyword and no shared topic cluster. A shared
    cluster without keyword overlap yields a flat low-confidence floor.
    """

    contract_text = contract.text
    contract_keywords = set(extract_keywords(contract_text))

    matched = [
        keyword
        for keyword in headline_keywords
        if keyword in contract_keywords or keyword in contract_text
    ]

    contract_clusters = get_clusters(contract_text)
    shared = any(cluster in contract_clusters for cluster in headline_clusters)
    cluster_bonus = weights.cluster_bonus if shared else 0.0

    if not matched and not cluster_bonus:
        return 0.0
    if not matched:
        return cluster_bonus * weights.cluster_only_factor

    length_bonus = sum(
        weights.long_keyword_bonus for keyword in matched if len(keyword) > weights.long_keyword_length
    )

    # Pairs are taken from the filtered keyword list, not the raw headline.
    bigram_bonus = 0.0
    for first, second in zip(headline_keywords, headline_keywords[1:]):
        bigram = f"{first} {second}"
        if len(bigram) > weights.bigram_min_length and bigram in contract_text:
            bigram_bonus = weights.bigram_bonus
            break

    recency_bonus = 0.0
    if contract.close_time is not None:
        current = now or datetime.now(timezone.utc)
        if current < contract.close_time < current + weights.recency_window:
            recency_bonus = weights.recency_bonus

    semantic_bonus = 0.0
    if headline_vector is not None and contract_vector is not None:
        similarity = cosine_similarity(headline_vector, contract_vector)
        if similarity > weights.semantic_floor:
            semantic_bonus = similarity - weights.semantic_floor

    return (
        len(matched) / len(headline_keywords)
        + length_bonus
        + bigram_bonus
        + cluster_bonus
        + recency_bonus
        + semantic_bonus
    )


def find_matches(
    headline: str,
    contracts: Sequence[Contract],
    *,
    headline_vector: np.ndarray | None = None,
    contract_vectors: Mapping[str, np.ndarray] | None = None,
    now: datetime | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    min_score: float = 0.15,
    limit: int = 3,
) -> list[MatchResult]:
    """Score every contract against ``headline`` and return the best few above ``min_score``."""

    headline_keywords = extract_keywords(headline)
    headline_clusters = get_clusters(headline)
    if not headline_keywords and not headline_clusters:
        return []

    current = now or datetime.now(timezone.utc)
    vectors = contract_vectors or {}

    scored: list[tuple[float, Contract]] = []
    for contract in contracts:
        score = score_contract(
            headline_keywords,
            headline_clusters,
            headline_vector,
            contract,
            contract_vector=vectors.get(contract.ticker),
            now=current,
            weights=weights,
        )
        if score > min_score:
            scored.append((score, contract))

    # sorted() is stable, so catalog order breaks ties.
    scored = sorted(scored, key=lambda item: item[0], reverse=True)[: max(limit, 0)]

    return [
        MatchResult.from_contract(
            contract,
            score=score,
            divergent=is_divergent(
                headline,
                contract.yes_bid if contract.yes_bid is not None else contract.last_price,
            ),
        )
        for score, contract in scored
    ]


__all__ = [
    "DEFAULT_WEIGHTS",
    "ScoringWeights",
    "cosine_similarity",
    "find_matches",
    "score_contract",
]
