from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import httpx
import numpy as np

from ..core.errors import EmbeddingUnavailable

logger = logging.getLogger(__name__)

MAX_TEXTS_PER_REQUEST = 100


def _to_vector(item: Any) -> np.ndarray | None:
    if not isinstance(item, list) or not item:
        return None
    try:
        vector = np.asarray(item, dtype=np.float32)
    except (TypeError, ValueError):
        return None
    return vector if vector.ndim == 1 else None


class EmbeddingClient:
    """Thin wrapper around the text embedding endpoint.

    Failures never raise out of :meth:`embed`; callers get ``None`` and fall
    back to keyword and cluster scoring.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def embed(self, texts: Sequence[str]) -> list[np.ndarray | None] | None:
        """Return one vector per text, aligned by index, or ``None`` when unavailable."""

        if len(texts) > MAX_TEXTS_PER_REQUEST:
            raise ValueError(f"At most {MAX_TEXTS_PER_REQUEST} texts can be embedded per request")
        if not texts:
            return []

        try:
            return await self._request(list(texts))
        except EmbeddingUnavailable as exc:
            logger.warning("Embeddings unavailable for %s texts: %s", len(texts), exc)
            return None
        except Exception:
            logger.exception("Embedding request failed for %s texts", len(texts))
            return None

    async def _request(self, texts: list[str]) -> list[np.ndarray | None]:
        try:
            response = await asyncio.wait_for(
                self._client.post(self._endpoint, json={"texts": texts}),
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as exc:
            raise EmbeddingUnavailable(f"status={exc.response.status_code}") from exc
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            raise EmbeddingUnavailable(str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise EmbeddingUnavailable("response body was not JSON") from exc

        embeddings = data.get("embeddings") if isinstance(data, dict) else None
        if not isinstance(embeddings, list):
            raise EmbeddingUnavailable("response is missing an embeddings list")
        if len(embeddings) != len(texts):
            raise EmbeddingUnavailable(
                f"expected {len(texts)} vectors, got {len(embeddings)}"
            )
        return [_to_vector(item) for item in embeddings]


__all__ = ["EmbeddingClient", "MAX_TEXTS_PER_REQUEST"]
