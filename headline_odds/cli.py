from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os

import uvicorn

from .config import settings
from .core.cache import CatalogCache
from .core.errors import FetchError
from .ingress.catalog import CatalogFetcher
from .ingress.kalshi import KalshiClient
from .integrations.embed_client import EmbeddingClient
from .service import MatchService
from .workers.embedding import EmbeddingIndex


def configure_logging() -> None:
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


async def match_once(headlines: list[str]) -> dict:
    """Fetch the catalog once and match ``headlines`` without starting the server."""

    fetcher = CatalogFetcher(
        [KalshiClient(url, timeout=settings.request_timeout) for url in settings.api_endpoints],
        page_limit=settings.catalog_page_limit,
        max_pages=settings.catalog_max_pages,
    )
    embed_client = (
        EmbeddingClient(settings.embed_api_url, timeout=settings.embed_timeout)
        if settings.embed_api_url
        else None
    )
    index = EmbeddingIndex(
        embed_client,
        batch_size=settings.embedding_batch_size,
        max_headlines=settings.embedding_headline_cache,
    )
    cache = CatalogCache(fetcher, ttl_seconds=settings.catalog_ttl_sec)
    service = MatchService(
        cache=cache,
        index=index,
        min_score=settings.min_match_score,
        max_results=settings.max_matches_per_headline,
    )
    try:
        if embed_client is not None:
            # One-shot runs wait for contract vectors instead of embedding in the background.
            await index.embed_catalog(await cache.get())
        result = await service.match_headlines(headlines)
        return result.serialize()
    finally:
        await index.aclose()
        await fetcher.aclose()
        if embed_client is not None:
            await embed_client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Headline to prediction-market matcher")
    parser.add_argument(
        "--match",
        nargs="+",
        metavar="HEADLINE",
        help="Match the given headlines once, print JSON and exit instead of serving",
    )
    args = parser.parse_args()
    configure_logging()

    if args.match:
        try:
            payload = asyncio.run(match_once(args.match))
        except FetchError as exc:
            print(json.dumps({"ok": False, "error": str(exc)}))
            raise SystemExit(1) from exc
        print(json.dumps(payload, indent=2))
        return

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(
        "headline_odds.app:app",
        host=host,
        port=port,
        reload=os.getenv("UVICORN_RELOAD", "0").lower() in {"1", "true", "yes"},
        log_level=os.getenv("UVICORN_LOG_LEVEL", "info"),
    )
