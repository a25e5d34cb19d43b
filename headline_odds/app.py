from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes import router
from .background import CatalogRefresher
from .config import settings
from .core.cache import CatalogCache
from .core.errors import FetchError
from .ingress.catalog import CatalogFetcher
from .ingress.kalshi import KalshiClient
from .integrations.embed_client import EmbeddingClient
from .service import MatchService
from .workers.embedding import EmbeddingIndex

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    clients = [
        KalshiClient(endpoint, timeout=settings.request_timeout)
        for endpoint in settings.api_endpoints
    ]
    fetcher = CatalogFetcher(
        clients,
        page_limit=settings.catalog_page_limit,
        max_pages=settings.catalog_max_pages,
    )
    cache = CatalogCache(fetcher, ttl_seconds=settings.catalog_ttl_sec)
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
    service = MatchService(
        cache=cache,
        index=index,
        min_score=settings.min_match_score,
        max_results=settings.max_matches_per_headline,
    )
    refresher = CatalogRefresher(
        cache=cache,
        index=index,
        interval=settings.catalog_refresh_sec,
    ) if settings.catalog_refresh_sec > 0 else None

    app.state.settings = settings
    app.state.cache = cache
    app.state.index = index
    app.state.service = service
    app.state.refresher = refresher

    logger.info(
        "Backend configuration loaded (endpoints=%s, ttl_sec=%s, max_pages=%s, embeddings=%s, refresh_sec=%s)",
        settings.api_endpoints,
        settings.catalog_ttl_sec,
        settings.catalog_max_pages,
        "on" if embed_client else "off",
        settings.catalog_refresh_sec,
    )

    try:
        await service.warm_cache()
    except FetchError as exc:
        logger.warning("Initial catalog warm-up failed: %s", exc)

    if refresher is not None:
        await refresher.start()

    try:
        yield
    finally:
        if refresher is not None:
            await refresher.stop()
        await index.aclose()
        await fetcher.aclose()
        if embed_client is not None:
            await embed_client.close()


def create_app() -> FastAPI:
    app = FastAPI(title="Headline Odds Matcher", lifespan=lifespan)
    origins = [origin.strip() for origin in settings.cors_allow_origins.split(",") if origin.strip()]
    if not origins:
        origins = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    return app


app = create_app()
