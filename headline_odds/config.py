from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env.local", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    kalshi_api_urls: str = Field(
        default="https://api.elections.kalshi.com/trade-api/v2,https://api.kalshi.com/trade-api/v2",
        alias="KALSHI_API_URLS",
        description="Comma-separated, ordered list of equivalent Kalshi trade API mirrors.",
    )
    catalog_ttl_sec: int = Field(
        default=300,
        alias="CATALOG_TTL_SEC",
        description="Seconds a fetched market catalog is served before it is considered stale.",
    )
    catalog_max_pages: int = Field(
        default=4,
        alias="CATALOG_MAX_PAGES",
        description="Maximum number of event pages requested per endpoint per refresh.",
    )
    catalog_page_limit: int = Field(
        default=200,
        alias="CATALOG_PAGE_LIMIT",
        description="Number of events requested per page.",
    )
    request_timeout: float = Field(
        default=10.0,
        alias="REST_TIMEOUT_SEC",
        description="Timeout in seconds for Kalshi REST requests.",
    )
    catalog_refresh_sec: int = Field(
        default=60,
        alias="CATALOG_REFRESH_SEC",
        description="Cadence of the background catalog refresher in seconds (0 disables it).",
    )
    embed_api_url: Optional[str] = Field(
        default=None,
        alias="EMBED_API_URL",
        description="Embedding service endpoint; semantic matching is disabled when unset.",
    )
    embed_timeout: float = Field(
        default=8.0,
        alias="EMBED_TIMEOUT_SEC",
        description="Timeout in seconds for a single embedding request.",
    )
    embedding_batch_size: int = Field(
        default=50,
        alias="EMBEDDING_BATCH_SIZE",
        description="Number of contract texts embedded per request (at most 100).",
    )
    embedding_headline_cache: int = Field(
        default=10_000,
        alias="EMBEDDING_HEADLINE_CACHE",
        description="Maximum number of headline vectors kept; the oldest are evicted first.",
    )
    min_match_score: float = Field(
        default=0.15,
        alias="MIN_MATCH_SCORE",
        description="Scores at or below this value are not reported as matches.",
    )
    max_matches_per_headline: int = Field(
        default=3,
        alias="MAX_MATCHES_PER_HEADLINE",
        description="Maximum number of contracts returned per headline.",
    )
    max_headlines_per_request: int = Field(
        default=500,
        alias="MAX_HEADLINES_PER_REQUEST",
        description="Largest headline batch accepted by the match endpoint.",
    )
    cors_allow_origins: str = Field(
        default="*",
        alias="CORS_ALLOW_ORIGINS",
        description="Comma-separated list of origins allowed for CORS (use '*' for all).",
    )

    @property
    def api_endpoints(self) -> list[str]:
        return [url.strip().rstrip("/") for url in self.kalshi_api_urls.split(",") if url.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()


settings = get_settings()
