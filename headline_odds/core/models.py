from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Contract(BaseModel):
    """Normalized tradable yes/no market used by the matcher."""

    model_config = ConfigDict(frozen=True)

    ticker: str = Field(min_length=1)
    series_id: str | None = None
    event_id: str | None = None
    title: str = Field(min_length=1)
    subtitle: str = ""
    category: str = ""
    event_title: str = ""
    yes_bid: int | None = None
    no_bid: int | None = None
    yes_ask: int | None = None
    no_ask: int | None = None
    last_price: int | None = None
    volume: int | None = None
    open_interest: int | None = None
    close_time: datetime | None = None
    url: str

    @property
    def text(self) -> str:
        """Lowercased searchable text: title, subtitle, event title and category."""

        return " ".join([self.title, self.subtitle, self.event_title, self.category]).lower()


class CatalogSnapshot(BaseModel):
    """Immutable set of open contracts produced by one catalog fetch."""

    model_config = ConfigDict(frozen=True)

    contracts: tuple[Contract, ...]
    origin: str
    fetched_at: datetime
    generation: int = 0


class MatchResult(BaseModel):
    """Denormalized contract display fields plus the relevance score."""

    ticker: str
    series_id: str | None = None
    event_id: str | None = None
    title: str
    subtitle: str = ""
    category: str = ""
    event_title: str = ""
    yes_bid: int | None = None
    no_bid: int | None = None
    yes_ask: int | None = None
    no_ask: int | None = None
    last_price: int | None = None
    volume: int | None = None
    open_interest: int | None = None
    close_time: datetime | None = None
    url: str
    score: float
    divergent: bool = False

    @classmethod
    def from_contract(cls, contract: Contract, *, score: float, divergent: bool = False) -> "MatchResult":
        return cls(
            **contract.model_dump(),
            score=score,
            divergent=divergent,
        )


class WarmCacheResult(BaseModel):
    """Outcome of pre-fetching the catalog."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    market_count: int = Field(alias="marketCount")
    origin: str

    def serialize(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class MatchBatchResult(BaseModel):
    """Matches for a batch of headlines; headlines without matches are omitted."""

    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    results: dict[str, list[MatchResult]]
    market_count: int = Field(alias="marketCount")
    origin: str

    def serialize(self) -> dict[str, Any]:
        """Return a dict with API-friendly field names and ISO timestamps."""

        return self.model_dump(by_alias=True, mode="json")
