from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from .errors import MalformedUpstreamItem
from .models import Contract


KALSHI_WEB = "https://kalshi.com"
KALSHI_MARKETS = f"{KALSHI_WEB}/markets"


def _to_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _to_int(value: Any, *, low: int = 0, high: int | None = None) -> int | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    if result < low or (high is not None and result > high):
        return None
    return result


def _to_price(value: Any) -> int | None:
    return _to_int(value, low=0, high=100)


def _parse_datetime(value: Any) -> datetime | None:
    if value is None:
        return None

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def build_market_url(
    direct: str | None = None,
    series_id: str | None = None,
    event_id: str | None = None,
    ticker: str | None = None,
) -> str:
    """Resolve the public page for a market.

    A usable direct link wins; otherwise ``/markets/{id}`` is built from the
    series id, event id or ticker, in that order.
    """

    link = _to_str(direct)
    if link and not any(char.isspace() for char in link):
        if link.startswith("http"):
            return link
        if link.startswith("/"):
            return f"{KALSHI_WEB}{link}"
        return f"{KALSHI_MARKETS}/{link}"

    for candidate in (series_id, event_id, ticker):
        slug = _to_str(candidate)
        if slug:
            return f"{KALSHI_MARKETS}/{slug}"
    return KALSHI_MARKETS


def normalize_contract(event: dict[str, Any], market: dict[str, Any]) -> Contract:
    """Convert one nested Kalshi market payload into a Contract."""

    if not isinstance(market, dict):
        raise MalformedUpstreamItem("market payload is not an object")

    ticker = _to_str(market.get("ticker"))
    if not ticker:
        raise MalformedUpstreamItem("market is missing a ticker")

    event_title = _to_str(event.get("title"))
    title = _to_str(market.get("title")) or event_title
    if not title:
        raise MalformedUpstreamItem(f"market {ticker} has no title")

    series_id = _to_str(event.get("series_ticker")) or _to_str(market.get("series_ticker")) or None
    event_id = _to_str(market.get("event_ticker")) or _to_str(event.get("event_ticker")) or None
    direct = (
        market.get("market_url")
        or market.get("url")
        or market.get("public_url")
        or market.get("url_slug")
    )

    try:
        return Contract(
            ticker=ticker,
            series_id=series_id,
            event_id=event_id,
            title=title,
            subtitle=_to_str(market.get("subtitle")) or _to_str(event.get("sub_title")),
            category=_to_str(event.get("category")),
            event_title=event_title,
            yes_bid=_to_price(market.get("yes_bid")),
            no_bid=_to_price(market.get("no_bid")),
            yes_ask=_to_price(market.get("yes_ask")),
            no_ask=_to_price(market.get("no_ask")),
            last_price=_to_price(market.get("last_price")),
            volume=_to_int(market.get("volume")),
            open_interest=_to_int(market.get("open_interest")),
            close_time=_parse_datetime(
                market.get("close_time") or market.get("expected_expiration_time")
            ),
            url=build_market_url(direct, series_id, event_id, ticker),
        )
    except ValidationError as exc:
        raise MalformedUpstreamItem(f"market {ticker} failed validation: {exc}") from exc


__all__ = ["build_market_url", "normalize_contract"]
