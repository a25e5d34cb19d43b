"""Match service and background refresher tests."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from headline_odds.background import CatalogRefresher
from headline_odds.core.cache import CatalogCache
from headline_odds.core.errors import FetchError
from headline_odds.integrations.embed_client import EmbeddingClient
from headline_odds.service import MatchService
from headline_odds.workers.embedding import EmbeddingIndex

from conftest import StubFetcher
from test_embedding import EmbedServer

BITCOIN_HEADLINE = "Bitcoin price surges past record"
NO_MATCH_HEADLINE = "Local bakery wins pie contest"


def _service(snapshot_or_error, clock, client: EmbeddingClient | None = None):
    fetcher = StubFetcher(snapshot_or_error)
    cache = CatalogCache(fetcher, clock=clock)
    index = EmbeddingIndex(client)
    return MatchService(cache=cache, index=index), cache, index, fetcher


@pytest.mark.asyncio
async def test_match_headlines_omits_unmatched_and_dedupes(crypto_catalog, make_snapshot, clock):
    service, _, _, fetcher = _service(make_snapshot(*crypto_catalog), clock)

    result = await service.match_headlines([BITCOIN_HEADLINE, NO_MATCH_HEADLINE, BITCOIN_HEADLINE, ""])

    assert result.ok is True
    assert list(result.results) == [BITCOIN_HEADLINE]
    assert [match.ticker for match in result.results[BITCOIN_HEADLINE]] == ["KXBTC-A", "KXBTC-D", "KXETF-E"]
    assert result.market_count == 5
    assert result.origin == "https://primary.test/trade-api/v2"
    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_match_headlines_serializes_for_the_overlay(crypto_catalog, make_snapshot, clock):
    service, _, _, _ = _service(make_snapshot(*crypto_catalog), clock)

    payload = (await service.match_headlines([BITCOIN_HEADLINE])).serialize()

    assert payload["ok"] is True
    assert payload["marketCount"] == 5
    first = payload["results"][BITCOIN_HEADLINE][0]
    assert first["ticker"] == "KXBTC-A"
    assert first["url"] == "https://kalshi.com/markets/KXBTC-A"
    assert first["score"] == pytest.approx(1.1)


@pytest.mark.asyncio
async def test_match_headlines_propagates_fetch_error(clock):
    service, _, _, _ = _service(FetchError("No markets retrieved from any Kalshi API"), clock)

    with pytest.raises(FetchError):
        await service.match_headlines([BITCOIN_HEADLINE])


@pytest.mark.asyncio
async def test_warm_cache(crypto_catalog, make_snapshot, clock):
    service, cache, _, _ = _service(make_snapshot(*crypto_catalog), clock)

    result = await service.warm_cache()

    assert result.ok is True
    assert result.market_count == 5
    assert result.serialize() == {
        "ok": True,
        "marketCount": 5,
        "origin": "https://primary.test/trade-api/v2",
    }
    assert cache.is_fresh()


@pytest.mark.asyncio
async def test_disabled_embeddings_match_a_client_that_always_fails(crypto_catalog, make_snapshot, clock):
    headlines = [BITCOIN_HEADLINE, "Will Ethereum reach a record?"]
    disabled, _, _, _ = _service(make_snapshot(*crypto_catalog), clock)

    failing_client = EmbeddingClient(
        "https://embed.test/",
        transport=httpx.MockTransport(lambda request: httpx.Response(503)),
    )
    failing, cache, index, _ = _service(make_snapshot(*crypto_catalog), clock, failing_client)
    await index.embed_catalog(await cache.get())

    assert (await disabled.match_headlines(headlines)) == (await failing.match_headlines(headlines))


@pytest.mark.asyncio
async def test_semantic_bonus_applies_when_vectors_exist(crypto_catalog, make_snapshot, clock):
    server = EmbedServer()
    service, cache, index, _ = _service(make_snapshot(*crypto_catalog), clock, server.client())
    await index.embed_catalog(await cache.get())

    result = await service.match_headlines([BITCOIN_HEADLINE, BITCOIN_HEADLINE])
    top = result.results[BITCOIN_HEADLINE][0]

    assert top.ticker == "KXBTC-A"
    assert top.score == pytest.approx(1.1 + 0.5)
    headline_requests = [texts for texts in server.requests if BITCOIN_HEADLINE in texts]
    assert headline_requests == [[BITCOIN_HEADLINE]]


@pytest.mark.asyncio
async def test_malformed_vectors_fall_back_to_keyword_scoring(crypto_catalog, make_snapshot, clock):
    def column_vectors(request: httpx.Request) -> httpx.Response:
        texts = json.loads(request.content)["texts"]
        return httpx.Response(200, json={"embeddings": [[[0.1], [0.2]] for _ in texts]})

    client = EmbeddingClient("https://embed.test/", transport=httpx.MockTransport(column_vectors))
    service, cache, index, _ = _service(make_snapshot(*crypto_catalog), clock, client)
    await index.embed_catalog(await cache.get())

    result = await service.match_headlines([BITCOIN_HEADLINE])

    assert result.results[BITCOIN_HEADLINE][0].ticker == "KXBTC-A"
    assert result.results[BITCOIN_HEADLINE][0].score == pytest.approx(1.1)
    await index.aclose()


@pytest.mark.asyncio
async def test_unreachable_embedding_endpoint_does_not_fail_matching(crypto_catalog, make_snapshot, clock):
    client = EmbeddingClient("https://embed.test:notaport/")
    service, _, index, _ = _service(make_snapshot(*crypto_catalog), clock, client)

    result = await service.match_headlines([BITCOIN_HEADLINE])

    assert result.results[BITCOIN_HEADLINE][0].score == pytest.approx(1.1)
    await index.aclose()
    await client.close()


@pytest.mark.asyncio
async def test_refresher_run_once_reports_failure(clock):
    cache = CatalogCache(StubFetcher(FetchError("down")), clock=clock)
    refresher = CatalogRefresher(cache=cache, interval=60)

    assert await refresher.run_once() is False


@pytest.mark.asyncio
async def test_refresher_loop_warms_cache(crypto_catalog, make_snapshot, clock):
    fetcher = StubFetcher(make_snapshot(*crypto_catalog))
    cache = CatalogCache(fetcher, clock=clock)
    refresher = CatalogRefresher(cache=cache, index=EmbeddingIndex(None), interval=60)

    await refresher.start()
    await asyncio.sleep(0.05)
    await refresher.stop()

    assert fetcher.calls == 1
    assert cache.current is not None
