from __future__ import annotations

from dataclasses import replace

import httpx
import pytest

from app.config.settings import get_settings
from app.services.fetching import MarketDataUnavailableError
from app.services.market_inputs import assemble_market_input

GLOBAL_BODY = {
    "data": {
        "total_market_cap": {"usd": 2.0e12},
        "total_volume": {"usd": 8.0e10},
        "market_cap_percentage": {"btc": 55.0, "eth": 15.0},
    }
}
MARKETS_BODY = [
    {"symbol": "btc", "name": "Bitcoin", "current_price": 60000, "ath": 73000, "price_change_percentage_24h": 2.0},
    {"symbol": "eth", "name": "Ethereum", "current_price": 3000, "ath": 4800, "price_change_percentage_24h": -1.0},
]
CHART_BODY = {"total_volumes": [[1, 4.0e10], [2, 6.0e10]]}
FNG_BODY = {"data": [{"value": "64", "value_classification": "Greed"}], "metadata": {"error": None}}


def _router(fail: set[str] | None = None):
    fail = fail or set()

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/global"):
            key, body = "global", GLOBAL_BODY
        elif path.endswith("/coins/markets"):
            key, body = "markets", MARKETS_BODY
        elif path.endswith("/market_chart"):
            key, body = "chart", CHART_BODY
        elif path.endswith("/fng/"):
            key, body = "fng", FNG_BODY
        else:
            return httpx.Response(404)
        if key in fail:
            return httpx.Response(503, json={})
        return httpx.Response(200, json=body)

    return handler


@pytest.mark.asyncio
async def test_assembles_scorer_input_from_all_sources():
    settings = replace(get_settings(), TOP_COINS_LIMIT=2, MAX_HISTORICAL_MARKET_CAP_USD=None)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_router())) as client:
        data = await assemble_market_input(settings, client=client)

    assert data.total_market_cap == pytest.approx(2.0e12)
    assert data.btc_dominance == pytest.approx(55.0)
    assert data.btc_market_cap == pytest.approx(1.1e12)
    assert data.altcoin_market_cap == pytest.approx(0.9e12)
    assert data.total_volume_24h == pytest.approx(8.0e10)
    assert data.avg_30_day_volume == pytest.approx(5.0e10)
    assert data.fear_and_greed_index == 64
    assert [c.symbol for c in data.top_coins] == ["btc", "eth"]
    # no history available: the current cap is its own high
    assert data.max_historical_market_cap == pytest.approx(2.0e12)


@pytest.mark.asyncio
async def test_historical_max_uses_configured_floor_and_recorded_high():
    settings = replace(get_settings(), MAX_HISTORICAL_MARKET_CAP_USD=3.0e12)

    async with httpx.AsyncClient(transport=httpx.MockTransport(_router())) as client:
        floored = await assemble_market_input(settings, client=client)
        recorded = await assemble_market_input(settings, recorded_max_market_cap=3.5e12, client=client)

    assert floored.max_historical_market_cap == pytest.approx(3.0e12)
    assert recorded.max_historical_market_cap == pytest.approx(3.5e12)


@pytest.mark.asyncio
async def test_failed_sources_are_all_reported():
    async with httpx.AsyncClient(transport=httpx.MockTransport(_router({"fng", "chart"}))) as client:
        with pytest.raises(MarketDataUnavailableError) as exc:
            await assemble_market_input(get_settings(), client=client)

    sources = sorted(e.source for e in exc.value.errors)
    assert sources == ["alternative.me", "coingecko"]
    assert all(e.status_code == 503 for e in exc.value.errors)


@pytest.mark.asyncio
async def test_malformed_upstream_bodies_become_unavailable_sources():
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/coins/markets"):
            return httpx.Response(200, json=["bitcoin"])
        if path.endswith("/fng/"):
            return httpx.Response(200, json=[1, 2])
        return _router()(request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(MarketDataUnavailableError) as exc:
            await assemble_market_input(get_settings(), client=client)

    assert sorted(e.source for e in exc.value.errors) == ["alternative.me", "coingecko"]
