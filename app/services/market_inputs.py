from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from app.config.settings import Settings, get_settings
from app.schemas.sentiment import MarketAnalysisInput
from app.services.coingecko import fetch_avg_30_day_volume, fetch_global_market_data, fetch_top_coins
from app.services.fear_greed import fetch_fear_and_greed
from app.services.fetching import raise_for_failures


async def assemble_market_input(
    settings: Settings | None = None,
    *,
    recorded_max_market_cap: Optional[float] = None,
    client: httpx.AsyncClient | None = None,
) -> MarketAnalysisInput:
    """
    Gather every scorer input from upstream providers in one fan-out.

    Raises MarketDataUnavailableError naming each failed source.
    """
    s = settings or get_settings()

    global_res, coins_res, volume_res, fng_res = await asyncio.gather(
        fetch_global_market_data(client=client),
        fetch_top_coins(s.TOP_COINS_LIMIT, client=client),
        fetch_avg_30_day_volume(client=client),
        fetch_fear_and_greed(client=client),
    )
    raise_for_failures(global_res, coins_res, volume_res, fng_res)

    global_data = global_res.unwrap()
    total_market_cap = global_data.total_market_cap.get("usd", 0.0)
    btc_pct = global_data.market_cap_percentage.get("btc", 0.0)
    btc_market_cap = total_market_cap * btc_pct / 100

    # CoinGecko's free tier has no all-time market cap history.
    max_historical = max(
        total_market_cap,
        s.MAX_HISTORICAL_MARKET_CAP_USD or 0.0,
        recorded_max_market_cap or 0.0,
    )

    return MarketAnalysisInput(
        total_market_cap=total_market_cap,
        max_historical_market_cap=max_historical,
        total_volume_24h=global_data.total_volume.get("usd", 0.0),
        avg_30_day_volume=volume_res.unwrap(),
        btc_dominance=btc_pct,
        altcoin_market_cap=total_market_cap - btc_market_cap,
        btc_market_cap=btc_market_cap,
        fear_and_greed_index=fng_res.unwrap().value,
        top_coins=coins_res.unwrap(),
    )
