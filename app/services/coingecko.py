"""Helpers for interacting with the public CoinGecko API."""

from __future__ import annotations

from typing import Any, Callable, TypeVar

import httpx

from app.config.settings import get_settings
from app.schemas.sentiment import CoinForAnalysis, GlobalMarketData
from app.services.fetching import FetchResult, fetch_json

SOURCE = "coingecko"

T = TypeVar("T")


def _base_url() -> str:
    return get_settings().COINGECKO_BASE_URL


def _headers() -> dict[str, str]:
    headers = {"Accept": "application/json"}
    api_key = get_settings().COINGECKO_API_KEY
    if api_key:
        headers["x-cg-demo-api-key"] = api_key
    return headers


async def fetch_raw_market_data(
    vs_currency: str = "usd",
    order: str = "market_cap_desc",
    per_page: int = 10,
    page: int = 1,
    sparkline: bool = False,
    *,
    parse: Callable[[Any], T] | None = None,
    client: httpx.AsyncClient | None = None,
) -> FetchResult[Any]:
    """Return the CoinGecko /coins/markets payload, run through `parse` when given."""

    params = {
        "vs_currency": vs_currency,
        "order": order,
        "per_page": per_page,
        "page": page,
        "sparkline": str(sparkline).lower(),
    }
    return await fetch_json(
        f"{_base_url()}/coins/markets",
        source=SOURCE,
        params=params,
        headers=_headers(),
        parse=parse or _parse_market_list,
        client=client,
    )


def _parse_market_list(payload: Any) -> list[dict[str, Any]]:
    if not isinstance(payload, list):
        raise TypeError("expected a list of markets")
    return payload


def _parse_top_coins(payload: Any) -> list[CoinForAnalysis]:
    coins = []
    for c in _parse_market_list(payload):
        if not isinstance(c, dict):
            raise TypeError(f"expected a market object, got {type(c).__name__}")
        # listings without price or ATH are not scoreable
        if c.get("current_price") is None or not c.get("ath"):
            continue
        coins.append(
            CoinForAnalysis(
                name=c.get("name"),
                symbol=c.get("symbol"),
                current_price=c["current_price"],
                ath=c["ath"],
                price_change_percentage_24h=c.get("price_change_percentage_24h"),
            )
        )
    return coins


async def fetch_top_coins(
    limit: int = 20,
    *,
    client: httpx.AsyncClient | None = None,
) -> FetchResult[list[CoinForAnalysis]]:
    return await fetch_raw_market_data(per_page=limit, parse=_parse_top_coins, client=client)


async def fetch_global_market_data(
    *,
    client: httpx.AsyncClient | None = None,
) -> FetchResult[GlobalMarketData]:
    return await fetch_json(
        f"{_base_url()}/global",
        source=SOURCE,
        headers=_headers(),
        parse=lambda payload: GlobalMarketData.model_validate(payload["data"]),
        client=client,
    )


def _mean_volume(payload: Any) -> float:
    volumes = [float(point[1]) for point in payload["total_volumes"]]
    if not volumes:
        raise ValueError("empty volume series")
    return sum(volumes) / len(volumes)


async def fetch_avg_30_day_volume(
    coin_id: str = "bitcoin",
    *,
    client: httpx.AsyncClient | None = None,
) -> FetchResult[float]:
    """Mean daily volume over 30 days for `coin_id`, used as a proxy for the whole market."""

    return await fetch_json(
        f"{_base_url()}/coins/{coin_id}/market_chart",
        source=SOURCE,
        params={"vs_currency": "usd", "days": 30, "interval": "daily"},
        headers=_headers(),
        parse=_mean_volume,
        client=client,
    )
