from __future__ import annotations

from typing import Any

from app.schemas.sentiment import MarketAnalysisInput


def example_payload(**overrides: Any) -> dict[str, Any]:
    """Worked example: each component lands on a round number and the weighted sum is 62.5."""
    payload: dict[str, Any] = {
        "totalMarketCap": 1.5e12,
        "maxHistoricalMarketCap": 3e12,
        "totalVolume24h": 5e10,
        "avg30DayVolume": 5e10,
        "btcDominance": 50,
        "altcoinMarketCap": 7.5e11,
        "btcMarketCap": 7.5e11,
        "fearAndGreedIndex": 50,
        "topCoins": [
            {"current_price": 100, "ath": 100, "price_change_percentage_24h": 5},
            {"current_price": 50, "ath": 100, "price_change_percentage_24h": -2},
        ],
    }
    payload.update(overrides)
    return payload


def example_input(**overrides: Any) -> MarketAnalysisInput:
    return MarketAnalysisInput.model_validate(example_payload(**overrides))


def coins(*specs: tuple[float, float, float | None]) -> list[dict[str, Any]]:
    """Build topCoins entries from (current_price, ath, change_24h) tuples."""
    return [
        {"current_price": price, "ath": ath, "price_change_percentage_24h": change}
        for price, ath, change in specs
    ]
