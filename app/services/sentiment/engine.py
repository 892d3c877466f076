from __future__ import annotations

from math import isfinite
from typing import Sequence

from app.schemas.sentiment import (
    CoinForAnalysis,
    ComponentScores,
    Interpretation,
    MarketAnalysisInput,
    MarketAnalysisOutput,
    ScoringWeights,
)

DEFAULT_WEIGHTS = ScoringWeights()
DEFAULT_EXPECTED_COINS = 20

BULLISH_THRESHOLD = 70
NEUTRAL_THRESHOLD = 40

SUMMARIES = {
    Interpretation.BULLISH: (
        "The market is showing strong bullish signals, indicating high confidence and positive momentum."
    ),
    Interpretation.NEUTRAL: (
        "The market is in a neutral zone, showing a mix of signals without a clear directional trend."
    ),
    Interpretation.BEARISH: (
        "The market is showing bearish signals, suggesting caution and potential for downward price movement."
    ),
}

_DIVISOR_FIELDS = ("max_historical_market_cap", "avg_30_day_volume", "btc_market_cap")
_USD_FIELDS = (
    "total_market_cap",
    "max_historical_market_cap",
    "total_volume_24h",
    "avg_30_day_volume",
    "altcoin_market_cap",
    "btc_market_cap",
)


class InvalidInputError(ValueError):
    """Raised when the input cannot produce a meaningful score."""

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def validate_input(data: MarketAnalysisInput) -> None:
    for name in _USD_FIELDS + ("btc_dominance", "fear_and_greed_index"):
        if not isfinite(getattr(data, name)):
            raise InvalidInputError(name, "must be a finite number")

    for name in _DIVISOR_FIELDS:
        if getattr(data, name) <= 0:
            raise InvalidInputError(name, "must be greater than 0")

    for name in _USD_FIELDS:
        if getattr(data, name) < 0:
            raise InvalidInputError(name, "must not be negative")

    if not 0 <= data.fear_and_greed_index <= 100:
        raise InvalidInputError("fear_and_greed_index", "must be within [0, 100]")

    if not data.top_coins:
        raise InvalidInputError("top_coins", "must not be empty")

    for idx, coin in enumerate(data.top_coins):
        if not isfinite(coin.ath) or coin.ath <= 0:
            raise InvalidInputError(f"top_coins[{idx}].ath", "must be a finite number greater than 0")
        if not isfinite(coin.current_price) or coin.current_price < 0:
            raise InvalidInputError(f"top_coins[{idx}].current_price", "must be a finite, non-negative number")
        change = coin.price_change_percentage_24h
        if change is not None and not isfinite(change):
            raise InvalidInputError(f"top_coins[{idx}].price_change_percentage_24h", "must be a finite number")


def market_breadth_score(coins: Sequence[CoinForAnalysis]) -> float:
    rising = sum(1 for c in coins if (c.price_change_percentage_24h or 0) > 0)
    return rising / len(coins) * 100


def ath_score(coins: Sequence[CoinForAnalysis]) -> float:
    # Coins at or above ATH add nothing but still count in the denominator.
    total_distance = 0.0
    for coin in coins:
        distance = 1 - coin.current_price / coin.ath
        if distance > 0:
            total_distance += distance
    avg_distance_from_ath = total_distance / len(coins) * 100
    return 100 - avg_distance_from_ath


def normalize_components(data: MarketAnalysisInput) -> ComponentScores:
    return ComponentScores(
        market_cap=clamp(data.total_market_cap / data.max_historical_market_cap * 100),
        volume=clamp(data.total_volume_24h / data.avg_30_day_volume * 100),
        btc_dominance=clamp(100 - data.btc_dominance),
        fear_and_greed=data.fear_and_greed_index,
        altseason=clamp(data.altcoin_market_cap / data.btc_market_cap * 100),
        market_breadth=clamp(market_breadth_score(data.top_coins)),
        ath=clamp(ath_score(data.top_coins)),
    )


def aggregate(components: ComponentScores, weights: ScoringWeights = DEFAULT_WEIGHTS) -> int:
    w = weights.model_dump()
    scores = components.model_dump()
    weighted = sum(w[name] * scores[name] for name in w)
    return round(weighted)


def interpret(score: int) -> tuple[Interpretation, str]:
    if score >= BULLISH_THRESHOLD:
        label = Interpretation.BULLISH
    elif score >= NEUTRAL_THRESHOLD:
        label = Interpretation.NEUTRAL
    else:
        label = Interpretation.BEARISH
    return label, SUMMARIES[label]


def calculate_confidence_score(
    data: MarketAnalysisInput,
    expected_coins: int = DEFAULT_EXPECTED_COINS,
) -> int:
    """
    Data-completeness confidence in [0, 100].

    Deducts 25 points each for a missing market cap or 24h volume, and up to
    35 points in proportion to how many of the expected top coins are absent.
    """
    confidence = 100.0
    if data.total_market_cap <= 0:
        confidence -= 25
    if data.total_volume_24h <= 0:
        confidence -= 25

    if expected_coins > 0 and len(data.top_coins) < expected_coins:
        missing = (expected_coins - len(data.top_coins)) / expected_coins
        confidence -= missing * 35

    return max(0, round(confidence))


def analyze_market_sentiment(
    data: MarketAnalysisInput,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    *,
    expected_coins: int = DEFAULT_EXPECTED_COINS,
) -> MarketAnalysisOutput:
    validate_input(data)

    components = normalize_components(data)
    macro_score = aggregate(components, weights)
    interpretation, summary = interpret(macro_score)

    return MarketAnalysisOutput(
        macro_score=macro_score,
        interpretation=interpretation,
        summary=summary,
        components=components,
        confidence_score=calculate_confidence_score(data, expected_coins),
    )
