from __future__ import annotations

from datetime import datetime
from enum import Enum
from math import fsum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CoinForAnalysis(BaseModel):
    """Per-coin fields the breadth and ATH components need."""

    current_price: float
    ath: float
    price_change_percentage_24h: Optional[float] = None
    name: Optional[str] = None
    symbol: Optional[str] = None


class MarketAnalysisInput(BaseModel):
    """Raw market metrics fed to the macro sentiment scorer (all amounts in USD)."""

    model_config = ConfigDict(populate_by_name=True)

    total_market_cap: float = Field(..., alias="totalMarketCap")
    max_historical_market_cap: float = Field(..., alias="maxHistoricalMarketCap")
    total_volume_24h: float = Field(..., alias="totalVolume24h")
    avg_30_day_volume: float = Field(..., alias="avg30DayVolume")
    btc_dominance: float = Field(..., alias="btcDominance")
    altcoin_market_cap: float = Field(..., alias="altcoinMarketCap")
    btc_market_cap: float = Field(..., alias="btcMarketCap")
    fear_and_greed_index: float = Field(..., alias="fearAndGreedIndex")
    top_coins: List[CoinForAnalysis] = Field(..., alias="topCoins")


class ScoringWeights(BaseModel):
    """Weight per component; immutable and required to sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    market_cap: float = Field(0.20, ge=0)
    volume: float = Field(0.10, ge=0)
    btc_dominance: float = Field(0.15, ge=0)
    fear_and_greed: float = Field(0.20, ge=0)
    altseason: float = Field(0.10, ge=0)
    market_breadth: float = Field(0.15, ge=0)
    ath: float = Field(0.10, ge=0)

    @model_validator(mode="after")
    def _check_total(self) -> "ScoringWeights":
        total = fsum(self.model_dump().values())
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Scoring weights must sum to 1.0 (got {total})")
        return self


class Interpretation(str, Enum):
    BULLISH = "Bullish"
    NEUTRAL = "Neutral"
    BEARISH = "Bearish"


class ComponentScores(BaseModel):
    """Normalized sub-scores. Everything but fear_and_greed is clamped to [0, 100]."""

    market_cap: float
    volume: float
    btc_dominance: float
    fear_and_greed: float
    altseason: float
    market_breadth: float
    ath: float


class MarketAnalysisOutput(BaseModel):
    macro_score: int = Field(..., ge=0, le=100)
    interpretation: Interpretation
    summary: str
    components: ComponentScores
    confidence_score: int = Field(..., ge=0, le=100)


class SentimentSnapshotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: datetime
    macro_score: int
    interpretation: str
    confidence_score: int
    market_cap_score: int
    volume_score: int
    fear_greed_score: int
    ath_score: int
    market_breadth_score: int
    btc_dominance_score: int
    altseason_score: int
    total_market_cap: Optional[float] = None


class GlobalMarketData(BaseModel):
    """Subset of the CoinGecko /global payload."""

    total_market_cap: Dict[str, float]
    total_volume: Dict[str, float]
    market_cap_percentage: Dict[str, float]


class FearGreedReading(BaseModel):
    value: int = Field(..., ge=0, le=100)
    value_classification: str
    timestamp: Optional[int] = None
