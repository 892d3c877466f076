# app/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


def parse_optional_float(value: str | None) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass(frozen=True)
class Settings:
    MARKET_DB_URL: str
    LOG_LEVEL: str

    COINGECKO_BASE_URL: str
    COINGECKO_API_KEY: str
    FEAR_GREED_URL: str
    HTTP_TIMEOUT_SECONDS: float

    TOP_COINS_LIMIT: int
    EXPECTED_TOP_COINS: int
    MAX_HISTORICAL_MARKET_CAP_USD: Optional[float]
    SENTIMENT_CACHE_TTL: int

    SNAPSHOT_ENABLED: bool
    SNAPSHOT_INTERVAL_SECONDS: int
    SNAPSHOT_LOCK_PATH: str
    SNAPSHOT_MAX_RETRIES: int
    SNAPSHOT_BACKOFF_BASE_SECONDS: float
    SNAPSHOT_JITTER_SECONDS: float

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            MARKET_DB_URL=os.getenv("MARKET_DB_URL", "sqlite+aiosqlite:///./market.db"),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
            COINGECKO_BASE_URL=os.getenv("COINGECKO_BASE_URL", "https://api.coingecko.com/api/v3").rstrip("/"),
            COINGECKO_API_KEY=os.getenv("COINGECKO_API_KEY", ""),
            FEAR_GREED_URL=os.getenv("FEAR_GREED_URL", "https://api.alternative.me/fng/"),
            HTTP_TIMEOUT_SECONDS=parse_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 10.0),
            TOP_COINS_LIMIT=parse_int(os.getenv("TOP_COINS_LIMIT"), 20),
            EXPECTED_TOP_COINS=parse_int(os.getenv("EXPECTED_TOP_COINS"), 20),
            MAX_HISTORICAL_MARKET_CAP_USD=parse_optional_float(os.getenv("MAX_HISTORICAL_MARKET_CAP_USD")),
            SENTIMENT_CACHE_TTL=parse_int(os.getenv("SENTIMENT_CACHE_TTL"), 60),
            SNAPSHOT_ENABLED=parse_bool(os.getenv("SNAPSHOT_ENABLED"), True),
            SNAPSHOT_INTERVAL_SECONDS=parse_int(os.getenv("SNAPSHOT_INTERVAL_SECONDS"), 3600),
            SNAPSHOT_LOCK_PATH=os.getenv("SNAPSHOT_LOCK_PATH", "./snapshot.lock"),
            SNAPSHOT_MAX_RETRIES=parse_int(os.getenv("SNAPSHOT_MAX_RETRIES"), 3),
            SNAPSHOT_BACKOFF_BASE_SECONDS=parse_float(os.getenv("SNAPSHOT_BACKOFF_BASE_SECONDS"), 2.0),
            SNAPSHOT_JITTER_SECONDS=parse_float(os.getenv("SNAPSHOT_JITTER_SECONDS"), 1.0),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
