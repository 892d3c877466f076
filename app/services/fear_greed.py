"""Client for the Alternative.me crypto Fear & Greed index."""

from __future__ import annotations

from typing import Any

import httpx

from app.config.settings import get_settings
from app.schemas.sentiment import FearGreedReading
from app.services.fetching import FetchResult, fetch_json

SOURCE = "alternative.me"


def _latest_reading(payload: Any) -> FearGreedReading:
    if not isinstance(payload, dict):
        raise TypeError("expected a JSON object")
    metadata = payload.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise TypeError("metadata must be an object")
    if metadata.get("error"):
        raise ValueError(metadata["error"])
    return FearGreedReading.model_validate(payload["data"][0])


async def fetch_fear_and_greed(
    limit: int = 1,
    *,
    client: httpx.AsyncClient | None = None,
) -> FetchResult[FearGreedReading]:
    return await fetch_json(
        get_settings().FEAR_GREED_URL,
        source=SOURCE,
        params={"limit": limit},
        headers={"Accept": "application/json"},
        parse=_latest_reading,
        client=client,
    )
