from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from app.scripts import score_now as script
from app.services.fetching import FetchError, MarketDataUnavailableError
from app.services.sentiment.engine import analyze_market_sentiment
from app.services.sentiment.service import SentimentRun
from app.tests.factories import example_input


@pytest.fixture(autouse=True)
def memory_engine(monkeypatch):
    monkeypatch.setattr(script, "engine", create_async_engine("sqlite+aiosqlite:///:memory:"))


@pytest.mark.asyncio
async def test_prints_scored_run(monkeypatch):
    seen = {}

    async def fake_compute(*, persist):
        seen["persist"] = persist
        data = example_input()
        return SentimentRun(input=data, output=analyze_market_sentiment(data), snapshot_saved=False)

    monkeypatch.setattr(script, "compute_current_sentiment", fake_compute)

    result = await script.score_now(persist=False)
    assert seen["persist"] is False
    assert result["ok"] is True
    assert result["output"]["macro_score"] == 62
    assert result["output"]["interpretation"] == "Neutral"
    assert result["input"]["avg_30_day_volume"] == 5e10


@pytest.mark.asyncio
async def test_reports_upstream_failure(monkeypatch):
    async def fake_compute(*, persist):
        raise MarketDataUnavailableError([FetchError("coingecko", "https://api.coingecko.com/api/v3/global", "HTTP 500", 500)])

    monkeypatch.setattr(script, "compute_current_sentiment", fake_compute)

    result = await script.score_now(persist=True)
    assert result["ok"] is False
    assert result["error"] == "upstream_unavailable"
    assert result["sources"][0]["status_code"] == 500
