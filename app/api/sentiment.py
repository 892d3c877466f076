# app/api/sentiment.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from app.config.settings import get_settings
from app.schemas.sentiment import (
    MarketAnalysisInput,
    MarketAnalysisOutput,
    ScoringWeights,
    SentimentSnapshotOut,
)
from app.services.fetching import MarketDataUnavailableError
from app.services.sentiment.engine import DEFAULT_WEIGHTS, InvalidInputError, analyze_market_sentiment
from app.services.sentiment.service import compute_current_sentiment
from app.services.snapshot_storage import list_snapshots
from app.utils.cache import get_cache, set_cache


router = APIRouter(prefix="/sentiment", tags=["sentiment"])

CURRENT_CACHE_KEY = "sentiment_current"
INSUFFICIENT_DATA_MESSAGE = "Insufficient data to compute sentiment"


def _error_response(
    *,
    code: str,
    message: str,
    status_code: int = 400,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return JSONResponse(status_code=status_code, content=payload)


def _invalid_input_response(exc: InvalidInputError) -> JSONResponse:
    return _error_response(
        code="insufficient_data",
        message=INSUFFICIENT_DATA_MESSAGE,
        status_code=422,
        details={"field": exc.field, "reason": exc.reason},
    )


@router.post("/score", response_model=MarketAnalysisOutput)
async def score_market(body: MarketAnalysisInput):
    """Score caller-supplied market metrics without touching upstream APIs."""
    try:
        return analyze_market_sentiment(body, DEFAULT_WEIGHTS, expected_coins=get_settings().EXPECTED_TOP_COINS)
    except InvalidInputError as exc:
        return _invalid_input_response(exc)


@router.get("/current", response_model=MarketAnalysisOutput)
async def get_current_sentiment():
    s = get_settings()
    cached = get_cache(CURRENT_CACHE_KEY, s.SENTIMENT_CACHE_TTL)
    if cached is not None:
        return cached

    try:
        run = await compute_current_sentiment(s)
    except MarketDataUnavailableError as exc:
        return _error_response(
            code="upstream_unavailable",
            message=INSUFFICIENT_DATA_MESSAGE,
            status_code=503,
            details={"sources": [e.as_dict() for e in exc.errors]},
        )
    except InvalidInputError as exc:
        return _invalid_input_response(exc)

    set_cache(CURRENT_CACHE_KEY, run.output)
    return run.output


@router.get("/snapshots", response_model=list[SentimentSnapshotOut])
async def get_sentiment_snapshots(limit: int = Query(30, ge=1, le=365)):
    rows = await list_snapshots(limit)
    return [SentimentSnapshotOut.model_validate(r) for r in rows]


@router.get("/weights", response_model=ScoringWeights)
async def get_scoring_weights():
    return DEFAULT_WEIGHTS
