from __future__ import annotations

import logging
from dataclasses import dataclass

from app.config.settings import Settings, get_settings
from app.schemas.sentiment import MarketAnalysisInput, MarketAnalysisOutput, ScoringWeights
from app.services.market_inputs import assemble_market_input
from app.services.sentiment.engine import DEFAULT_WEIGHTS, analyze_market_sentiment
from app.services.snapshot_storage import has_today_snapshot, max_recorded_market_cap, save_market_snapshot

logger = logging.getLogger("fudcourt.sentiment")


@dataclass
class SentimentRun:
    input: MarketAnalysisInput
    output: MarketAnalysisOutput
    snapshot_saved: bool = False


async def compute_current_sentiment(
    settings: Settings | None = None,
    weights: ScoringWeights = DEFAULT_WEIGHTS,
    *,
    persist: bool = True,
) -> SentimentRun:
    """
    Assemble live inputs, score them, and store today's snapshot if none exists yet.

    Propagates MarketDataUnavailableError and InvalidInputError.
    """
    s = settings or get_settings()

    recorded_max = await max_recorded_market_cap()
    data = await assemble_market_input(s, recorded_max_market_cap=recorded_max)
    output = analyze_market_sentiment(data, weights, expected_coins=s.EXPECTED_TOP_COINS)
    logger.info(
        "sentiment scored | macro=%s | interpretation=%s | confidence=%s",
        output.macro_score,
        output.interpretation.value,
        output.confidence_score,
    )

    run = SentimentRun(input=data, output=output)
    if persist and not await has_today_snapshot():
        saved = await save_market_snapshot(output, total_market_cap=data.total_market_cap)
        run.snapshot_saved = saved is not None
    return run
