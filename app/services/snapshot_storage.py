from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from app.db.models import MarketSentimentSnapshot
from app.db.session import session_factory
from app.schemas.sentiment import MarketAnalysisOutput
from app.utils.time import start_of_utc_day, utcnow

logger = logging.getLogger("fudcourt.snapshots")


async def save_market_snapshot(
    analysis: MarketAnalysisOutput,
    *,
    total_market_cap: Optional[float] = None,
    now: datetime | None = None,
) -> Optional[MarketSentimentSnapshot]:
    """
    Persist one analysis as today's snapshot.

    Failures are logged and return None; a missing snapshot must not break scoring.
    """
    ts = now or utcnow()
    c = analysis.components
    snapshot = MarketSentimentSnapshot(
        snapshot_date=start_of_utc_day(ts).date(),
        macro_score=analysis.macro_score,
        interpretation=analysis.interpretation.value,
        confidence_score=analysis.confidence_score,
        market_cap_score=round(c.market_cap),
        volume_score=round(c.volume),
        fear_greed_score=round(c.fear_and_greed),
        ath_score=round(c.ath),
        market_breadth_score=round(c.market_breadth),
        btc_dominance_score=round(c.btc_dominance),
        altseason_score=round(c.altseason),
        total_market_cap=total_market_cap,
        created_at=ts,
    )

    try:
        async with session_factory() as session:
            session.add(snapshot)
            await session.commit()
    except SQLAlchemyError:
        logger.exception("failed to save market snapshot | day=%s", snapshot.snapshot_date)
        return None

    logger.info("market snapshot saved | day=%s | macro=%s", snapshot.snapshot_date, snapshot.macro_score)
    return snapshot


async def has_today_snapshot(now: datetime | None = None) -> bool:
    cutoff = start_of_utc_day(now)
    try:
        async with session_factory() as session:
            result = await session.execute(
                select(MarketSentimentSnapshot.id)
                .where(MarketSentimentSnapshot.created_at >= cutoff)
                .limit(1)
            )
            return result.scalar_one_or_none() is not None
    except SQLAlchemyError:
        # Treat as missing so the caller may still try to save.
        logger.exception("failed to check today's snapshot")
        return False


async def list_snapshots(limit: int = 30) -> list[MarketSentimentSnapshot]:
    async with session_factory() as session:
        result = await session.execute(
            select(MarketSentimentSnapshot)
            .order_by(MarketSentimentSnapshot.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())


async def max_recorded_market_cap() -> Optional[float]:
    try:
        async with session_factory() as session:
            result = await session.execute(select(func.max(MarketSentimentSnapshot.total_market_cap)))
            return result.scalar_one_or_none()
    except SQLAlchemyError:
        logger.exception("failed to read recorded market cap high")
        return None
