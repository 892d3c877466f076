from sqlalchemy import Column, Date, DateTime, Float, Integer, String, UniqueConstraint, Index
from app.db.session import Base
from app.utils.time import utcnow, utctoday


class MarketSentimentSnapshot(Base):
    __tablename__ = "market_sentiment_snapshots"
    __table_args__ = (
        UniqueConstraint("snapshot_date", name="uq_market_sentiment_snapshots_day"),
        Index("ix_market_sentiment_snapshots_created_at", "created_at"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    snapshot_date = Column(Date, nullable=False, default=utctoday)

    macro_score = Column(Integer, nullable=False)
    interpretation = Column(String, nullable=False)
    confidence_score = Column(Integer, nullable=False)

    market_cap_score = Column(Integer, nullable=False)
    volume_score = Column(Integer, nullable=False)
    fear_greed_score = Column(Integer, nullable=False)
    ath_score = Column(Integer, nullable=False)
    market_breadth_score = Column(Integer, nullable=False)
    btc_dominance_score = Column(Integer, nullable=False)
    altseason_score = Column(Integer, nullable=False)

    total_market_cap = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
