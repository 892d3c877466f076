from __future__ import annotations

from typing import Sequence

from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.session import engine as default_engine

_SNAPSHOT_DAY_DUP_SQL = """
    SELECT snapshot_date, COUNT(*) AS count
    FROM market_sentiment_snapshots
    GROUP BY snapshot_date
    HAVING count > 1
    LIMIT 1
"""

_STATEMENTS: Sequence[str] = (
    """
    CREATE UNIQUE INDEX IF NOT EXISTS uq_market_sentiment_snapshots_day
    ON market_sentiment_snapshots(snapshot_date);
    """,
    """
    CREATE INDEX IF NOT EXISTS ix_market_sentiment_snapshots_created_at
    ON market_sentiment_snapshots(created_at);
    """,
)


async def enforce_integrity_constraints(engine: AsyncEngine | None = None) -> None:
    """
    Ensures the one-snapshot-per-day index exists and fails fast if duplicates are present.
    """
    eng = engine or default_engine

    async with eng.begin() as conn:
        await _assert_no_duplicates(conn, _SNAPSHOT_DAY_DUP_SQL, "market_sentiment_snapshots", ("snapshot_date",))

        for stmt in _STATEMENTS:
            try:
                await conn.execute(text(stmt))
            except ProgrammingError as exc:
                raise RuntimeError(f"Failed to apply integrity DDL: {stmt}") from exc


async def _assert_no_duplicates(conn, sql: str, table: str, keys: Sequence[str]) -> None:
    try:
        result = await conn.execute(text(sql))
    except Exception:
        # Table may not exist yet (fresh DB); skip validation.
        return

    row = result.first()
    if row:
        mapping = row._mapping
        joined_keys = ", ".join(f"{k}={mapping.get(k)}" for k in keys if k in mapping)
        raise RuntimeError(
            f"Duplicate rows detected in {table} for ({joined_keys}). Clean data before enforcing constraints."
        )
