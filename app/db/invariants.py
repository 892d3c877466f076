from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

_DUPLICATE_DAYS_SQL = """
    SELECT snapshot_date, COUNT(*) AS count
    FROM market_sentiment_snapshots
    GROUP BY snapshot_date
    HAVING count > 1
"""

_OUT_OF_RANGE_SQL = """
    SELECT id, snapshot_date, macro_score, confidence_score
    FROM market_sentiment_snapshots
    WHERE macro_score < 0 OR macro_score > 100
       OR confidence_score < 0 OR confidence_score > 100
"""


async def verify_snapshot_invariants(session: AsyncSession, *, strict: bool = True) -> dict[str, list[dict]]:
    """
    When strict=True: raise AssertionError if any findings exist.
    strict=False: return findings without raising.
    """
    findings: dict[str, list[dict]] = {"duplicate_days": [], "out_of_range": []}

    dup = await session.execute(text(_DUPLICATE_DAYS_SQL))
    for row in dup.mappings():
        findings["duplicate_days"].append(
            {
                "snapshot_date": row["snapshot_date"],
                "count": row["count"],
            }
        )

    bad = await session.execute(text(_OUT_OF_RANGE_SQL))
    for row in bad.mappings():
        findings["out_of_range"].append(
            {
                "id": row["id"],
                "snapshot_date": row["snapshot_date"],
                "macro_score": row["macro_score"],
                "confidence_score": row["confidence_score"],
            }
        )

    if strict and (findings["duplicate_days"] or findings["out_of_range"]):
        raise AssertionError(f"Snapshot invariants violated: {findings}")

    return findings
