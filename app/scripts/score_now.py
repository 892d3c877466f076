# app/scripts/score_now.py
from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any, Dict

from app.db.session import Base, engine
import app.db.models  # noqa: F401
from app.services.fetching import MarketDataUnavailableError
from app.services.sentiment.engine import InvalidInputError
from app.services.sentiment.service import compute_current_sentiment


async def score_now(*, persist: bool) -> Dict[str, Any]:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        run = await compute_current_sentiment(persist=persist)
    except MarketDataUnavailableError as exc:
        return {"ok": False, "error": "upstream_unavailable", "sources": [e.as_dict() for e in exc.errors]}
    except InvalidInputError as exc:
        return {"ok": False, "error": "insufficient_data", "field": exc.field, "reason": exc.reason}
    finally:
        await engine.dispose()

    return {
        "ok": True,
        "input": run.input.model_dump(),
        "output": run.output.model_dump(mode="json"),
        "snapshot_saved": run.snapshot_saved,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Score the live market once and print the result as JSON")
    parser.add_argument("--no-save", action="store_true", help="do not write today's snapshot")
    args = parser.parse_args()

    result = asyncio.run(score_now(persist=not args.no_save))
    print(json.dumps(result))
    raise SystemExit(0 if result["ok"] else 1)


if __name__ == "__main__":
    main()
