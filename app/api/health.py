# app/api/health.py
from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Response
from sqlalchemy import text

from app.config.settings import get_settings
from app.db import session as db_session
from app.jobs.snapshot_collector import get_collector_status

router = APIRouter(tags=["health"])

APP_STARTED_AT = time.time()


def _now_meta() -> Dict[str, Any]:
    now_ts = time.time()
    now_dt = datetime.fromtimestamp(now_ts, tz=timezone.utc)
    return {
        "now_unix": int(now_ts),
        "now_iso": now_dt.isoformat().replace("+00:00", "Z"),
        "uptime_s": int(now_ts - APP_STARTED_AT),
    }


async def _check_db() -> Dict[str, Any]:
    t0 = time.time()
    try:
        async with db_session.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"ok": True, "latency_ms": int((time.time() - t0) * 1000)}
    except Exception as e:
        return {
            "ok": False,
            "latency_ms": int((time.time() - t0) * 1000),
            "error": str(e),
        }


def _check_collector() -> Dict[str, Any]:
    status = get_collector_status()
    enabled = get_settings().SNAPSHOT_ENABLED
    # a disabled collector is not a fault
    status["enabled"] = enabled
    status["ok"] = status["running"] or not enabled
    return status


@router.get("/live")
async def live():
    return {"status": "ok"}


@router.get("/ready")
async def ready(response: Response):
    checks = {
        "db": await _check_db(),
        "snapshot_collector": _check_collector(),
    }

    degraded_reasons = []
    if not checks["db"]["ok"]:
        degraded_reasons.append("db_unhealthy")
    if not checks["snapshot_collector"]["ok"]:
        degraded_reasons.append("snapshot_collector_stopped")

    payload: Dict[str, Any] = {**_now_meta(), "checks": checks}
    if degraded_reasons:
        payload["status"] = "degraded"
        response.status_code = 503
    else:
        payload["status"] = "ok"
    payload["degraded"] = bool(degraded_reasons)
    payload["degraded_reasons"] = degraded_reasons
    return payload
