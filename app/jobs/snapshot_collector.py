# app/jobs/snapshot_collector.py
from __future__ import annotations

import asyncio
import json
import logging
import os
import random
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from app.config.settings import get_settings
from app.services.fetching import MarketDataUnavailableError
from app.services.sentiment.engine import InvalidInputError
from app.services.sentiment.service import SentimentRun, compute_current_sentiment
from app.services.snapshot_storage import has_today_snapshot
from app.utils.time import utcnow

logger = logging.getLogger("fudcourt.snapshots")


def _pid_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
        return True
    except OSError:
        return False


def _acquire_lock(lock_path: str, payload: dict) -> bool:
    flags = os.O_CREAT | os.O_EXCL | os.O_WRONLY
    try:
        fd = os.open(lock_path, flags)
        with os.fdopen(fd, "w") as f:
            json.dump(payload, f)
        return True
    except FileExistsError:
        # stale lock cleanup
        try:
            with open(lock_path, "r") as f:
                data = json.load(f)
            if _pid_alive(int(data.get("pid", -1))):
                return False
        except (OSError, ValueError):
            pass
        try:
            os.remove(lock_path)
        except OSError:
            return False
        return _acquire_lock(lock_path, payload)


def _release_lock(lock_path: str) -> None:
    try:
        os.remove(lock_path)
    except OSError:
        pass


@dataclass
class SnapshotState:
    started: bool = False
    stop_event: Optional[asyncio.Event] = None
    task: Optional[asyncio.Task] = None
    lock_path: Optional[str] = None
    started_at: Optional[float] = None
    last_success_utc: Optional[datetime] = None
    last_error: Optional[str] = None


_state = SnapshotState()


def get_collector_status() -> Dict[str, Any]:
    return {
        "running": _state.started,
        "pid": os.getpid(),
        "started_at": _state.started_at,
        "last_success_utc": _state.last_success_utc.isoformat() if _state.last_success_utc else None,
        "last_error": _state.last_error,
    }


async def _score_with_retries() -> SentimentRun:
    s = get_settings()
    attempt = 0
    while True:
        try:
            return await compute_current_sentiment(s)
        except MarketDataUnavailableError as e:
            attempt += 1
            if attempt > s.SNAPSHOT_MAX_RETRIES:
                raise
            backoff = (s.SNAPSHOT_BACKOFF_BASE_SECONDS * (2 ** (attempt - 1))) + random.uniform(
                0.0, s.SNAPSHOT_JITTER_SECONDS
            )
            logger.warning(
                "snapshot fetch failed | attempt=%s/%s | err=%s | sleep=%.2fs",
                attempt,
                s.SNAPSHOT_MAX_RETRIES,
                e,
                backoff,
            )
            await asyncio.sleep(backoff)


async def run_snapshot_once() -> bool:
    """
    Score the market and persist today's snapshot if it is still missing.

    Returns True when a new snapshot was written.
    """
    if await has_today_snapshot():
        logger.debug("snapshot already stored for today")
        return False

    t0 = time.time()
    try:
        run = await _score_with_retries()
    except (MarketDataUnavailableError, InvalidInputError) as e:
        _state.last_error = str(e)
        logger.error("snapshot skipped | ms=%d | err=%s", int((time.time() - t0) * 1000), e)
        return False

    _state.last_success_utc = utcnow()
    _state.last_error = None
    logger.info(
        "snapshot run done | ms=%d | macro=%s | saved=%s",
        int((time.time() - t0) * 1000),
        run.output.macro_score,
        run.snapshot_saved,
    )
    return run.snapshot_saved


async def _snapshot_loop(stop_event: asyncio.Event) -> None:
    s = get_settings()
    interval = max(5, int(s.SNAPSHOT_INTERVAL_SECONDS))

    logger.info("snapshot collector started | interval_s=%s", interval)

    while not stop_event.is_set():
        try:
            await run_snapshot_once()
        except Exception as e:
            _state.last_error = str(e)
            logger.exception("snapshot collector error")

        # stop-aware sleep
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval)
        except asyncio.TimeoutError:
            pass

    logger.info("snapshot collector stopped")


def start_snapshot_collector() -> None:
    s = get_settings()
    if not s.SNAPSHOT_ENABLED:
        logger.info("snapshot collector disabled (SNAPSHOT_ENABLED=false)")
        return

    if _state.started:
        logger.warning("snapshot collector already started (in-process)")
        return

    payload = {"pid": os.getpid(), "started_at": time.time()}
    if not _acquire_lock(s.SNAPSHOT_LOCK_PATH, payload):
        logger.warning("snapshot lock active (likely uvicorn --reload duplicate). Not starting a second collector.")
        return

    _state.lock_path = s.SNAPSHOT_LOCK_PATH
    _state.stop_event = asyncio.Event()
    _state.started = True
    _state.started_at = payload["started_at"]

    loop = asyncio.get_running_loop()
    _state.task = loop.create_task(_snapshot_loop(_state.stop_event))


async def stop_snapshot_collector() -> None:
    if not _state.started:
        return

    if _state.stop_event:
        _state.stop_event.set()

    if _state.task:
        _state.task.cancel()
        await asyncio.gather(_state.task, return_exceptions=True)

    _state.task = None
    _state.stop_event = None
    _state.started = False
    _state.started_at = None

    if _state.lock_path:
        _release_lock(_state.lock_path)
        _state.lock_path = None
