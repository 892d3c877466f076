# app/main.py
from __future__ import annotations

import logging

from fastapi import FastAPI

from app.api.health import router as health_router
from app.api.sentiment import router as sentiment_router

from app.config.settings import get_settings
from app.db import models  # noqa: F401  registers tables on Base.metadata
from app.db.session import engine, Base
from app.db.bootstrap import ensure_db_primitives

from app.jobs.snapshot_collector import start_snapshot_collector, stop_snapshot_collector


logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Fud Court Sentiment API")

# Routers
app.include_router(health_router)
app.include_router(sentiment_router)


@app.get("/")
def root() -> dict[str, str]:
    return {"message": "Fud Court market sentiment"}


@app.on_event("startup")
async def on_startup() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await ensure_db_primitives()

    if get_settings().SNAPSHOT_ENABLED:
        start_snapshot_collector()


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await stop_snapshot_collector()
