from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from app.api import health as health_module
from app.config.settings import Settings, get_settings, parse_bool, parse_optional_float
from app.db import session as db_session


@pytest.fixture()
def health_client(monkeypatch):
    monkeypatch.setattr(db_session, "engine", create_async_engine("sqlite+aiosqlite:///:memory:"))
    app = FastAPI()
    app.include_router(health_module.router)
    return TestClient(app)


def test_live(health_client):
    assert health_client.get("/live").json() == {"status": "ok"}


def test_ready_ok_when_collector_disabled(monkeypatch, health_client):
    settings = replace(get_settings(), SNAPSHOT_ENABLED=False)
    monkeypatch.setattr(health_module, "get_settings", lambda: settings)

    resp = health_client.get("/ready")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["checks"]["db"]["ok"] is True
    assert body["checks"]["snapshot_collector"]["enabled"] is False


def test_ready_degraded_when_enabled_collector_not_running(monkeypatch, health_client):
    settings = replace(get_settings(), SNAPSHOT_ENABLED=True)
    monkeypatch.setattr(health_module, "get_settings", lambda: settings)

    resp = health_client.get("/ready")
    assert resp.status_code == 503
    assert "snapshot_collector_stopped" in resp.json()["degraded_reasons"]


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SNAPSHOT_ENABLED", "off")
    monkeypatch.setenv("TOP_COINS_LIMIT", "50")
    monkeypatch.setenv("MAX_HISTORICAL_MARKET_CAP_USD", "3.7e12")
    monkeypatch.setenv("COINGECKO_BASE_URL", "https://pro-api.coingecko.com/api/v3/")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    s = Settings.from_env()
    assert s.SNAPSHOT_ENABLED is False
    assert s.TOP_COINS_LIMIT == 50
    assert s.MAX_HISTORICAL_MARKET_CAP_USD == pytest.approx(3.7e12)
    assert s.COINGECKO_BASE_URL == "https://pro-api.coingecko.com/api/v3"
    assert s.LOG_LEVEL == "DEBUG"


def test_parse_helpers():
    assert parse_bool(None, True) is True
    assert parse_bool(" Yes ", False) is True
    assert parse_optional_float("  ") is None
