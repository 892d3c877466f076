from __future__ import annotations

from dataclasses import replace

import pytest

from app.config.settings import get_settings
from app.services import snapshot_storage
from app.services.sentiment import service
from app.tests.factories import example_input


@pytest.fixture()
def wired(monkeypatch, sessionmaker):
    seen = {}

    async def fake_assemble(settings, *, recorded_max_market_cap=None, client=None):
        seen["recorded_max"] = recorded_max_market_cap
        return example_input()

    monkeypatch.setattr(snapshot_storage, "session_factory", lambda: sessionmaker())
    monkeypatch.setattr(service, "assemble_market_input", fake_assemble)
    return seen


@pytest.mark.asyncio
async def test_first_run_of_the_day_stores_a_snapshot(wired):
    settings = replace(get_settings(), EXPECTED_TOP_COINS=2)

    first = await service.compute_current_sentiment(settings)
    second = await service.compute_current_sentiment(settings)

    assert first.output.macro_score == 62
    assert first.output.confidence_score == 100
    assert first.snapshot_saved is True
    assert second.snapshot_saved is False
    assert wired["recorded_max"] == pytest.approx(1.5e12)
    assert len(await snapshot_storage.list_snapshots()) == 1


@pytest.mark.asyncio
async def test_persist_false_leaves_history_untouched(wired):
    run = await service.compute_current_sentiment(persist=False)

    assert run.snapshot_saved is False
    assert wired["recorded_max"] is None
    assert await snapshot_storage.list_snapshots() == []
