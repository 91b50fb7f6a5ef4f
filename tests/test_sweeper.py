import asyncio

import pytest

from constants import ROOM_TTL_SECONDS
from sweeper import sweep_expired_rooms


async def test_sweeper_evicts_idle_rooms(store, clock):
    store.get_or_create("11111")
    clock.advance(ROOM_TTL_SECONDS)
    store.get_or_create("22222")

    task = asyncio.create_task(sweep_expired_rooms(store, interval=0.01))
    try:
        for _ in range(100):
            if "11111" not in store:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert "11111" not in store
    assert "22222" in store


async def test_sweeper_survives_sweep_errors(store, monkeypatch):
    calls = []

    def broken_sweep():
        calls.append(1)
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "sweep", broken_sweep)
    task = asyncio.create_task(sweep_expired_rooms(store, interval=0.01))
    try:
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert len(calls) >= 2


def test_app_lifespan_runs_sweeper(global_store):
    from fastapi.testclient import TestClient
    from app import app

    with TestClient(app) as client:
        task = app.state.sweeper_task
        assert not task.done()
        assert client.get("/health").json() == {"ok": True}
    assert task.cancelled() or task.done()
