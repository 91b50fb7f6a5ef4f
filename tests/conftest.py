import json

import pytest
from fastapi.testclient import TestClient

from app import app
from backend import RoomStore, room_store
from hub import RoomHub


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeConnection:
    """Collects what the hub sends; raises once closed like a dead socket."""

    def __init__(self):
        self.sent = []
        self.closed = False

    async def send_text(self, data: str):
        if self.closed:
            raise RuntimeError("connection closed")
        self.sent.append(json.loads(data))

    def of_type(self, message_type: str):
        return [m for m in self.sent if m["type"] == message_type]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return RoomStore(clock=clock)


@pytest.fixture
def hub(store):
    return RoomHub(store)


@pytest.fixture
def global_store(clock, monkeypatch):
    """The process-wide store the HTTP app uses, emptied and on a fake clock."""
    monkeypatch.setattr(room_store, "clock", clock)
    room_store._rooms.clear()
    yield room_store
    room_store._rooms.clear()


@pytest.fixture
def client(global_store):
    return TestClient(app)
