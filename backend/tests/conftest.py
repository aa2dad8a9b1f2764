"""Pytest fixtures: a throwaway SQLite data dir per test and a pinned clock."""
import logging
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from studydeck import app
from studydeck.config import settings
from studydeck.db.sqlite import get_db, init_sqlite
from studydeck.dependencies import get_now
from studydeck.services import session_registry

logging.getLogger("aiosqlite").setLevel(logging.ERROR)

T0 = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "data_dir", tmp_path)
    return tmp_path


@pytest.fixture
async def db(data_dir):
    await init_sqlite(data_dir)
    async for conn in get_db():
        yield conn


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(T0)


@pytest.fixture
def client(data_dir, clock):
    app.dependency_overrides[get_now] = lambda: clock.now
    with TestClient(app) as c:
        yield c
    app.dependency_overrides = {}
    session_registry.clear_sessions()


@pytest.fixture
def make_category(client):
    def _make(name: str, description: str | None = None) -> dict:
        res = client.post("/api/categories", json={"name": name, "description": description})
        assert res.status_code == 200
        return res.json()

    return _make


@pytest.fixture
def make_card(client):
    def _make(front: str, back: str, category_id: int, context_tags=None) -> dict:
        body = {"front": front, "back": back, "categoryId": category_id}
        if context_tags is not None:
            body["contextTags"] = context_tags
        res = client.post("/api/flashcards", json=body)
        assert res.status_code == 200
        return res.json()

    return _make
