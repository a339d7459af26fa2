from __future__ import annotations

from datetime import datetime, timezone
from itertools import count

import pytest

from tokenhunt.config.settings import get_settings
from tokenhunt.domain.models import Hunt
from tokenhunt.storage.json_file import JsonFileStore
from tokenhunt.storage.memory import MemoryStore
from tokenhunt.storage.sqlite import SqliteStore

_ids = count(1)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    # Never let a test touch the repo's data/ directory or a developer's .env overrides.
    monkeypatch.setenv("TOKENHUNT_STORAGE_BACKEND", "memory")
    monkeypatch.setenv("TOKENHUNT_STORAGE_PATH", str(tmp_path / "store.json"))
    monkeypatch.delenv("TOKENHUNT_CONFIG_PATH", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_hunt(**overrides) -> Hunt:
    data = {
        "hunt_id": f"hunt-{next(_ids)}",
        "lat": 25.0330,
        "lng": 121.5654,
        "radius_meters": 50,
        "reward_amount": 100.0,
        "max_claims": 10,
        "campaign_name": "Coffee Crawl",
        "sponsor_wallet": "0xabc123",
        "created_at": datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc),
    }
    data.update(overrides)
    return Hunt(**data)


@pytest.fixture(params=["memory", "json", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    if request.param == "json":
        return JsonFileStore(tmp_path / "store.json")
    return SqliteStore(tmp_path / "store.db")
