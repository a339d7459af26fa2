"""Settings-driven store factory."""

from __future__ import annotations

from tokenhunt.config.settings import Settings
from tokenhunt.core.env import resolve_project_path
from tokenhunt.storage.base import Store
from tokenhunt.storage.json_file import JsonFileStore
from tokenhunt.storage.memory import MemoryStore
from tokenhunt.storage.sqlite import SqliteStore


def build_store(settings: Settings) -> Store:
    """Instantiate the backend named by `settings.storage.backend`."""
    backend = settings.storage.backend
    if backend == "memory":
        return MemoryStore()
    path = resolve_project_path(settings.storage.path)
    if backend == "sqlite":
        return SqliteStore(path)
    return JsonFileStore(path)
