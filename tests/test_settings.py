import pytest

from tokenhunt.config.settings import get_settings
from tokenhunt.storage.factory import build_store
from tokenhunt.storage.json_file import JsonFileStore
from tokenhunt.storage.memory import MemoryStore
from tokenhunt.storage.sqlite import SqliteStore


def test_packaged_defaults_load():
    settings = get_settings()

    assert settings.rewards.max_claims_cap == 50
    assert settings.rewards.claimable_distance_m == 10
    assert settings.rewards.rounding == "drift"
    assert settings.hunts.default_radius_meters == 50
    assert settings.payments.reference_ttl_seconds == 600


def test_env_overrides_are_applied(monkeypatch):
    monkeypatch.setenv("TOKENHUNT_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("TOKENHUNT_PAYMENTS_API_KEY", "key-123")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.app.log_level == "DEBUG"
    assert settings.payments.api_key == "key-123"
    assert settings.storage.backend == "memory"


def test_external_yaml_replaces_defaults(monkeypatch, tmp_path):
    cfg = tmp_path / "tokenhunt.yaml"
    cfg.write_text(
        "rewards:\n  claimable_distance_m: 25\n  rounding: last_unit\nstorage:\n  backend: sqlite\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("TOKENHUNT_CONFIG_PATH", str(cfg))
    monkeypatch.delenv("TOKENHUNT_STORAGE_BACKEND")
    get_settings.cache_clear()

    settings = get_settings()

    assert settings.rewards.claimable_distance_m == 25
    assert settings.rewards.rounding == "last_unit"
    assert settings.storage.backend == "sqlite"
    # Unspecified sections fall back to model defaults.
    assert settings.rewards.max_claims_cap == 50


def test_invalid_backend_is_rejected(monkeypatch):
    monkeypatch.setenv("TOKENHUNT_STORAGE_BACKEND", "mongo")
    get_settings.cache_clear()

    with pytest.raises(ValueError):
        get_settings()


@pytest.mark.parametrize(
    "backend, filename, expected",
    [("memory", "x.json", MemoryStore), ("json", "x.json", JsonFileStore), ("sqlite", "x.db", SqliteStore)],
)
def test_build_store_picks_backend(monkeypatch, tmp_path, backend, filename, expected):
    monkeypatch.setenv("TOKENHUNT_STORAGE_BACKEND", backend)
    monkeypatch.setenv("TOKENHUNT_STORAGE_PATH", str(tmp_path / filename))
    get_settings.cache_clear()

    assert type(build_store(get_settings())) is expected
