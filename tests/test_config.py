# test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from orderflow.config import Settings, get_settings

CONFIG = Path(__file__).resolve().parents[1] / "orderflow" / "config.json"


def _settings():
    get_settings.cache_clear()
    return get_settings()


@pytest.fixture(autouse=True)
def _clear_cache(monkeypatch):
    monkeypatch.delenv("POSTGRES_TENANT_DSN_TEMPLATE", raising=False)
    yield
    get_settings.cache_clear()


def test_defaults_from_config():
    settings = _settings()
    data = json.loads(CONFIG.read_text())
    assert settings.kds_poll_interval_secs == data["kds_poll_interval_secs"] == 10.0
    assert settings.kds_page_size == data["kds_page_size"] == 10
    assert settings.postgres_tenant_dsn_template == data["postgres_tenant_dsn_template"]


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("REDIS_URL", "redis://override")
    monkeypatch.setenv("KDS_PAGE_SIZE", "25")
    settings = _settings()
    assert settings.redis_url == "redis://override"
    assert settings.kds_page_size == 25


def test_settings_are_cached():
    assert _settings() is get_settings()


@pytest.mark.parametrize(
    "field,value",
    [("kds_poll_interval_secs", 0), ("kds_page_size", 0), ("kds_page_size", 101)],
)
def test_out_of_range_values_rejected(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


def test_schema_bootstrap_off_by_default(monkeypatch):
    monkeypatch.delenv("AUTO_CREATE_SCHEMA", raising=False)
    assert _settings().auto_create_schema is False
    monkeypatch.setenv("AUTO_CREATE_SCHEMA", "true")
    assert _settings().auto_create_schema is True
