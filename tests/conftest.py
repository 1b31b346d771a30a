from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

for _name in ["PUBLIC_BASE_URL", "SIP_DOMAIN_URI", "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "CONFIG_STORE_FILE"]:
    os.environ.pop(_name, None)
# Must be set before anything reads the cached settings.
os.environ["CONFIG_STORE_PROVIDER"] = "memory"

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from routing.errors import ConfigStoreError  # noqa: E402
from store.base import ConfigStore  # noqa: E402
from store.memory import InMemoryConfigStore  # noqa: E402

ROUTES = {
    "+19991111111": {"type": "sip", "uri": "sip:+19991111111@destination.sip.twilio.com"},
    "+19992222222": {"type": "client", "uri": "client:agent_smith"},
    "+19993333333": {"type": "number", "uri": "+18885551234"},
    "+19995550000": {"type": "number", "uri": "+1abc"},
}

RING_GROUPS = {
    "1": {
        "group": [
            {"name": "Reception", "type": "sip", "destination": "sip:reception@pbx.example.com", "timeout": 15},
            {"name": "Mobile", "type": "number", "destination": "+61412345678", "timeout": 20},
        ]
    },
    "empty": {"group": []},
    "bare": [{"name": "Reception", "type": "sip", "destination": "sip:reception@pbx.example.com", "timeout": 15}],
}


class FailingConfigStore(ConfigStore):
    name = "failing"

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ConfigStoreError("connection refused")
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, collection: str, key: str):
        self.calls.append((collection, key))
        raise self.exc


class CountingConfigStore(InMemoryConfigStore):
    def __init__(self, data=None) -> None:
        super().__init__(data)
        self.calls: list[tuple[str, str]] = []

    async def fetch(self, collection: str, key: str):
        self.calls.append((collection, key))
        return await super().fetch(collection, key)


@pytest.fixture()
def store() -> CountingConfigStore:
    return CountingConfigStore({"numbers": ROUTES, "ring_groups": RING_GROUPS})


@pytest.fixture(scope="session")
def app():
    import importlib

    from config.settings import get_settings

    get_settings.cache_clear()
    main = importlib.import_module("main")
    return main.app


@pytest.fixture()
def settings_env(app, monkeypatch):
    """Set environment variables and rebuild the cached settings."""

    from config.settings import get_settings

    def _apply(**values: str) -> None:
        for key, value in values.items():
            monkeypatch.setenv(key, value)
        get_settings.cache_clear()

    yield _apply
    get_settings.cache_clear()


@pytest.fixture()
def client(app, store):
    import api.dependencies as deps

    app.dependency_overrides[deps.get_config_store] = lambda: store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
