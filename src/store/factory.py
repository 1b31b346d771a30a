"""Factory returning the configured config store implementation."""

from __future__ import annotations

from config.settings import get_settings
from integrations.twilio_client import build_twilio_client
from routing.errors import ConfigStoreNotConfiguredError
from store.base import NUMBERS, RING_GROUPS, ConfigStore
from store.http_store import HttpConfigStore
from store.memory import InMemoryConfigStore
from store.twilio_sync import TwilioSyncConfigStore


def build_config_store() -> ConfigStore:
    """Instantiate the configured store backend."""

    settings = get_settings()
    if settings.config_store_provider == "twilio_sync":
        # Missing Sync settings surface per request, so the service still boots.
        return TwilioSyncConfigStore(
            service_sid=settings.sync_service_sid,
            map_names={
                NUMBERS: settings.sync_map_phones_name,
                RING_GROUPS: settings.sync_map_ringgroup_name,
            },
            client_factory=build_twilio_client,
        )
    if settings.config_store_provider == "http":
        if not settings.config_store_url:
            raise ConfigStoreNotConfiguredError("CONFIG_STORE_URL must be set for the http store.")
        return HttpConfigStore(
            settings.config_store_url,
            api_key=settings.config_store_api_key,
            timeout=settings.config_store_timeout_seconds,
        )
    if settings.config_store_provider == "memory":
        if settings.config_store_file:
            return InMemoryConfigStore.from_file(settings.config_store_file)
        return InMemoryConfigStore()
    raise ValueError(f"Unsupported config_store_provider: {settings.config_store_provider}")
