"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Twilio (Voice)
    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: str | None = Field(default=None)
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL for Twilio webhooks (e.g. https://<ngrok>.ngrok-free.app).",
    )
    sip_domain_uri: str | None = Field(
        default=None,
        description="SIP domain for PSTN -> SIP calls, e.g. example.sip.twilio.com",
    )

    # Correlation (UUI) headers, in lookup order. Twilio exposes SIP headers as SipHeader_<name>.
    uui_primary_header: str = Field(default="SipHeader_x-inin-cnv")
    uui_alternate_header: str = Field(default="SipHeader_User-to-User")

    # Routing config store
    config_store_provider: Literal["twilio_sync", "http", "memory"] = Field(default="twilio_sync")
    sync_service_sid: str | None = Field(default=None, description="Twilio Sync service SID (IS...).")
    sync_map_phones_name: str | None = Field(default=None, description="Sync Map holding per-number routes.")
    sync_map_ringgroup_name: str | None = Field(default=None, description="Sync Map holding ring groups.")
    config_store_url: str | None = Field(
        default=None,
        description="Base URL of an HTTP key-value store serving /<collection>/<key>.",
    )
    config_store_api_key: str | None = Field(default=None)
    config_store_timeout_seconds: float = Field(default=5.0, gt=0)
    config_store_file: Path | None = Field(
        default=None,
        description="JSON file seeding the in-memory store: {\"numbers\": {...}, \"ring_groups\": {...}}",
    )

    default_ring_group_id: str = Field(default="1")

    @field_validator("default_ring_group_id")
    @classmethod
    def ring_group_id_not_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("default_ring_group_id may not be empty.")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
