from __future__ import annotations

from dataclasses import dataclass

from config.settings import get_settings
from routing.errors import ConfigStoreNotConfiguredError


@dataclass(frozen=True)
class TwilioConfig:
    account_sid: str
    auth_token: str


def get_twilio_config() -> TwilioConfig:
    settings = get_settings()
    if not settings.twilio_account_sid or not settings.twilio_auth_token:
        raise ConfigStoreNotConfiguredError("Twilio credentials are not configured")

    return TwilioConfig(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
    )


def build_twilio_client(cfg: TwilioConfig | None = None):
    from twilio.rest import Client

    cfg = cfg or get_twilio_config()
    return Client(cfg.account_sid, cfg.auth_token)
