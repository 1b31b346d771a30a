"""Pydantic models for routing records and call events."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class RouteKind(str, Enum):
    SIP = "sip"
    CLIENT = "client"
    NUMBER = "number"
    PSTN = "pstn"

    @classmethod
    def parse(cls, value: str | None) -> RouteKind | None:
        """Map a stored ``kind`` literal to a member, or ``None`` if unknown.

        Matching is case-sensitive: ``"SIP"`` is not ``"sip"``.
        """

        for member in cls:
            if member.value == value:
                return member
        return None


class RouteRecord(BaseModel):
    """Routing entry stored under a phone number."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: str | None = Field(default=None, validation_alias=AliasChoices("kind", "type"))
    uri: str | None = None

    @property
    def route_kind(self) -> RouteKind | None:
        return RouteKind.parse(self.kind)


class RingGroupDestination(BaseModel):
    """One member of a ring group, dialed in list order."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    kind: str = Field(validation_alias=AliasChoices("kind", "type"))
    destination: str
    timeout_seconds: int = Field(
        gt=0,
        validation_alias=AliasChoices("timeout", "timeoutSeconds", "timeout_seconds"),
    )

    @field_validator("destination")
    @classmethod
    def destination_not_empty(cls, value: str) -> str:
        destination = value.strip()
        if not destination:
            raise ValueError("Destination may not be empty.")
        return destination


class RingGroupConfig(BaseModel):
    """Stored ring group. The list is wrapped in an object under ``group``."""

    model_config = ConfigDict(extra="ignore")

    group: list[RingGroupDestination]


FAILURE_OUTCOMES = frozenset({"busy", "cancelled", "canceled", "no-answer", "failed"})


class CallLeg(BaseModel):
    """The parts of a webhook that identify one call leg."""

    call_id: str
    from_address: str | None = None
    to_address: str | None = None
    correlation_token: str


def select_correlation_token(
    params: dict[str, Any],
    call_id: str,
    *,
    primary_header: str,
    alternate_header: str,
) -> str:
    for header in (primary_header, alternate_header):
        value = params.get(header)
        if value:
            return str(value)
    return call_id


class TransferRequest(BaseModel):
    """Inbound SIP REFER webhook, reduced to what routing needs."""

    call_id: str
    transfer_target: str | None = None
    from_address: str | None = None
    signaling_headers: dict[str, str] = Field(default_factory=dict)
