"""Domain-specific exceptions for call routing.

Every exception carries the HTTP status the API layer should answer with.
Only input faults escape to webhook callers; store failures are absorbed
by the resolver and the ring group state machine.
"""

from __future__ import annotations


class RoutingError(Exception):
    status_code: int = 500
    default_detail: str = "Call routing error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class InvalidCallInputError(RoutingError):
    status_code = 400
    default_detail = "Invalid call parameters."


class MissingTransferTargetError(InvalidCallInputError):
    default_detail = "Missing ReferTransferTarget parameter"


class SipDialingNotConfiguredError(RoutingError):
    status_code = 404
    default_detail = "SIP dialing not configured"


class ConfigStoreError(RoutingError):
    status_code = 503
    default_detail = "Config store request failed."


class ConfigRecordNotFoundError(ConfigStoreError):
    status_code = 404
    default_detail = "Config store entry not found."


class ConfigStoreNotConfiguredError(ConfigStoreError):
    default_detail = "Config store is not configured."
