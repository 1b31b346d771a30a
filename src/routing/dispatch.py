"""Turning routing decisions into dial instructions.

``build_transfer_instruction`` is the single place where a resolved route
becomes exactly one ``Dial`` or ``Reject``. ``TransferRouter`` wraps it with
input validation, normalization and the route lookup for SIP REFER
transfers. The two ``build_*_leg`` helpers cover plain inbound calls that
should stay transferable.
"""

from __future__ import annotations

import logging

from routing.addresses import extract_caller_id, extract_number, is_e164, normalize_transfer_target
from routing.errors import InvalidCallInputError, MissingTransferTargetError, SipDialingNotConfiguredError
from routing.instructions import Dial, DialTargetKind, Reject
from routing.resolver import RoutingResolver
from routing.schemas import CallLeg, RouteKind, RouteRecord, TransferRequest, select_correlation_token

LOGGER = logging.getLogger(__name__)

UUI_PARAMETER = "User-to-User"
CLIENT_PREFIX = "client:"


def append_correlation_token(uri: str, token: str) -> str:
    separator = "&" if "?" in uri else "?"
    return f"{uri}{separator}{UUI_PARAMETER}={token}"


def build_transfer_instruction(
    record: RouteRecord | None,
    normalized_target: str,
    extracted_number: str | None,
    caller_id: str | None,
    correlation_token: str,
) -> Dial | Reject:
    kind = record.route_kind if record is not None else None

    if kind is RouteKind.SIP:
        if not record.uri:
            LOGGER.error("SIP route for %s has no uri, rejecting", normalized_target)
            return Reject("busy")
        return Dial(
            kind=DialTargetKind.SIP,
            target=append_correlation_token(record.uri, correlation_token),
        )

    if kind is RouteKind.CLIENT:
        if not record.uri:
            LOGGER.error("Client route for %s has no uri, rejecting", normalized_target)
            return Reject("busy")
        return Dial(
            kind=DialTargetKind.CLIENT,
            target=record.uri.removeprefix(CLIENT_PREFIX),
            caller_id=caller_id,
        )

    # number, pstn, unrecognized kinds and unresolved targets all dial PSTN.
    if record is not None and kind is None:
        LOGGER.warning("Unrecognized route kind %r for %s, treating as PSTN", record.kind, normalized_target)
    destination = (record.uri if record is not None else None) or extracted_number or normalized_target
    if not is_e164(destination):
        LOGGER.error("Invalid E.164 number %s, rejecting", destination)
        return Reject("busy")
    return Dial(kind=DialTargetKind.NUMBER, target=destination, caller_id=caller_id)


class TransferRouter:
    """Handles one SIP REFER: picks the destination and builds the dial."""

    def __init__(
        self,
        resolver: RoutingResolver,
        *,
        primary_header: str,
        alternate_header: str,
    ) -> None:
        self._resolver = resolver
        self._primary_header = primary_header
        self._alternate_header = alternate_header

    async def route(self, request: TransferRequest) -> Dial | Reject:
        if not request.transfer_target:
            LOGGER.error("No ReferTransferTarget for Call SID: %s", request.call_id)
            raise MissingTransferTargetError()

        target = normalize_transfer_target(request.transfer_target)
        leg = CallLeg(
            call_id=request.call_id,
            from_address=request.from_address,
            to_address=target,
            correlation_token=select_correlation_token(
                request.signaling_headers,
                request.call_id,
                primary_header=self._primary_header,
                alternate_header=self._alternate_header,
            ),
        )
        LOGGER.info("Processing REFER for Call SID %s to target %s (UUI %s)", leg.call_id, target, leg.correlation_token)

        extracted = extract_number(target)
        record = await self._resolver.resolve(target)
        instruction = build_transfer_instruction(
            record,
            target,
            extracted,
            extract_caller_id(leg.from_address),
            leg.correlation_token,
        )
        if isinstance(instruction, Dial):
            LOGGER.info(
                "Call SID %s: dialing %s %s (caller ID %s)",
                leg.call_id,
                instruction.kind.value,
                instruction.target,
                instruction.caller_id,
            )
        else:
            LOGGER.info("Call SID %s: rejecting transfer to %s (%s)", leg.call_id, target, instruction.reason)
        return instruction


def build_pstn_leg(to_address: str, from_address: str, *, transfer_url: str) -> Dial:
    """Dial the number behind a SIP domain ``To`` URI, keeping REFER support."""

    to_number = extract_number(to_address)
    if to_number is None:
        raise InvalidCallInputError(f"Invalid To SIP URI format: {to_address}")
    from_number = extract_number(from_address)
    if from_number is None:
        raise InvalidCallInputError(f"Invalid From SIP URI format: {from_address}")

    return Dial(
        kind=DialTargetKind.NUMBER,
        target=to_number,
        caller_id=from_number,
        answer_on_bridge=True,
        refer_url=transfer_url,
    )


def build_sip_leg(to_number: str, call_id: str, *, sip_domain: str | None, transfer_url: str) -> Dial:
    """Dial an inbound PSTN call into the SIP domain, tagged with the call SID."""

    if not sip_domain:
        raise SipDialingNotConfiguredError()
    if not to_number:
        raise InvalidCallInputError("Missing To parameter")

    user = to_number.removeprefix("sip:")
    return Dial(
        kind=DialTargetKind.SIP,
        target=append_correlation_token(f"sip:{user}@{sip_domain}", call_id),
        answer_on_bridge=True,
        refer_url=transfer_url,
    )
