"""Twilio Voice webhooks for PBX call routing.

This module provides:
- SIP REFER transfer handler (looks the target up in the config store).
- Sequential ring group handler, re-entered through ``<Dial action>``.
- Transfer-capable inbound legs: SIP domain -> PSTN and PSTN -> SIP domain.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from api.dependencies import get_config_store
from config.settings import get_settings
from routing.dispatch import TransferRouter, build_pstn_leg, build_sip_leg
from routing.errors import RoutingError
from routing.instructions import Instruction, SayAndHangup
from routing.resolver import RoutingResolver
from routing.ring_group import UNAVAILABLE_MESSAGE, RingGroupStateMachine, parse_position
from routing.schemas import TransferRequest
from store.base import ConfigStore
from telephony.twiml import render_twiml

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/pbx", tags=["pbx"])

SIP_HEADER_PREFIX = "SipHeader_"


def _twiml_response(instruction: Instruction) -> Response:
    # Twilio expects application/xml
    return Response(content=render_twiml(instruction), media_type="application/xml")


def _callback_url(request: Request, route_name: str, path: str) -> str:
    settings = get_settings()
    if settings.public_base_url:
        return f"{settings.public_base_url.rstrip('/')}/api/pbx/{path}"
    return str(request.url_for(route_name))


async def _event_params(request: Request) -> dict[str, str]:
    # Ring group state travels in the action URL query; Twilio's call data in the form body.
    params = {key: value for key, value in request.query_params.items()}
    form = await request.form()
    for key, value in form.items():
        if isinstance(value, str):
            params[key] = value
    return params


def _http_error(exc: RoutingError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.detail)


@router.post("/call-transfer")
async def call_transfer(
    request: Request,
    store: ConfigStore = Depends(get_config_store),
) -> Response:
    """Handle a SIP REFER by dialing whatever the transfer target routes to."""

    settings = get_settings()
    params = await _event_params(request)
    transfer = TransferRequest(
        call_id=params.get("CallSid") or "unknown",
        transfer_target=params.get("ReferTransferTarget"),
        from_address=params.get("From"),
        signaling_headers={k: v for k, v in params.items() if k.startswith(SIP_HEADER_PREFIX)},
    )
    transfer_router = TransferRouter(
        RoutingResolver(store),
        primary_header=settings.uui_primary_header,
        alternate_header=settings.uui_alternate_header,
    )
    try:
        instruction = await transfer_router.route(transfer)
    except RoutingError as exc:
        raise _http_error(exc) from exc
    return _twiml_response(instruction)


@router.post("/ring-group")
async def ring_group(
    request: Request,
    store: ConfigStore = Depends(get_config_store),
) -> Response:
    settings = get_settings()
    params = await _event_params(request)
    call_id = params.get("CallSid") or "unknown"

    machine = RingGroupStateMachine(
        store,
        ring_group_url=_callback_url(request, "ring_group", "ring-group"),
        transfer_url=_callback_url(request, "call_transfer", "call-transfer"),
    )
    try:
        step = await machine.advance(
            group_id=params.get("ringGroupId") or settings.default_ring_group_id,
            position=parse_position(params.get("state")),
            previous_outcome=params.get("DialCallStatus") or None,
            caller_id=params.get("From") or params.get("Caller"),
            call_id=call_id,
        )
    except Exception as exc:
        LOGGER.exception("Ring group failed for Call SID %s: %s", call_id, exc)
        return _twiml_response(SayAndHangup(UNAVAILABLE_MESSAGE))

    LOGGER.info("Ring group Call SID %s: %s at state %s", call_id, step.state.value, step.position)
    return _twiml_response(step.instruction)


@router.post("/call-to-pstn")
async def call_to_pstn(request: Request) -> Response:
    """Outbound call from the SIP domain to a PSTN number, transferable via REFER."""

    params = await _event_params(request)
    try:
        instruction = build_pstn_leg(
            params.get("To", ""),
            params.get("From", ""),
            transfer_url=_callback_url(request, "call_transfer", "call-transfer"),
        )
    except RoutingError as exc:
        LOGGER.error("call-to-pstn rejected for Call SID %s: %s", params.get("CallSid"), exc.detail)
        raise _http_error(exc) from exc
    return _twiml_response(instruction)


@router.post("/call-to-sip")
async def call_to_sip(request: Request) -> Response:
    """Inbound PSTN call into the customer's SIP domain, tagged with the call SID."""

    settings = get_settings()
    params = await _event_params(request)
    call_id = params.get("CallSid") or "unknown"
    try:
        instruction = build_sip_leg(
            params.get("To", ""),
            call_id,
            sip_domain=settings.sip_domain_uri,
            transfer_url=_callback_url(request, "call_transfer", "call-transfer"),
        )
    except RoutingError as exc:
        raise _http_error(exc) from exc
    LOGGER.info("call-to-sip: Call SID %s dialing %s", call_id, instruction.target)
    return _twiml_response(instruction)
