from __future__ import annotations

import asyncio

import pytest

from conftest import CountingConfigStore, FailingConfigStore
from routing.dispatch import TransferRouter, build_pstn_leg, build_sip_leg, build_transfer_instruction
from routing.errors import InvalidCallInputError, MissingTransferTargetError, SipDialingNotConfiguredError
from routing.instructions import Dial, DialTargetKind, Reject
from routing.resolver import RoutingResolver
from routing.schemas import RouteRecord, TransferRequest


def _router(store) -> TransferRouter:
    return TransferRouter(
        RoutingResolver(store),
        primary_header="SipHeader_x-inin-cnv",
        alternate_header="SipHeader_User-to-User",
    )


def _route(store, **kwargs):
    request = TransferRequest(call_id=kwargs.pop("call_id", "CA123"), **kwargs)
    return asyncio.run(_router(store).route(request))


def test_sip_route_appends_correlation_token():
    store = CountingConfigStore(
        {"numbers": {"+61412345678": {"kind": "sip", "uri": "sip:+61412345678@dest.example"}}}
    )

    result = _route(store, transfer_target="sip:+61412345678@dom.example")

    assert result == Dial(kind=DialTargetKind.SIP, target="sip:+61412345678@dest.example?User-to-User=CA123")
    assert store.calls == [("numbers", "+61412345678")]


def test_sip_route_uses_ampersand_when_uri_has_query():
    record = RouteRecord(kind="sip", uri="sip:+1999@dest.example?X-Team=sales")

    result = build_transfer_instruction(record, "sip:+1999@dom.example", "+1999", "+61412345678", "uui-1")

    assert result.target == "sip:+1999@dest.example?X-Team=sales&User-to-User=uui-1"
    assert result.caller_id is None


def test_unmapped_number_falls_back_to_pstn_with_caller_id(store):
    result = _route(store, transfer_target="+19995551234", from_address="sip:+61412345678@source.example")

    assert result == Dial(kind=DialTargetKind.NUMBER, target="+19995551234", caller_id="+61412345678")
    # Bare numbers carry nothing to look up.
    assert store.calls == []


def test_unmapped_sip_target_dials_extracted_number(store):
    result = _route(store, transfer_target="<sip:19994444444@pbx.example>", from_address="+61412345678")

    assert result == Dial(kind=DialTargetKind.NUMBER, target="+19994444444", caller_id="+61412345678")
    assert store.calls == [("numbers", "+19994444444")]


def test_invalid_e164_route_is_rejected(store):
    result = _route(store, transfer_target="sip:+19995550000@pbx.example")

    assert result == Reject("busy")


def test_client_route_strips_prefix_and_sets_caller_id(store):
    result = _route(
        store,
        transfer_target="sip:+19992222222@pbx.example",
        from_address="sip:+61412345678@source.example",
        signaling_headers={"SipHeader_x-inin-cnv": "uui-1"},
    )

    assert result == Dial(kind=DialTargetKind.CLIENT, target="agent_smith", caller_id="+61412345678")


def test_number_route_dials_stored_uri(store):
    result = _route(store, transfer_target="sip:+19993333333@pbx.example", from_address="+61412345678")

    assert result == Dial(kind=DialTargetKind.NUMBER, target="+18885551234", caller_id="+61412345678")


def test_store_error_and_miss_produce_the_same_dial(store):
    target = "sip:+19994444444@pbx.example"
    miss = _route(store, transfer_target=target, from_address="+61412345678")
    failing = FailingConfigStore()
    error = _route(failing, transfer_target=target, from_address="+61412345678")

    assert miss == error
    assert failing.calls == [("numbers", "+19994444444")]


def test_unexpected_store_exception_falls_back_to_pstn():
    result = _route(FailingConfigStore(RuntimeError("boom")), transfer_target="sip:+19994444444@pbx.example")

    assert result == Dial(kind=DialTargetKind.NUMBER, target="+19994444444")


def test_correlation_token_priority():
    store = CountingConfigStore({"numbers": {"+1999": {"type": "sip", "uri": "sip:+1999@dest.example"}}})
    target = "sip:+1999@pbx.example"

    primary = _route(
        store,
        transfer_target=target,
        signaling_headers={"SipHeader_x-inin-cnv": "primary", "SipHeader_User-to-User": "alternate"},
    )
    alternate = _route(store, transfer_target=target, signaling_headers={"SipHeader_User-to-User": "alternate"})
    fallback = _route(store, transfer_target=target, call_id="CA999")

    assert primary.target.endswith("User-to-User=primary")
    assert alternate.target.endswith("User-to-User=alternate")
    assert fallback.target.endswith("User-to-User=CA999")


@pytest.mark.parametrize("kind", ["sip", "client"])
def test_sip_and_client_routes_without_uri_are_rejected(kind):
    record = RouteRecord(kind=kind)

    assert build_transfer_instruction(record, "sip:+1999@pbx.example", "+1999", None, "CA1") == Reject("busy")


@pytest.mark.parametrize("kind", ["SIP", "voicemail", None])
def test_unknown_kinds_dial_as_pstn(kind):
    record = RouteRecord(kind=kind, uri="+18885551234")

    result = build_transfer_instruction(record, "sip:+1999@pbx.example", "+1999", "+61412345678", "CA1")

    assert result == Dial(kind=DialTargetKind.NUMBER, target="+18885551234", caller_id="+61412345678")


def test_missing_transfer_target_fails_before_lookup(store):
    with pytest.raises(MissingTransferTargetError):
        _route(store, transfer_target=None)
    assert store.calls == []


def test_build_pstn_leg_extracts_numbers():
    leg = build_pstn_leg(
        "sip:+19995551234@customer.sip.twilio.com",
        "sip:+61412345678@customer.sip.twilio.com",
        transfer_url="https://pbx.example/api/pbx/call-transfer",
    )

    assert leg.kind is DialTargetKind.NUMBER
    assert leg.target == "+19995551234"
    assert leg.caller_id == "+61412345678"
    assert leg.answer_on_bridge is True
    assert leg.refer_url == "https://pbx.example/api/pbx/call-transfer"


def test_build_pstn_leg_rejects_non_sip_to():
    with pytest.raises(InvalidCallInputError):
        build_pstn_leg("+19995551234", "sip:+61412345678@x.example", transfer_url="/t")


def test_build_sip_leg_tags_call_sid():
    leg = build_sip_leg("+61412345678", "CA42", sip_domain="customer.sip.twilio.com", transfer_url="/t")

    assert leg.target == "sip:+61412345678@customer.sip.twilio.com?User-to-User=CA42"
    assert leg.answer_on_bridge is True


def test_build_sip_leg_requires_domain():
    with pytest.raises(SipDialingNotConfiguredError):
        build_sip_leg("+61412345678", "CA42", sip_domain=None, transfer_url="/t")
