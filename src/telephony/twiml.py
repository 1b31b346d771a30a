"""TwiML rendering for routing instructions."""

from __future__ import annotations

from typing import Any

from twilio.twiml.voice_response import VoiceResponse

from routing.instructions import Dial, DialTargetKind, Instruction, NoAction, Reject, SayAndHangup


def _dial_attributes(dial: Dial) -> dict[str, Any]:
    attrs: dict[str, Any] = {}
    if dial.caller_id:
        attrs["caller_id"] = dial.caller_id
    if dial.answer_on_bridge:
        attrs["answer_on_bridge"] = True
    if dial.timeout is not None:
        attrs["timeout"] = dial.timeout
    if dial.action_url:
        attrs["action"] = dial.action_url
        attrs["method"] = "POST"
    if dial.refer_url:
        attrs["refer_url"] = dial.refer_url
        attrs["refer_method"] = "POST"
    return attrs


def build_voice_response(instruction: Instruction) -> VoiceResponse:
    response = VoiceResponse()
    if isinstance(instruction, Dial):
        dial = response.dial(**_dial_attributes(instruction))
        if instruction.kind is DialTargetKind.SIP:
            dial.sip(instruction.target)
        elif instruction.kind is DialTargetKind.CLIENT:
            dial.client(instruction.target)
        else:
            dial.number(instruction.target)
    elif isinstance(instruction, Reject):
        response.reject(reason=instruction.reason)
    elif isinstance(instruction, SayAndHangup):
        response.say(instruction.message)
        response.hangup()
    elif not isinstance(instruction, NoAction):
        raise TypeError(f"Unsupported instruction: {instruction!r}")
    return response


def render_twiml(instruction: Instruction) -> str:
    return str(build_voice_response(instruction))
