"""Semantic call-control instructions.

The routing core returns one of these; ``telephony.twiml`` turns it into the
markup the signaling platform executes.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DialTargetKind(str, Enum):
    SIP = "sip"
    CLIENT = "client"
    NUMBER = "number"


@dataclass(frozen=True)
class Dial:
    kind: DialTargetKind
    target: str
    caller_id: str | None = None
    timeout: int | None = None
    answer_on_bridge: bool = False
    action_url: str | None = None
    refer_url: str | None = None


@dataclass(frozen=True)
class Reject:
    reason: str = "busy"


@dataclass(frozen=True)
class SayAndHangup:
    message: str


@dataclass(frozen=True)
class NoAction:
    """An empty document: leave the current call as it is."""


Instruction = Dial | Reject | SayAndHangup | NoAction
