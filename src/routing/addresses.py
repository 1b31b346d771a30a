"""Helpers for SIP addresses and phone numbers.

All functions here are pure and never raise on bad input: malformed
addresses come back as ``None`` (extraction) or unchanged (pass-through).
"""

from __future__ import annotations

import re

SIP_NUMBER_PATTERN = re.compile(r"^sip:(\+?[0-9]+)@(.*)")
E164_PATTERN = re.compile(r"^\+[1-9][0-9]{1,14}$")


def strip_brackets(address: str) -> str:
    cleaned = address.strip()
    if cleaned.startswith("<") and cleaned.endswith(">"):
        cleaned = cleaned[1:-1]
    return cleaned


def extract_number(address: object) -> str | None:
    """Return the number part of ``sip:<number>@<domain>``.

    The ``+`` prefix is kept exactly as it appears in the address.

    >>> extract_number("<sip:+61412345678@example.com>")
    '+61412345678'
    >>> extract_number("sip:614123@example.com:5060")
    '614123'
    >>> extract_number("tel:+61412345678") is None
    True
    """

    if not address or not isinstance(address, str):
        return None

    match = SIP_NUMBER_PATTERN.match(strip_brackets(address))
    if match is None:
        return None
    return match.group(1)


def normalize_transfer_target(raw: str) -> str:
    """Give every transfer target a ``+`` prefixed number.

    SIP targets get ``sip:+<digits>``; anything else is treated as a PSTN
    number and gets a leading ``+``. SIP addresses without a numeric user
    part are returned as-is.
    """

    target = strip_brackets(raw)
    if target.startswith("sip:"):
        user = target[len("sip:"):]
        if user[:1].isdigit():
            return f"sip:+{user}"
        return target
    if not target.startswith("+"):
        return f"+{target}"
    return target


def extract_caller_id(address: str | None) -> str | None:
    if address and strip_brackets(address).startswith("sip:"):
        number = extract_number(address)
        if number:
            return number
    return address


def is_e164(value: str | None) -> bool:
    return bool(value) and E164_PATTERN.match(value) is not None
