"""Sequential ring groups driven by Twilio ``<Dial action>`` callbacks.

Nothing is kept between rounds. Each dial carries the next position and the
group id in its action URL, and Twilio posts the previous dial's
``DialCallStatus`` back to that URL. The destination list is fetched again on
every round, so an edit in the store applies to the next attempt that has
not started yet.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from pydantic import ValidationError

from routing.errors import ConfigRecordNotFoundError, ConfigStoreError, ConfigStoreNotConfiguredError
from routing.instructions import Dial, DialTargetKind, Instruction, NoAction, SayAndHangup
from routing.schemas import FAILURE_OUTCOMES, RingGroupConfig, RingGroupDestination
from store.base import RING_GROUPS, ConfigStore

LOGGER = logging.getLogger(__name__)

SERVICE_NOT_CONFIGURED_MESSAGE = "Ring group service is not configured. Please contact support."
GROUP_NOT_CONFIGURED_MESSAGE = "Ring group {group_id} is not configured. Unable to connect your call."
UNAVAILABLE_MESSAGE = "We are unable to connect your call at this time."


class RingGroupState(str, Enum):
    DIALING = "dialing"
    ANSWERED = "answered"
    EXHAUSTED = "exhausted"
    NOT_CONFIGURED = "not_configured"
    SERVICE_UNAVAILABLE = "service_unavailable"


@dataclass(frozen=True)
class RingGroupStep:
    state: RingGroupState
    instruction: Instruction
    position: int
    next_position: int | None = None


def parse_position(raw: object) -> int:
    """Read the ``state`` query value; anything unusable means the first round."""

    try:
        position = int(str(raw).strip())
    except (TypeError, ValueError):
        return 0
    return position if position >= 0 else 0


def is_failure_outcome(outcome: str | None) -> bool:
    return bool(outcome) and outcome in FAILURE_OUTCOMES


def build_callback_url(ring_group_url: str, *, position: int, group_id: str) -> str:
    separator = "&" if "?" in ring_group_url else "?"
    return f"{ring_group_url}{separator}{urlencode({'state': position, 'ringGroupId': group_id})}"


class RingGroupStateMachine:
    """Decides the single next action for one ring group callback."""

    def __init__(self, store: ConfigStore, *, ring_group_url: str, transfer_url: str) -> None:
        self._store = store
        self._ring_group_url = ring_group_url
        self._transfer_url = transfer_url

    async def load_destinations(self, group_id: str) -> list[RingGroupDestination] | None:
        """Fetch the group; ``None`` means missing or malformed.

        ``ConfigStoreNotConfiguredError`` is left to the caller, since it needs
        a different message than a broken group.
        """

        try:
            data = await self._store.fetch(RING_GROUPS, group_id)
        except ConfigRecordNotFoundError:
            LOGGER.warning("Ring group %s not found in store", group_id)
            return None
        except ConfigStoreNotConfiguredError:
            raise
        except ConfigStoreError as exc:
            LOGGER.error("Ring group %s: error fetching configuration: %s", group_id, exc)
            return None

        if not isinstance(data, dict):
            LOGGER.error(
                "Ring group %s: invalid data format, expected object with 'group' array, got %s",
                group_id,
                type(data).__name__,
            )
            return None
        try:
            return RingGroupConfig.model_validate(data).group
        except ValidationError as exc:
            LOGGER.error("Ring group %s: invalid configuration: %s", group_id, exc)
            return None

    async def advance(
        self,
        *,
        group_id: str,
        position: int,
        previous_outcome: str | None,
        caller_id: str | None,
        call_id: str = "unknown",
    ) -> RingGroupStep:
        try:
            destinations = await self.load_destinations(group_id)
        except ConfigStoreNotConfiguredError as exc:
            LOGGER.error("Ring group service not configured: %s", exc)
            return RingGroupStep(
                RingGroupState.SERVICE_UNAVAILABLE,
                SayAndHangup(SERVICE_NOT_CONFIGURED_MESSAGE),
                position,
            )

        if not destinations:
            LOGGER.error("Ring group %s not found or has no destinations (Call SID %s)", group_id, call_id)
            return RingGroupStep(
                RingGroupState.NOT_CONFIGURED,
                SayAndHangup(GROUP_NOT_CONFIGURED_MESSAGE.format(group_id=group_id)),
                position,
            )

        LOGGER.info(
            "Ring group %s: %s destinations, state %s, Call SID %s, previous status %s",
            group_id,
            len(destinations),
            position,
            call_id,
            previous_outcome or "initial",
        )

        if position > 0:
            if not is_failure_outcome(previous_outcome):
                LOGGER.info("Ring group %s: state %s answered (%s), ending flow", group_id, position - 1, previous_outcome)
                return RingGroupStep(RingGroupState.ANSWERED, NoAction(), position)
            LOGGER.info("Ring group %s: state %s %s, proceeding to state %s", group_id, position - 1, previous_outcome, position)

        if position >= len(destinations):
            LOGGER.info("Ring group %s: all %s destinations attempted", group_id, len(destinations))
            return RingGroupStep(RingGroupState.EXHAUSTED, NoAction(), position)

        destination = destinations[position]
        next_position = position + 1
        LOGGER.info(
            "Ring group %s: state %s dialing %s (%s) %s, timeout %ss",
            group_id,
            position,
            destination.name,
            destination.kind,
            destination.destination,
            destination.timeout_seconds,
        )
        return RingGroupStep(
            RingGroupState.DIALING,
            self._dial(destination, caller_id=caller_id, group_id=group_id, next_position=next_position),
            position,
            next_position,
        )

    def _dial(
        self,
        destination: RingGroupDestination,
        *,
        caller_id: str | None,
        group_id: str,
        next_position: int,
    ) -> Dial:
        kind = DialTargetKind.SIP if destination.kind == "sip" else DialTargetKind.NUMBER
        return Dial(
            kind=kind,
            target=destination.destination,
            caller_id=caller_id,
            timeout=destination.timeout_seconds,
            answer_on_bridge=True,
            action_url=build_callback_url(self._ring_group_url, position=next_position, group_id=group_id),
            refer_url=self._transfer_url,
        )
