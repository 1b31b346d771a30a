"""Lookup of per-number routing records."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from routing.addresses import extract_number
from routing.errors import ConfigRecordNotFoundError, ConfigStoreError
from routing.schemas import RouteRecord
from store.base import NUMBERS, ConfigStore

LOGGER = logging.getLogger(__name__)


class RoutingResolver:
    """Maps a normalized transfer target to its stored ``RouteRecord``.

    ``resolve`` never raises. A missing entry, a store failure and a malformed
    entry all return ``None``, which dispatch treats as "dial the number as
    PSTN". The causes are only told apart in the logs.
    """

    def __init__(self, store: ConfigStore) -> None:
        self._store = store

    async def resolve(self, normalized_target: str) -> RouteRecord | None:
        number = extract_number(normalized_target)
        if number is None:
            LOGGER.debug("No number in %s, skipping route lookup", normalized_target)
            return None

        try:
            data = await self._store.fetch(NUMBERS, number)
        except ConfigRecordNotFoundError:
            LOGGER.info("No route entry for %s, using PSTN fallback", number)
            return None
        except ConfigStoreError as exc:
            LOGGER.error("Route lookup for %s failed, using PSTN fallback: %s", number, exc)
            return None
        except Exception:
            LOGGER.exception("Unexpected error looking up route for %s, using PSTN fallback", number)
            return None

        if not isinstance(data, dict):
            LOGGER.warning("Route entry for %s is not an object: %r", number, data)
            return None
        try:
            record = RouteRecord.model_validate(data)
        except ValidationError as exc:
            LOGGER.warning("Route entry for %s is malformed: %s", number, exc)
            return None

        LOGGER.info("Route entry for %s: kind=%s uri=%s", number, record.kind, record.uri)
        return record
