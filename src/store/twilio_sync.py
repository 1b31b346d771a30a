"""Config store backed by Twilio Sync Maps.

Each collection is one Sync Map; each entry is a Sync Map item whose ``data``
holds the JSON document. Missing items come back from the REST API as 404.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from twilio.base.exceptions import TwilioException, TwilioRestException

from routing.errors import (
    ConfigRecordNotFoundError,
    ConfigStoreError,
    ConfigStoreNotConfiguredError,
)
from store.base import ConfigStore

LOGGER = logging.getLogger(__name__)


class TwilioSyncConfigStore(ConfigStore):
    """Reads routing entries from Sync Map items.

    The Twilio SDK is blocking, so each fetch runs in a worker thread.
    """

    name = "twilio_sync"

    def __init__(
        self,
        *,
        service_sid: str | None,
        map_names: dict[str, str | None],
        client_factory: Callable[[], Any],
    ) -> None:
        self._service_sid = service_sid
        self._map_names = map_names
        self._client_factory = client_factory
        self._client: Any = None

    def _map_name(self, collection: str) -> str:
        if not self._service_sid:
            raise ConfigStoreNotConfiguredError("SYNC_SERVICE_SID is not configured")
        map_name = self._map_names.get(collection)
        if not map_name:
            raise ConfigStoreNotConfiguredError(f"No Sync Map configured for {collection}")
        return map_name

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _fetch_item(self, map_name: str, key: str) -> Any:
        item = (
            self._get_client()
            .sync.v1.services(self._service_sid)
            .sync_maps(map_name)
            .sync_map_items(key)
            .fetch()
        )
        return item.data

    async def fetch(self, collection: str, key: str) -> Any:
        map_name = self._map_name(collection)
        LOGGER.debug("Sync fetch service=%s map=%s key=%s", self._service_sid, map_name, key)
        try:
            return await asyncio.to_thread(self._fetch_item, map_name, key)
        except TwilioRestException as exc:
            if exc.status == 404:
                raise ConfigRecordNotFoundError(f"No Sync Map item {key} in {map_name}") from exc
            raise ConfigStoreError(f"Sync fetch failed for {key} in {map_name}: {exc.msg}") from exc
        except (TwilioException, OSError) as exc:
            raise ConfigStoreError(f"Sync fetch failed for {key} in {map_name}: {exc}") from exc
