"""Config store served by a plain HTTP key-value service."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from routing.errors import ConfigRecordNotFoundError, ConfigStoreError
from store.base import ConfigStore

LOGGER = logging.getLogger(__name__)


class HttpConfigStore(ConfigStore):
    """GET ``<base_url>/<collection>/<key>`` returning JSON; 404 means not found."""

    name = "http"

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def fetch(self, collection: str, key: str) -> Any:
        url = f"{self._base_url}/{quote(collection, safe='')}/{quote(key, safe='')}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ConfigStoreError(f"Config store request to {url} failed: {exc}") from exc

        if response.status_code == 404:
            raise ConfigRecordNotFoundError(f"No {collection} entry for {key}")
        try:
            response.raise_for_status()
        except httpx.HTTPError as exc:
            LOGGER.error("Config store returned an error: %s", exc)
            raise ConfigStoreError(f"Config store returned {response.status_code} for {url}") from exc

        try:
            return response.json()
        except ValueError as exc:
            raise ConfigStoreError(f"Config store returned invalid JSON for {url}") from exc
