"""In-process config store for local runs and tests."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from routing.errors import ConfigRecordNotFoundError, ConfigStoreError
from store.base import NUMBERS, RING_GROUPS, ConfigStore

LOGGER = logging.getLogger(__name__)


class InMemoryConfigStore(ConfigStore):
    """Dictionary-backed store.

    Values are deep-copied on the way out so callers can never mutate the
    stored configuration.
    """

    name = "memory"

    def __init__(self, data: dict[str, dict[str, Any]] | None = None) -> None:
        self._data: dict[str, dict[str, Any]] = {NUMBERS: {}, RING_GROUPS: {}}
        for collection, items in (data or {}).items():
            self._data.setdefault(collection, {}).update(items)

    @classmethod
    def from_file(cls, path: Path) -> InMemoryConfigStore:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigStoreError(f"Unable to load config store file {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigStoreError(f"Config store file {path} must contain a JSON object")
        LOGGER.info("Loaded config store file %s (%s)", path, ", ".join(sorted(raw)))
        return cls(raw)

    def put(self, collection: str, key: str, value: Any) -> None:
        self._data.setdefault(collection, {})[key] = copy.deepcopy(value)

    def remove(self, collection: str, key: str) -> None:
        self._data.get(collection, {}).pop(key, None)

    async def fetch(self, collection: str, key: str) -> Any:
        items = self._data.get(collection, {})
        if key not in items:
            raise ConfigRecordNotFoundError(f"No {collection} entry for {key}")
        return copy.deepcopy(items[key])
