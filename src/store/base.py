"""Shared abstractions for routing configuration stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

NUMBERS = "numbers"
RING_GROUPS = "ring_groups"


class ConfigStore(ABC):
    """Read-only key-value access to routing configuration.

    Entries live in two collections: ``numbers`` (keyed by phone number) and
    ``ring_groups`` (keyed by group id).
    """

    name: str = "abstract"

    @abstractmethod
    async def fetch(self, collection: str, key: str) -> Any:
        """Return the decoded JSON stored under ``key``.

        Raises ``ConfigRecordNotFoundError`` when the entry does not exist and
        ``ConfigStoreError`` for every other failure.
        """
