"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from store.base import ConfigStore


@lru_cache(maxsize=1)
def _store_factory() -> ConfigStore:
    from store.factory import build_config_store

    return build_config_store()


def get_config_store() -> ConfigStore:
    return _store_factory()
