from __future__ import annotations

import json
import logging
from typing import Any, Optional

from admin_tables.core.fields import TableConfig
from admin_tables.core.filter_state import (
    FilterState,
    default_filter_state,
    sanitise_for_config,
)
from admin_tables.services.storage import StorageBackend

logger = logging.getLogger(__name__)


def _storage_path(key: str) -> str:
    return f"{key}.json"


class _JsonPreference:
    """
    Shared load/persist plumbing. A missing or unreadable blob is "no saved
    preference": it is logged and reported as None, never raised.
    """

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def _read(self, key: str) -> Optional[Any]:
        path = _storage_path(key)
        try:
            if not self.storage.exists(path):
                return None
            return json.loads(self.storage.read_bytes(path))
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable preference %s", key, exc_info=True)
            return None

    def _write(self, key: str, payload: Any) -> None:
        try:
            data = json.dumps(payload, sort_keys=True).encode("utf-8")
            self.storage.write_bytes(_storage_path(key), data)
        except Exception:
            logger.exception("Failed to persist preference %s", key)


class FilterStateStore(_JsonPreference):
    """
    Persists the filter/sort state of each table under its storage_key.
    Saved synchronously after every mutation, never debounced.
    """

    def load(self, config: TableConfig) -> FilterState:
        defaults = default_filter_state(config)
        raw = self._read(config.storage_key)
        if raw is None:
            return defaults
        try:
            state = FilterState.from_dict(raw, defaults=defaults)
        except (TypeError, ValueError):
            logger.warning(
                "Saved filter state does not match schema; using defaults",
                extra={"table_id": config.table_id, "storage_key": config.storage_key},
            )
            return defaults
        return sanitise_for_config(state, config)

    def save(self, config: TableConfig, state: FilterState) -> None:
        self._write(config.storage_key, state.to_dict())

    @staticmethod
    def update(state: FilterState, **partial: Any) -> FilterState:
        return state.with_changes(**partial)


class PageSizeStore(_JsonPreference):
    """
    Persists only the page size preference; the current page and total are
    recreated on every load.
    """

    def load(self, config: TableConfig) -> int:
        raw = self._read(config.pagination_storage_key)
        size = raw.get("pageSize") if isinstance(raw, dict) else None
        if isinstance(size, int) and not isinstance(size, bool) and size in config.page_size_options:
            return size
        if raw is not None:
            logger.warning(
                "Saved page size is invalid; using default",
                extra={"table_id": config.table_id, "saved": raw},
            )
        return config.default_page_size

    def save(self, config: TableConfig, page_size: int) -> None:
        self._write(config.pagination_storage_key, {"pageSize": page_size})
