from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Hashable, Iterable, List, Mapping

from admin_tables.services.storage import StorageBackend

logger = logging.getLogger(__name__)


class CollectionSource(ABC):
    """
    Data-fetch collaborator: returns a full, unfiltered snapshot of one
    entity collection. No server-side filter or pagination parameters.
    """

    @abstractmethod
    def fetch_collection(self) -> List[Any]:
        pass


class StaticCollectionSource(CollectionSource):
    """Serves a fixed list of rows (fixtures, tests, embedding in other apps)."""

    def __init__(self, rows: Iterable[Any] = ()):
        self._rows = list(rows)

    def fetch_collection(self) -> List[Any]:
        return list(self._rows)

    def replace(self, rows: Iterable[Any]) -> None:
        self._rows = list(rows)


class JsonFileCollectionSource(CollectionSource):
    """
    Reads a JSON array (or {"data": [...]}) of records through a storage
    backend. Also acts as the action layer for the bundled dashboard: records
    are patched in place by id and written back.
    """

    def __init__(self, storage: StorageBackend, path: str, id_field: str = "id"):
        self.storage = storage
        self.path = path
        self.id_field = id_field

    def _read_records(self) -> List[Dict[str, Any]]:
        if not self.storage.exists(self.path):
            logger.warning("Collection file missing; serving empty collection", extra={"path": self.path})
            return []
        raw = json.loads(self.storage.read_bytes(self.path))
        if isinstance(raw, dict):
            raw = raw.get("data", [])
        if not isinstance(raw, list):
            raise ValueError(f"{self.path} must contain a JSON array of records")
        return [r for r in raw if isinstance(r, dict)]

    def fetch_collection(self) -> List[Any]:
        records = self._read_records()
        logger.info("Fetched collection", extra={"path": self.path, "n_rows": len(records)})
        return records

    async def update_entity(self, entity_id: Hashable, changes: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Apply `changes` to the record with the given id and persist the file.
        Raises KeyError if no record has that id.
        """
        records = self._read_records()
        for record in records:
            if str(record.get(self.id_field)) == str(entity_id):
                record.update(changes)
                break
        else:
            raise KeyError(f"No record with {self.id_field}={entity_id!r} in {self.path}")

        self.storage.write_bytes(self.path, json.dumps(records, indent=2).encode("utf-8"))
        return record
