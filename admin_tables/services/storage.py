from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict


class StorageBackend(ABC):
    """
    Abstract key -> bytes storage (local disk, in-memory, browser-like key-value stores).
    Keys are relative, "/"-separated paths.
    """

    @abstractmethod
    def write_bytes(self, path: str, data: bytes) -> None:
        pass

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Raises FileNotFoundError if the key does not exist."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass


class LocalFileSystemStorage(StorageBackend):
    """
    Local filesystem implementation rooted at one directory.
    """

    def __init__(self, root: Path):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, path: str) -> Path:
        # Prevent path traversal out of root
        full_path = (self.root / path).resolve()
        if full_path != self.root and self.root not in full_path.parents:
            raise ValueError(f"Access denied: {path}")
        return full_path

    def write_bytes(self, path: str, data: bytes) -> None:
        p = self._resolve(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        # Write-then-rename
        tmp = p.with_name(p.name + ".tmp")
        tmp.write_bytes(data)
        tmp.replace(p)

    def read_bytes(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()


class InMemoryStorage(StorageBackend):
    """Process-local storage, used for tests and for ephemeral sessions."""

    def __init__(self, initial: Dict[str, bytes] | None = None):
        self._data: Dict[str, bytes] = dict(initial or {})

    def write_bytes(self, path: str, data: bytes) -> None:
        self._data[path] = bytes(data)

    def read_bytes(self, path: str) -> bytes:
        try:
            return self._data[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def exists(self, path: str) -> bool:
        return path in self._data
