"""Abstract interface for the key-value store backing transaction history."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class IKeyValueStore(ABC):
    """Opaque blob storage keyed by string (local file, browser storage bridge, etc.)."""

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the blob stored under key, or None if absent.

        Raises:
            PersistenceError: If the backend cannot be read.
        """
        ...

    @abstractmethod
    async def set(self, key: str, blob: bytes) -> None:
        """Store blob under key, replacing any previous value.

        Raises:
            PersistenceError: If the backend cannot be written.
        """
        ...
