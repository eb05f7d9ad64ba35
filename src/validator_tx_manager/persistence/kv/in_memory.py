# -*- coding: utf-8 -*-
"""In-memory key-value store (tests and ephemeral sessions)."""

from __future__ import annotations

from typing import Optional

from validator_tx_manager.persistence.kv.base import IKeyValueStore


class InMemoryKeyValueStore(IKeyValueStore):
    """In-memory implementation of IKeyValueStore."""

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._store: dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._store.get(key)

    async def set(self, key: str, blob: bytes) -> None:
        self._store[key] = bytes(blob)

    def keys(self) -> list[str]:
        """Stored keys (for inspection in tests)."""
        return list(self._store)
