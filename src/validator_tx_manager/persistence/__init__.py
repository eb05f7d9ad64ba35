"""Persistence layer (key-value stores, repositories)."""

from validator_tx_manager.persistence.kv import (
    FileKeyValueStore,
    IKeyValueStore,
    InMemoryKeyValueStore,
)
from validator_tx_manager.persistence.repositories import (
    InMemoryPendingTransactionRepository,
    IPendingTransactionRepository,
)

__all__ = [
    "IKeyValueStore",
    "FileKeyValueStore",
    "InMemoryKeyValueStore",
    "IPendingTransactionRepository",
    "InMemoryPendingTransactionRepository",
]
