# -*- coding: utf-8 -*-
"""Key-value stores for history persistence."""

from validator_tx_manager.persistence.kv.base import IKeyValueStore
from validator_tx_manager.persistence.kv.file_store import FileKeyValueStore
from validator_tx_manager.persistence.kv.in_memory import InMemoryKeyValueStore

__all__ = ["IKeyValueStore", "FileKeyValueStore", "InMemoryKeyValueStore"]
