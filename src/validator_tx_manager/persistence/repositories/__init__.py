# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, etc.)."""

from validator_tx_manager.persistence.repositories.in_memory import (
    InMemoryPendingTransactionRepository,
)
from validator_tx_manager.persistence.repositories.interfaces import (
    IPendingTransactionRepository,
)

__all__ = [
    "IPendingTransactionRepository",
    "InMemoryPendingTransactionRepository",
]
