# -*- coding: utf-8 -*-
"""In-memory repository implementations."""

from validator_tx_manager.persistence.repositories.in_memory.pending_transaction_repository import (
    InMemoryPendingTransactionRepository,
)

__all__ = ["InMemoryPendingTransactionRepository"]
