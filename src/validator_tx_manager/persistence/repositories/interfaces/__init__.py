# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/."""

from validator_tx_manager.persistence.repositories.interfaces.pending_transaction_repository import (
    IPendingTransactionRepository,
)

__all__ = ["IPendingTransactionRepository"]
