"""Pending/history state transitions."""

from validator_tx_manager.services.state.transaction_state_store import (
    CONFIRMATION_TIMEOUT_ERROR,
    REVERTED_ERROR,
    TransactionStateStore,
)

__all__ = ["CONFIRMATION_TIMEOUT_ERROR", "REVERTED_ERROR", "TransactionStateStore"]
