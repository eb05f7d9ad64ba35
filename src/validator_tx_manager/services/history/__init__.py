"""Transaction history."""

from validator_tx_manager.services.history.history_store import (
    ExportFormat,
    HistoryFilter,
    TransactionHistoryStore,
)

__all__ = ["ExportFormat", "HistoryFilter", "TransactionHistoryStore"]
