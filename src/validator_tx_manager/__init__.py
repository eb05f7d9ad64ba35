"""Validator transaction manager: submit, watch, replace and batch ledger transactions."""

from validator_tx_manager.config import Settings, get_settings
from validator_tx_manager.DI import Container
from validator_tx_manager.models import (
    BatchItem,
    Transaction,
    TransactionBatch,
    TransactionStatus,
)
from validator_tx_manager.services import SubmitOptions, TransactionManager

__version__ = "0.1.0"
__all__ = [
    "BatchItem",
    "Container",
    "Settings",
    "SubmitOptions",
    "Transaction",
    "TransactionBatch",
    "TransactionManager",
    "TransactionStatus",
    "get_settings",
]
