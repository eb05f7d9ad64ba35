"""Domain models."""

from validator_tx_manager.models.batch import (
    BatchItem,
    BatchItemFailure,
    BatchStatus,
    TransactionBatch,
)
from validator_tx_manager.models.gas_estimate import FeeParameters, GasEstimate
from validator_tx_manager.models.receipt import Receipt
from validator_tx_manager.models.transaction import (
    TERMINAL_STATUSES,
    Transaction,
    TransactionStatus,
    UnsignedTransaction,
)

__all__ = [
    "BatchItem",
    "BatchItemFailure",
    "BatchStatus",
    "FeeParameters",
    "GasEstimate",
    "Receipt",
    "TERMINAL_STATUSES",
    "Transaction",
    "TransactionBatch",
    "TransactionStatus",
    "UnsignedTransaction",
]
