"""Transaction lifecycle services."""

from validator_tx_manager.services.batch import BatchCoordinator
from validator_tx_manager.services.fees import FeeEstimator
from validator_tx_manager.services.history import HistoryFilter, TransactionHistoryStore
from validator_tx_manager.services.nonce import NonceTracker
from validator_tx_manager.services.notifications import TransactionStatusNotifier
from validator_tx_manager.services.replacement import ReplacementEngine
from validator_tx_manager.services.state import TransactionStateStore
from validator_tx_manager.services.submission import SubmitOptions, TransactionSubmitter
from validator_tx_manager.services.transaction_manager import TransactionManager
from validator_tx_manager.services.watchers import WatcherPool

__all__ = [
    "BatchCoordinator",
    "FeeEstimator",
    "HistoryFilter",
    "NonceTracker",
    "ReplacementEngine",
    "SubmitOptions",
    "TransactionHistoryStore",
    "TransactionManager",
    "TransactionStateStore",
    "TransactionStatusNotifier",
    "TransactionSubmitter",
    "WatcherPool",
]
