"""Exceptions subpackage."""

from validator_tx_manager.exceptions.exceptions import (
    EstimationError,
    LedgerAPIError,
    LedgerResponseError,
    MissingRequiredConfigError,
    PersistenceError,
    ReplacementNotAllowedError,
    SubmissionError,
    TransactionManagerError,
    ValidationError,
)

__all__ = [
    "EstimationError",
    "LedgerAPIError",
    "LedgerResponseError",
    "MissingRequiredConfigError",
    "PersistenceError",
    "ReplacementNotAllowedError",
    "SubmissionError",
    "TransactionManagerError",
    "ValidationError",
]
