"""Custom exceptions for transaction submission, tracking and persistence."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from validator_tx_manager.models.transaction import Transaction


class TransactionManagerError(Exception):
    """Base exception for transaction lifecycle errors.

    Carries the transaction id/hash (when known) and the underlying cause so
    callers can build user-facing messages without re-deriving state.
    """

    def __init__(
        self,
        message: str,
        *,
        tx_id: str | None = None,
        tx_hash: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.tx_id = tx_id
        self.tx_hash = tx_hash
        self.cause = cause


class MissingRequiredConfigError(TransactionManagerError):
    """Raised when a required configuration value is missing."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Missing required configuration: {key}")
        self.key = key


class ValidationError(TransactionManagerError):
    """Raised for malformed addresses, amounts, chain ids or fee overrides. No network call was made."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        tx_id: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, tx_id=tx_id, cause=cause)
        self.field = field


class EstimationError(TransactionManagerError):
    """Raised when a gas or fee query against the ledger fails."""

    pass


class SubmissionError(TransactionManagerError):
    """Raised when signing fails or the ledger rejects the signed payload.

    The failed transaction has already been recorded in history.
    """

    def __init__(
        self,
        message: str,
        *,
        transaction: Transaction | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message,
            tx_id=transaction.id if transaction is not None else None,
            tx_hash=(transaction.hash or None) if transaction is not None else None,
            cause=cause,
        )
        self.transaction = transaction


ReplacementRefusal = Literal["not_found", "already_terminal", "in_progress"]


class ReplacementNotAllowedError(TransactionManagerError):
    """Raised when cancel/speed-up targets a transaction that is not replaceable."""

    def __init__(self, message: str, *, reason: ReplacementRefusal, tx_id: str) -> None:
        super().__init__(message, tx_id=tx_id)
        self.reason = reason


class PersistenceError(TransactionManagerError):
    """Raised by key-value stores when reading or writing history fails."""

    def __init__(self, message: str, *, key: str | None = None, cause: BaseException | None = None) -> None:
        super().__init__(message, cause=cause)
        self.key = key


class LedgerAPIError(TransactionManagerError):
    """Raised when a request to the validator node fails after retries."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.url = url
        self.status_code = status_code


class LedgerResponseError(LedgerAPIError):
    """Raised when the node answers with a JSON-RPC error object or a malformed result."""

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        code: int | None = None,
        url: str | None = None,
    ) -> None:
        super().__init__(message, url=url)
        self.method = method
        self.code = code
