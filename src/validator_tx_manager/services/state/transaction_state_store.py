# -*- coding: utf-8 -*-
"""TransactionStateStore: the single place where pending and history state change."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional

import structlog

from validator_tx_manager.events.transactions import TransactionStateChangedEvent
from validator_tx_manager.models.transaction import Transaction, TransactionStatus

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from validator_tx_manager.config import Settings
    from validator_tx_manager.models.receipt import Receipt
    from validator_tx_manager.persistence.repositories.interfaces import (
        IPendingTransactionRepository,
    )
    from validator_tx_manager.services.history.history_store import TransactionHistoryStore

SupersedeReason = Literal["cancelled", "replaced"]
StateChangeReason = Literal[
    "submitted",
    "confirmed",
    "reverted",
    "submission_failed",
    "cancelled",
    "replaced",
    "confirmation_timeout",
]

CONFIRMATION_TIMEOUT_ERROR = "confirmation timeout"
REVERTED_ERROR = "execution reverted"


class TransactionStateStore:
    """Serializes every transition of pending transactions and history behind one asyncio.Lock.

    A transaction is in exactly one place: the pending repository while it
    waits for a receipt, history once it is terminal. Each transition
    dispatches TransactionStateChangedEvent after the lock is released.
    """

    def __init__(
        self,
        pending_repository: "IPendingTransactionRepository",
        history_store: "TransactionHistoryStore",
        settings: "Settings",
        event_bus: Optional[Any] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._pending = pending_repository
        self._history = history_store
        self._settings = settings
        self._event_bus: Optional["EventBus"] = event_bus
        self._lock = asyncio.Lock()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def history(self) -> "TransactionHistoryStore":
        return self._history

    async def add_pending(
        self,
        tx: Transaction,
        *,
        supersedes: Optional[str] = None,
        reason: SupersedeReason = "replaced",
    ) -> Optional[Transaction]:
        """Record a submitted transaction as pending.

        When supersedes names a pending transaction, that transaction is
        marked failed with `reason`, linked to tx and moved to history in the
        same critical section.

        Returns:
            The superseded transaction in its failed state, or None.

        Raises:
            ValueError: If tx has no hash or is not pending.
        """
        if not tx.is_submitted or not tx.is_pending:
            raise ValueError(f"transaction {tx.id} must be submitted and pending")
        superseded: Optional[Transaction] = None
        async with self._lock:
            if supersedes is not None:
                original = await self._pending.remove(supersedes)
                if original is not None:
                    superseded = original.with_failed(reason, replaced_by=tx.id)
                    await self._history.record(superseded)
                else:
                    self._logger.warning(
                        "superseded_not_pending",
                        tx_id=supersedes,
                        replacement_tx_id=tx.id,
                    )
            await self._pending.save(tx)

        if superseded is not None:
            self._emit(superseded, previous=TransactionStatus.PENDING, reason=reason)
        self._emit(tx, previous=None, reason="submitted")
        return superseded

    async def record_failed(self, tx: Transaction) -> None:
        """Move a transaction that never reached the ledger straight into history.

        Raises:
            ValueError: If tx is not failed.
        """
        if tx.status != TransactionStatus.FAILED:
            raise ValueError(f"transaction {tx.id} must be failed to be recorded as such")
        async with self._lock:
            await self._pending.remove(tx.id)
            await self._history.record(tx)
        self._emit(tx, previous=None, reason="submission_failed")

    async def apply_receipt(self, receipt: "Receipt") -> Optional[Transaction]:
        """Promote the pending transaction matching receipt to confirmed or failed (reverted).

        Receipts for hashes that are no longer pending (replaced, already
        resolved) are discarded.

        Returns:
            The terminal transaction, or None if the receipt was discarded.
        """
        async with self._lock:
            tx = await self._pending.get_by_hash(receipt.transaction_hash)
            if tx is None:
                self._logger.debug("receipt_discarded", tx_hash=receipt.transaction_hash)
                return None
            await self._pending.remove(tx.id)
            if receipt.succeeded:
                updated = tx.with_confirmed(receipt.block_number, receipt.confirmations)
            else:
                updated = tx.with_failed(REVERTED_ERROR, block_number=receipt.block_number)
            await self._history.record(updated)

        self._emit(
            updated,
            previous=TransactionStatus.PENDING,
            reason="confirmed" if receipt.succeeded else "reverted",
        )
        return updated

    async def handle_watch_exhausted(self, tx_hash: str) -> Optional[Transaction]:
        """Apply watcher.timeout_policy to a transaction whose watcher gave up.

        keep_pending leaves it pending (it can be re-watched or replaced);
        fail marks it failed with "confirmation timeout" and moves it to history.

        Returns:
            The failed transaction under the fail policy, else None.
        """
        if self._settings.watcher.timeout_policy == "keep_pending":
            self._logger.info("watch_exhausted_kept_pending", tx_hash=tx_hash)
            return None
        async with self._lock:
            tx = await self._pending.get_by_hash(tx_hash)
            if tx is None:
                return None
            await self._pending.remove(tx.id)
            updated = tx.with_failed(CONFIRMATION_TIMEOUT_ERROR)
            await self._history.record(updated)
        self._emit(updated, previous=TransactionStatus.PENDING, reason="confirmation_timeout")
        return updated

    async def clear_history(self) -> None:
        """Drop all history entries. Pending transactions are untouched."""
        async with self._lock:
            await self._history.clear()

    async def get_pending(self, tx_id: str) -> Optional[Transaction]:
        return await self._pending.get(tx_id)

    async def get_pending_by_hash(self, tx_hash: str) -> Optional[Transaction]:
        return await self._pending.get_by_hash(tx_hash)

    async def pending_snapshot(self) -> list[Transaction]:
        return await self._pending.list_all()

    async def find(self, id_or_hash: str) -> Optional[Transaction]:
        """Look a transaction up by id or hash, pending first, then history."""
        tx = await self._pending.get(id_or_hash)
        if tx is None:
            tx = await self._pending.get_by_hash(id_or_hash)
        if tx is None:
            tx = self._history.get(id_or_hash) or self._history.get_by_hash(id_or_hash)
        return tx

    def _emit(
        self,
        tx: Transaction,
        *,
        previous: Optional[TransactionStatus],
        reason: StateChangeReason,
    ) -> None:
        self._logger.info(
            "transaction_state_changed",
            tx_id=tx.id,
            tx_hash=tx.hash or None,
            nonce=tx.nonce,
            status=tx.status.value,
            reason=reason,
            block_number=tx.block_number,
            error_message=tx.error,
        )
        if self._event_bus is None:
            return
        event = TransactionStateChangedEvent(
            tx_id=tx.id,
            tx_hash=tx.hash,
            sender=tx.sender,
            recipient=tx.recipient,
            nonce=tx.nonce,
            previous_status=previous.value if previous is not None else None,
            status=tx.status.value,
            reason=reason,
            block_number=tx.block_number,
            fee=str(tx.fee),
            error_message=tx.error,
            replaced_by=tx.replaced_by,
        )
        self._event_bus.dispatch(event)
