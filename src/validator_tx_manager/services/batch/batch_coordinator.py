# -*- coding: utf-8 -*-
"""BatchCoordinator: submit an ordered group of transactions on contiguous nonces."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional
from uuid import uuid4

import structlog
from cachetools import LRUCache
from structlog.contextvars import bound_contextvars

from validator_tx_manager.events.transactions import BatchSubmittedEvent
from validator_tx_manager.exceptions import TransactionManagerError, ValidationError
from validator_tx_manager.models.batch import BatchItem, BatchItemFailure, TransactionBatch
from validator_tx_manager.models.transaction import Transaction
from validator_tx_manager.services.submission.dto import SubmitOptions
from validator_tx_manager.utils.validation import is_hex_address, mask_address

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from validator_tx_manager.config import Settings
    from validator_tx_manager.services.nonce.nonce_tracker import NonceTracker
    from validator_tx_manager.services.state.transaction_state_store import TransactionStateStore
    from validator_tx_manager.services.submission.transaction_submitter import TransactionSubmitter

FailurePolicy = Literal["abort", "continue"]

SPED_UP_REASON = "replaced"


class BatchCoordinator:
    """Submits batch items one after another with explicit nonces k, k+1, ...

    The start nonce is resolved once per batch. An item that fails does not
    consume a nonce, so members stay contiguous. Batches from the same
    sender never interleave. Recent batches are kept in a bounded LRU for
    get_batch().
    """

    def __init__(
        self,
        submitter: "TransactionSubmitter",
        nonce_tracker: "NonceTracker",
        state_store: "TransactionStateStore",
        settings: "Settings",
        event_bus: Optional[Any] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._submitter = submitter
        self._nonces = nonce_tracker
        self._state = state_store
        self._settings = settings
        self._event_bus: Optional["EventBus"] = event_bus
        self._batches: LRUCache[str, TransactionBatch] = LRUCache(
            maxsize=max(1, settings.batch.max_tracked_batches)
        )
        self._sender_locks: dict[str, asyncio.Lock] = {}
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _lock_for(self, sender: str) -> asyncio.Lock:
        key = sender.strip().lower()
        lock = self._sender_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._sender_locks[key] = lock
        return lock

    async def submit_batch(
        self,
        sender: str,
        items: Sequence[BatchItem],
        *,
        failure_policy: Optional[FailurePolicy] = None,
    ) -> TransactionBatch:
        """Submit items in order from sender.

        Any nonce set in an item's options is replaced by the batch's own
        sequence. Under the abort policy the first failed item ends the batch;
        under continue every item is attempted and failures are tallied.

        Returns:
            The batch: FAILED if any item failed, else PROCESSING.

        Raises:
            ValidationError: Empty batch, bad sender or unknown policy.
        """
        if not items:
            raise ValidationError("A batch needs at least one item", field="items")
        if not is_hex_address(sender):
            raise ValidationError(f"Invalid sender address: {sender!r}", field="sender")
        policy = failure_policy or self._settings.batch.failure_policy
        if policy not in ("abort", "continue"):
            raise ValidationError(f"Unknown batch failure policy: {policy!r}", field="failure_policy")

        batch_id = uuid4().hex
        members: list[Transaction] = []
        failures: list[BatchItemFailure] = []
        with bound_contextvars(batch_id=batch_id, sender_masked=mask_address(sender)):
            async with self._lock_for(sender):
                next_nonce = await self._nonces.next_nonce(sender)
                self._logger.debug(
                    "batch_started",
                    item_count=len(items),
                    start_nonce=next_nonce,
                    failure_policy=policy,
                )
                for index, item in enumerate(items):
                    options = replace(item.options or SubmitOptions(), nonce=next_nonce)
                    try:
                        tx = await self._submitter.submit(
                            sender,
                            item.recipient,
                            item.value,
                            item.data,
                            options,
                        )
                    except TransactionManagerError as e:
                        failures.append(
                            BatchItemFailure(
                                index=index,
                                error=e.message,
                                error_type=type(e).__name__,
                                tx_id=e.tx_id,
                            )
                        )
                        self._logger.warning(
                            "batch_item_failed",
                            item_index=index,
                            nonce=next_nonce,
                            error_type=type(e).__name__,
                            error_message=e.message,
                        )
                        if policy == "abort":
                            break
                        continue
                    members.append(tx)
                    next_nonce += 1

            batch = TransactionBatch.create(
                sender,
                members,
                failures,
                requested_count=len(items),
                id=batch_id,
            )
            self._batches[batch.id] = batch
            self._logger.info(
                "batch_submitted",
                status=batch.status.value,
                submitted_count=len(batch.transactions),
                failed_count=len(batch.failures),
                nonces=batch.nonces,
                total_value=str(batch.total_value),
                total_fee=str(batch.total_fee),
            )
        self._emit_submitted(batch)
        return batch

    async def get_batch(self, batch_id: str) -> Optional[TransactionBatch]:
        """Return the batch with member states (and status) refreshed, or None if unknown or evicted.

        A member that was sped up is represented by its replacement, which
        holds the same nonce. A cancelled member stays failed.
        """
        batch = self._batches.get(batch_id)
        if batch is None:
            return None
        latest: dict[str, Transaction] = {}
        for tx in batch.transactions:
            current = await self._current_state(tx)
            if current is not None:
                latest[tx.id] = current
        refreshed = batch.with_member_states(latest)
        self._batches[batch_id] = refreshed
        return refreshed

    async def _current_state(self, tx: Transaction) -> Optional[Transaction]:
        current = await self._state.find(tx.id)
        seen = {tx.id}
        while (
            current is not None
            and current.error == SPED_UP_REASON
            and current.replaced_by
            and current.replaced_by not in seen
        ):
            seen.add(current.replaced_by)
            successor = await self._state.find(current.replaced_by)
            if successor is None:
                break
            current = successor
        return current

    def _emit_submitted(self, batch: TransactionBatch) -> None:
        if self._event_bus is None:
            return
        self._event_bus.dispatch(
            BatchSubmittedEvent(
                batch_id=batch.id,
                sender=batch.sender,
                status=batch.status.value,
                requested_count=batch.requested_count,
                submitted_count=len(batch.transactions),
                failed_count=len(batch.failures),
                total_value=str(batch.total_value),
                total_fee=str(batch.total_fee),
            )
        )
