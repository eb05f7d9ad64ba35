# -*- coding: utf-8 -*-
"""TransactionManager: the public entry point of the transaction lifecycle core."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

import structlog

from validator_tx_manager.exceptions import ValidationError
from validator_tx_manager.models.gas_estimate import GasEstimate
from validator_tx_manager.services.history.history_store import HistoryFilter
from validator_tx_manager.utils.units import to_base_units
from validator_tx_manager.utils.validation import is_hex_address, is_tx_hash, parse_payload

if TYPE_CHECKING:
    from decimal import Decimal

    from validator_tx_manager.clients.ledger.base import ILedgerClient
    from validator_tx_manager.config import Settings
    from validator_tx_manager.models.batch import BatchItem, TransactionBatch
    from validator_tx_manager.models.transaction import Transaction
    from validator_tx_manager.services.batch.batch_coordinator import BatchCoordinator, FailurePolicy
    from validator_tx_manager.services.fees.fee_estimator import FeeEstimator
    from validator_tx_manager.services.history.history_store import TransactionHistoryStore
    from validator_tx_manager.services.replacement.replacement_engine import Multiplier, ReplacementEngine
    from validator_tx_manager.services.state.transaction_state_store import TransactionStateStore
    from validator_tx_manager.services.submission.dto import SubmitOptions
    from validator_tx_manager.services.submission.transaction_submitter import TransactionSubmitter
    from validator_tx_manager.services.watchers.watcher_pool import (
        ExhaustedCallback,
        ResolvedCallback,
        WatcherPool,
    )


class TransactionManager:
    """Facade over submission, replacement, batching, watching and history.

    Call start() before use (loads persisted history) and shutdown() when
    done (stops watchers, waits for side effects, saves history). Also usable
    as an async context manager.
    """

    def __init__(
        self,
        submitter: "TransactionSubmitter",
        replacement_engine: "ReplacementEngine",
        batch_coordinator: "BatchCoordinator",
        fee_estimator: "FeeEstimator",
        watcher_pool: "WatcherPool",
        state_store: "TransactionStateStore",
        history_store: "TransactionHistoryStore",
        settings: "Settings",
        *,
        ledger_client: Optional["ILedgerClient"] = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._submitter = submitter
        self._replacement = replacement_engine
        self._batches = batch_coordinator
        self._fees = fee_estimator
        self._watchers = watcher_pool
        self._state = state_store
        self._history = history_store
        self._settings = settings
        self._ledger = ledger_client
        self._started = False
        self._sweep_task: Optional[asyncio.Task[None]] = None
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def start(self, user_id: Optional[str] = None) -> None:
        """Load persisted history for user_id (defaults to history.user_id).

        Also starts the pending sweep when watcher.sweep_interval_seconds is set.
        """
        loaded = await self._history.load(user_id)
        self._started = True
        self.start_sweep()
        self._logger.info("transaction_manager_started", history_entries=loaded, user_id=self._history.user_id)

    async def shutdown(self) -> None:
        """Stop every watcher, wait for pending fee reports and persist history."""
        await self.stop_sweep()
        await self._watchers.stop_all()
        await self._submitter.wait_for_side_effects()
        await self._history.save()
        self._started = False
        self._logger.info("transaction_manager_stopped")

    async def __aenter__(self) -> TransactionManager:
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.shutdown()

    async def submit(
        self,
        sender: str,
        recipient: str,
        value: Union[int, str, "Decimal"],
        data: Optional[Union[bytes, str]] = None,
        options: Optional["SubmitOptions"] = None,
    ) -> "Transaction":
        """Submit one transfer or call; see TransactionSubmitter.submit."""
        return await self._submitter.submit(sender, recipient, value, data, options)

    async def submit_batch(
        self,
        sender: str,
        items: Sequence["BatchItem"],
        *,
        failure_policy: Optional["FailurePolicy"] = None,
    ) -> "TransactionBatch":
        return await self._batches.submit_batch(sender, items, failure_policy=failure_policy)

    async def cancel(self, tx_id: str, multiplier: Optional["Multiplier"] = None) -> "Transaction":
        return await self._replacement.cancel(tx_id, multiplier)

    async def speed_up(self, tx_id: str, multiplier: Optional["Multiplier"] = None) -> "Transaction":
        return await self._replacement.speed_up(tx_id, multiplier)

    def get_history(
        self,
        address: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list["Transaction"]:
        """Newest-first terminal transactions, optionally filtered by sender/recipient address."""
        return self._history.query(HistoryFilter(address=address, limit=limit, offset=offset))

    async def estimate_fee(
        self,
        sender: str,
        recipient: str,
        value: Union[int, str, "Decimal"],
        data: Optional[Union[bytes, str]] = None,
    ) -> GasEstimate:
        """Gas limit and pricing for a prospective transaction.

        Raises:
            ValidationError: Malformed address, value or payload.
            EstimationError: The ledger could not be queried.
        """
        if not is_hex_address(sender):
            raise ValidationError(f"Invalid sender address: {sender!r}", field="sender")
        if not is_hex_address(recipient):
            raise ValidationError(f"Invalid recipient address: {recipient!r}", field="recipient")
        try:
            amount = to_base_units(value, self._settings.ledger.decimals)
            payload = parse_payload(data)
        except ValueError as e:
            raise ValidationError(str(e), cause=e) from e
        return await self._fees.estimate(sender, recipient, amount, payload)

    def watch(
        self,
        tx_hash: str,
        on_resolved: Optional["ResolvedCallback"] = None,
        on_exhausted: Optional["ExhaustedCallback"] = None,
    ) -> bool:
        """Watch tx_hash for a receipt; callbacks run after the state update.

        Returns:
            True if a new watcher was started, False if the hash was already watched
            (the callbacks are still attached).
        """
        started = False
        if not self._watchers.is_watching(tx_hash):
            started = self._watchers.watch(
                tx_hash,
                on_resolved=self._state.apply_receipt,
                on_exhausted=self._state.handle_watch_exhausted,
            )
        if on_resolved is not None or on_exhausted is not None:
            self._watchers.watch(tx_hash, on_resolved=on_resolved, on_exhausted=on_exhausted)
        return started

    def stop_watching(self, tx_hash: str) -> bool:
        return self._watchers.stop(tx_hash)

    async def rewatch_pending(self) -> int:
        """Start a watcher for every pending transaction that has none (e.g. after exhaustion).

        Returns:
            Number of watchers started.
        """
        started = 0
        for tx in await self._state.pending_snapshot():
            if tx.hash and not self._watchers.is_watching(tx.hash):
                if self.watch(tx.hash):
                    started += 1
        if started:
            self._logger.info("pending_rewatched", count=started)
        return started

    def start_sweep(self, interval_seconds: Optional[float] = None) -> bool:
        """Run rewatch_pending() every interval_seconds (defaults to watcher.sweep_interval_seconds).

        Returns:
            False if the sweep is disabled or already running.
        """
        interval = interval_seconds if interval_seconds is not None else self._settings.watcher.sweep_interval_seconds
        if interval is None or (self._sweep_task is not None and not self._sweep_task.done()):
            return False
        self._sweep_task = asyncio.create_task(self._sweep_loop(interval))
        self._logger.debug("pending_sweep_started", sweep_interval_seconds=interval)
        return True

    async def stop_sweep(self) -> None:
        task = self._sweep_task
        self._sweep_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    @property
    def is_sweeping(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                await self.rewatch_pending()
            except Exception as e:
                self._logger.warning(
                    "pending_sweep_failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )

    async def get_transaction(self, id_or_hash: str) -> Optional["Transaction"]:
        """Find a tracked transaction by id or hash.

        When nothing is tracked under a hash and a ledger client was given, the
        node is asked instead. Such a transaction is returned but not tracked.

        Raises:
            LedgerAPIError: If the node lookup fails.
        """
        tx = await self._state.find(id_or_hash)
        if tx is not None or self._ledger is None or not is_tx_hash(id_or_hash):
            return tx
        tx = await self._ledger.get_transaction(id_or_hash)
        self._logger.debug("transaction_fetched_from_ledger", tx_hash=id_or_hash, found=tx is not None)
        return tx

    async def get_pending(self) -> list["Transaction"]:
        return await self._state.pending_snapshot()

    async def get_batch(self, batch_id: str) -> Optional["TransactionBatch"]:
        return await self._batches.get_batch(batch_id)

    def export_history(self, fmt: str = "json") -> str:
        return self._history.export(fmt)

    async def clear_history(self) -> None:
        await self._state.clear_history()
