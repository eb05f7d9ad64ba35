# -*- coding: utf-8 -*-
"""TransactionSubmitter: validate, price, sign and broadcast one transaction."""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional, Union

import structlog
from structlog.contextvars import bound_contextvars

from validator_tx_manager.exceptions import EstimationError, SubmissionError, ValidationError
from validator_tx_manager.models.gas_estimate import FeeParameters
from validator_tx_manager.models.transaction import Transaction
from validator_tx_manager.services.submission.dto import SubmitOptions
from validator_tx_manager.utils.units import to_base_units
from validator_tx_manager.utils.validation import is_hex_address, mask_address, parse_payload

if TYPE_CHECKING:
    from validator_tx_manager.clients.fee_distribution.base import IFeeDistributor
    from validator_tx_manager.clients.ledger.base import ILedgerClient
    from validator_tx_manager.config import Settings
    from validator_tx_manager.services.fees.fee_estimator import FeeEstimator
    from validator_tx_manager.services.nonce.nonce_tracker import NonceTracker
    from validator_tx_manager.services.state.transaction_state_store import (
        SupersedeReason,
        TransactionStateStore,
    )
    from validator_tx_manager.services.watchers.watcher_pool import WatcherPool
    from validator_tx_manager.signing.base import ISigner

Amount = Union[int, str, Decimal]


class TransactionSubmitter:
    """Turns a transfer or call request into a pending, watched Transaction.

    Submission is attempted exactly once. A signer or ledger failure records
    the transaction as failed in history and raises SubmissionError; nothing
    is resubmitted automatically.
    """

    def __init__(
        self,
        ledger_client: "ILedgerClient",
        signer: "ISigner",
        nonce_tracker: "NonceTracker",
        fee_estimator: "FeeEstimator",
        state_store: "TransactionStateStore",
        watcher_pool: "WatcherPool",
        settings: "Settings",
        fee_distributor: Optional["IFeeDistributor"] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ledger = ledger_client
        self._signer = signer
        self._nonces = nonce_tracker
        self._fees = fee_estimator
        self._state = state_store
        self._watchers = watcher_pool
        self._settings = settings
        self._fee_distributor = fee_distributor
        self._side_effects: set[asyncio.Task[None]] = set()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def submit(
        self,
        sender: str,
        recipient: str,
        value: Amount,
        data: Optional[Union[bytes, str]] = None,
        options: Optional[SubmitOptions] = None,
        *,
        supersedes: Optional[str] = None,
        supersede_reason: "SupersedeReason" = "replaced",
    ) -> Transaction:
        """Submit one transaction and start watching it.

        Args:
            sender: 0x address the signer signs for.
            recipient: 0x destination address.
            value: Smallest units (int) or whole coins (str / Decimal).
            data: Optional call payload (bytes or 0x-hex).
            options: Nonce, gas and chain overrides.
            supersedes: Id of a pending transaction this one replaces (same nonce).
            supersede_reason: How the superseded transaction is marked failed.

        Returns:
            The pending Transaction carrying its ledger hash.

        Raises:
            ValidationError: Malformed input; no network call was made.
            EstimationError: Fee parameters could not be fetched; nothing recorded.
            SubmissionError: Signing or broadcast failed; the failed transaction is in history.
        """
        options = options or SubmitOptions()
        amount, payload, chain_id = self._validate(sender, recipient, value, data, options)

        with bound_contextvars(
            sender_masked=mask_address(sender),
            recipient_masked=mask_address(recipient),
        ):
            nonce = await self._nonces.next_nonce(sender, override=options.nonce)
            gas_limit = options.gas_limit or await self._resolve_gas_limit(sender, recipient, amount, payload)
            fees = await self._resolve_fees(options)
            tx = Transaction.create(
                sender,
                recipient,
                amount,
                chain_id=chain_id,
                nonce=nonce,
                gas_limit=gas_limit,
                gas_price=fees.gas_price,
                max_fee_per_gas=fees.max_fee_per_gas,
                max_priority_fee_per_gas=fees.max_priority_fee_per_gas,
                data=payload,
            )

            with bound_contextvars(tx_id=tx.id, nonce=tx.nonce):
                try:
                    signed = await self._signer.sign(tx.to_unsigned())
                    tx_hash = await self._ledger.submit(signed)
                except Exception as e:
                    failed = tx.with_failed(str(e) or type(e).__name__)
                    await self._state.record_failed(failed)
                    self._logger.warning(
                        "transaction_submission_failed",
                        error_type=type(e).__name__,
                        error_message=failed.error,
                    )
                    raise SubmissionError(
                        f"Transaction submission failed: {failed.error}",
                        transaction=failed,
                        cause=e,
                    ) from e

                submitted = tx.with_hash(tx_hash)
                superseded = await self._state.add_pending(
                    submitted,
                    supersedes=supersedes,
                    reason=supersede_reason,
                )
                if superseded is not None and superseded.hash:
                    self._watchers.stop(superseded.hash)
                self._watchers.watch(
                    submitted.hash,
                    on_resolved=self._state.apply_receipt,
                    on_exhausted=self._state.handle_watch_exhausted,
                )
                self._schedule_fee_distribution(submitted)
                self._logger.info(
                    "transaction_submitted",
                    tx_hash=submitted.hash,
                    gas_limit=submitted.gas_limit,
                    fee=str(submitted.fee),
                    supersedes=supersedes,
                )
                return submitted

    async def wait_for_side_effects(self) -> None:
        """Wait for outstanding fee-distribution tasks."""
        if self._side_effects:
            await asyncio.gather(*list(self._side_effects), return_exceptions=True)

    def _validate(
        self,
        sender: str,
        recipient: str,
        value: Amount,
        data: Optional[Union[bytes, str]],
        options: SubmitOptions,
    ) -> tuple[int, Optional[bytes], int]:
        """Check every input before any network call. Returns (amount, payload, chain_id)."""
        if not is_hex_address(sender):
            raise ValidationError(f"Invalid sender address: {sender!r}", field="sender")
        if not is_hex_address(recipient):
            raise ValidationError(f"Invalid recipient address: {recipient!r}", field="recipient")
        try:
            amount = to_base_units(value, self._settings.ledger.decimals)
        except ValueError as e:
            raise ValidationError(f"Invalid value: {e}", field="value", cause=e) from e
        try:
            payload = parse_payload(data)
        except ValueError as e:
            raise ValidationError(f"Invalid payload: {e}", field="data", cause=e) from e

        chain_id = options.chain_id if options.chain_id is not None else self._settings.ledger.chain_id
        if chain_id is None:
            raise ValidationError("chain_id is not configured (set LEDGER__CHAIN_ID)", field="chain_id")
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 1:
            raise ValidationError(f"Invalid chain_id: {chain_id!r}", field="chain_id")

        if options.gas_limit is not None and (isinstance(options.gas_limit, bool) or options.gas_limit <= 0):
            raise ValidationError(f"Invalid gas_limit: {options.gas_limit!r}", field="gas_limit")
        if options.has_fee_override:
            self._fee_override(options)
        return amount, payload, chain_id

    @staticmethod
    def _fee_override(options: SubmitOptions) -> FeeParameters:
        """Caller-supplied fee fields as FeeParameters.

        Raises:
            ValidationError: If the fields mix fee models, are incomplete or not positive.
        """
        fields = (options.gas_price, options.max_fee_per_gas, options.max_priority_fee_per_gas)
        if any(f is not None and (isinstance(f, bool) or f < 0) for f in fields):
            raise ValidationError("Fee overrides must be non-negative integers", field="fees")
        try:
            params = FeeParameters(
                gas_price=options.gas_price,
                max_fee_per_gas=options.max_fee_per_gas,
                max_priority_fee_per_gas=options.max_priority_fee_per_gas,
            )
        except ValueError as e:
            raise ValidationError(f"Inconsistent fee overrides: {e}", field="fees", cause=e) from e
        if params.is_eip1559 and (params.max_priority_fee_per_gas or 0) > (params.max_fee_per_gas or 0):
            raise ValidationError(
                "max_priority_fee_per_gas cannot exceed max_fee_per_gas",
                field="max_priority_fee_per_gas",
            )
        return params

    async def _resolve_gas_limit(
        self,
        sender: str,
        recipient: str,
        amount: int,
        payload: Optional[bytes],
    ) -> int:
        try:
            return await self._fees.estimate_gas_limit(sender, recipient, amount, payload)
        except EstimationError as e:
            fallback = self._fees.default_gas_limit(payload)
            self._logger.warning(
                "gas_estimate_fallback",
                gas_limit=fallback,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return fallback

    async def _resolve_fees(self, options: SubmitOptions) -> FeeParameters:
        if options.has_fee_override:
            return self._fee_override(options)
        return await self._fees.fee_parameters()

    def _schedule_fee_distribution(self, tx: Transaction) -> None:
        if self._fee_distributor is None or not self._settings.fee_distribution.enabled:
            return
        task = asyncio.create_task(self._distribute_fee(tx), name=f"fee-distribution:{tx.hash}")
        self._side_effects.add(task)
        task.add_done_callback(self._side_effects.discard)

    async def _distribute_fee(self, tx: Transaction) -> None:
        if self._fee_distributor is None:
            return
        try:
            await self._fee_distributor.distribute(
                tx.fee,
                self._settings.fee_distribution.policy,
                tx.hash,
            )
        except Exception as e:
            self._logger.warning(
                "fee_distribution_failed",
                tx_id=tx.id,
                tx_hash=tx.hash,
                error_type=type(e).__name__,
                error_message=str(e),
            )
