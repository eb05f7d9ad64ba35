# -*- coding: utf-8 -*-
"""ReplacementEngine: cancel or speed up a pending transaction by re-using its nonce at a higher fee."""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional, Union

import structlog
from structlog.contextvars import bound_contextvars

from validator_tx_manager.exceptions import ReplacementNotAllowedError, ValidationError
from validator_tx_manager.models.transaction import Transaction
from validator_tx_manager.services.submission.dto import SubmitOptions
from validator_tx_manager.utils.units import bump_fee

if TYPE_CHECKING:
    from validator_tx_manager.config import Settings
    from validator_tx_manager.services.state.transaction_state_store import TransactionStateStore
    from validator_tx_manager.services.submission.transaction_submitter import TransactionSubmitter

ReplacementKind = Literal["cancel", "speed_up"]
Multiplier = Union[float, Decimal]


class ReplacementEngine:
    """Builds and submits fee-bumped replacements for pending transactions.

    cancel sends a zero-value transfer from the sender to itself; speed_up
    resends the original recipient, value and payload. Both keep the original
    nonce and multiply every fee field by the multiplier, rounding up. Only one
    replacement per transaction id may be in progress at a time.
    """

    def __init__(
        self,
        state_store: "TransactionStateStore",
        submitter: "TransactionSubmitter",
        settings: "Settings",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._state = state_store
        self._submitter = submitter
        self._settings = settings
        self._in_progress: set[str] = set()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def cancel(self, tx_id: str, multiplier: Optional[Multiplier] = None) -> Transaction:
        """Replace tx_id with a zero-value self-transfer (default fee multiplier fees.cancel_multiplier).

        Returns:
            The pending cancellation transaction.

        Raises:
            ReplacementNotAllowedError: Unknown, terminal or already being replaced.
            ValidationError: multiplier is not greater than 1.
            SubmissionError: The cancellation itself was rejected.
        """
        factor = multiplier if multiplier is not None else self._settings.fees.cancel_multiplier
        return await self._replace(tx_id, "cancel", factor)

    async def speed_up(self, tx_id: str, multiplier: Optional[Multiplier] = None) -> Transaction:
        """Resend tx_id with higher fees (default fee multiplier fees.speed_up_multiplier).

        Returns:
            The pending replacement transaction.

        Raises:
            ReplacementNotAllowedError: Unknown, terminal or already being replaced.
            ValidationError: multiplier is not greater than 1.
            SubmissionError: The replacement itself was rejected.
        """
        factor = multiplier if multiplier is not None else self._settings.fees.speed_up_multiplier
        return await self._replace(tx_id, "speed_up", factor)

    def is_replacing(self, tx_id: str) -> bool:
        return tx_id in self._in_progress

    async def _replace(self, tx_id: str, kind: ReplacementKind, multiplier: Multiplier) -> Transaction:
        if tx_id in self._in_progress:
            raise ReplacementNotAllowedError(
                f"A replacement of transaction {tx_id} is already in progress",
                reason="in_progress",
                tx_id=tx_id,
            )
        self._in_progress.add(tx_id)
        try:
            with bound_contextvars(tx_id=tx_id, replacement_kind=kind):
                original = await self._require_pending(tx_id)
                options = self._bumped_options(original, kind, multiplier)
                if kind == "cancel":
                    replacement = await self._submitter.submit(
                        original.sender,
                        original.sender,
                        0,
                        None,
                        options,
                        supersedes=original.id,
                        supersede_reason="cancelled",
                    )
                else:
                    replacement = await self._submitter.submit(
                        original.sender,
                        original.recipient,
                        original.value,
                        original.data,
                        options,
                        supersedes=original.id,
                        supersede_reason="replaced",
                    )
                self._logger.info(
                    "transaction_replaced",
                    original_tx_hash=original.hash,
                    replacement_tx_id=replacement.id,
                    replacement_tx_hash=replacement.hash,
                    nonce=replacement.nonce,
                    multiplier=str(multiplier),
                )
                return replacement
        finally:
            self._in_progress.discard(tx_id)

    async def _require_pending(self, tx_id: str) -> Transaction:
        original = await self._state.get_pending(tx_id)
        if original is not None:
            return original
        known = await self._state.find(tx_id)
        if known is None:
            raise ReplacementNotAllowedError(
                f"Transaction {tx_id} not found",
                reason="not_found",
                tx_id=tx_id,
            )
        raise ReplacementNotAllowedError(
            f"Transaction {tx_id} is already {known.status.value}",
            reason="already_terminal",
            tx_id=tx_id,
        )

    def _bumped_options(
        self,
        original: Transaction,
        kind: ReplacementKind,
        multiplier: Multiplier,
    ) -> SubmitOptions:
        gas_limit = self._settings.fees.transfer_gas_limit if kind == "cancel" else original.gas_limit
        try:
            if original.is_eip1559:
                return SubmitOptions(
                    nonce=original.nonce,
                    gas_limit=gas_limit,
                    max_fee_per_gas=bump_fee(original.max_fee_per_gas or 0, multiplier),
                    max_priority_fee_per_gas=bump_fee(original.max_priority_fee_per_gas or 0, multiplier),
                    chain_id=original.chain_id,
                )
            return SubmitOptions(
                nonce=original.nonce,
                gas_limit=gas_limit,
                gas_price=bump_fee(original.gas_price or 0, multiplier),
                chain_id=original.chain_id,
            )
        except ValueError as e:
            raise ValidationError(str(e), field="multiplier", tx_id=original.id, cause=e) from e
