# -*- coding: utf-8 -*-
"""Abstract interface for the validator node (ledger) client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from validator_tx_manager.models.gas_estimate import FeeParameters
from validator_tx_manager.models.receipt import Receipt
from validator_tx_manager.models.transaction import Transaction


class ILedgerClient(ABC):
    """What the transaction core needs from a validator node.

    Implementations raise LedgerAPIError (or LedgerResponseError) on transport
    or protocol failures and return validated models, never raw dicts.
    """

    @abstractmethod
    async def submit(self, signed_payload: str) -> str:
        """Broadcast a signed payload once and return the transaction hash."""
        ...

    @abstractmethod
    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        """Return the receipt for tx_hash, or None while it is not mined."""
        ...

    @abstractmethod
    async def estimate_gas(self, call: dict[str, Any]) -> int:
        """Return the gas limit estimate for a call object (from/to/value/data)."""
        ...

    @abstractmethod
    async def get_fee_parameters(self) -> FeeParameters:
        """Return current gas price or max-fee/priority-fee pair."""
        ...

    @abstractmethod
    async def get_nonce(self, address: str) -> int:
        """Return the pending transaction count of address (next usable nonce)."""
        ...

    async def get_transaction(self, tx_hash: str) -> Optional[Transaction]:
        """Return the transaction the node knows under tx_hash, or None. Default: no lookup support."""
        return None

    async def aclose(self) -> None:
        """Release transport resources. Default: nothing to release."""
        return None
