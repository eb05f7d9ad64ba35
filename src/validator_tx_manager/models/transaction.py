# -*- coding: utf-8 -*-
"""Transaction: one signed operation submitted to the validator node.

Identity is the locally generated id; the ledger hash is attached once the
node accepts the payload and never changes afterwards. Status moves only
pending -> confirmed or pending -> failed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import uuid4

from validator_tx_manager.utils.validation import same_address


class TransactionStatus(str, Enum):
    """Transaction lifecycle state."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


TERMINAL_STATUSES = frozenset({TransactionStatus.CONFIRMED, TransactionStatus.FAILED})


def _check_fee_model(
    gas_price: Optional[int],
    max_fee_per_gas: Optional[int],
    max_priority_fee_per_gas: Optional[int],
) -> None:
    """Exactly one fee model: legacy gas_price, or the max-fee/priority-fee pair."""
    has_legacy = gas_price is not None
    has_1559 = max_fee_per_gas is not None or max_priority_fee_per_gas is not None
    if has_legacy and has_1559:
        raise ValueError("gas_price and max_fee_per_gas/max_priority_fee_per_gas are mutually exclusive")
    if not has_legacy and not has_1559:
        raise ValueError("either gas_price or max_fee_per_gas/max_priority_fee_per_gas is required")
    if has_1559 and (max_fee_per_gas is None or max_priority_fee_per_gas is None):
        raise ValueError("max_fee_per_gas and max_priority_fee_per_gas must be set together")


def compute_fee(
    gas_limit: int,
    gas_price: Optional[int],
    max_fee_per_gas: Optional[int],
) -> int:
    """Upper-bound fee in smallest units: gas_limit * (gas_price or max_fee_per_gas)."""
    per_gas = gas_price if gas_price is not None else max_fee_per_gas
    return gas_limit * (per_gas or 0)


def _hex(value: int) -> str:
    return hex(value)


@dataclass(frozen=True, slots=True)
class UnsignedTransaction:
    """Everything the signer needs; carries no key material."""

    sender: str
    recipient: str
    value: int
    data: Optional[bytes]
    chain_id: int
    nonce: int
    gas_limit: int
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None

    def to_rpc_dict(self) -> dict[str, Any]:
        """Render as a JSON-RPC call object (hex quantities, 0x payload)."""
        out: dict[str, Any] = {
            "from": self.sender,
            "to": self.recipient,
            "value": _hex(self.value),
            "data": "0x" + (self.data or b"").hex(),
            "chainId": _hex(self.chain_id),
            "nonce": _hex(self.nonce),
            "gas": _hex(self.gas_limit),
        }
        if self.is_eip1559:
            out["maxFeePerGas"] = _hex(self.max_fee_per_gas or 0)
            out["maxPriorityFeePerGas"] = _hex(self.max_priority_fee_per_gas or 0)
        else:
            out["gasPrice"] = _hex(self.gas_price or 0)
        return out


@dataclass(frozen=True, slots=True)
class Transaction:
    """A transaction tracked from submission to a terminal state.

    Fees are integers in smallest units. Exactly one fee model is set:
    gas_price (legacy) or max_fee_per_gas + max_priority_fee_per_gas.
    """

    id: str
    hash: str
    """Ledger hash; "" until the node accepted the payload."""

    sender: str
    recipient: str
    value: int
    data: Optional[bytes]
    chain_id: int
    nonce: int
    gas_limit: int
    gas_price: Optional[int]
    max_fee_per_gas: Optional[int]
    max_priority_fee_per_gas: Optional[int]
    status: TransactionStatus
    created_at: datetime
    fee: int
    """gas_limit * (gas_price or max_fee_per_gas)."""

    block_number: Optional[int] = None
    """Set only once confirmed."""
    confirmations: int = 0
    error: Optional[str] = None
    replaced_by: Optional[str] = None
    """Id of the replacement that superseded this transaction (cancel/speed-up)."""

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_submitted(self) -> bool:
        return bool(self.hash)

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None

    def involves(self, address: str) -> bool:
        """True if address is the sender or the recipient (case-insensitive)."""
        return same_address(self.sender, address) or same_address(self.recipient, address)

    def to_unsigned(self) -> UnsignedTransaction:
        return UnsignedTransaction(
            sender=self.sender,
            recipient=self.recipient,
            value=self.value,
            data=self.data,
            chain_id=self.chain_id,
            nonce=self.nonce,
            gas_limit=self.gas_limit,
            gas_price=self.gas_price,
            max_fee_per_gas=self.max_fee_per_gas,
            max_priority_fee_per_gas=self.max_priority_fee_per_gas,
        )

    def with_hash(self, tx_hash: str) -> Transaction:
        """Return a copy carrying the ledger hash.

        Raises:
            ValueError: If tx_hash is empty or a different hash was already set.
        """
        tx_hash = tx_hash.strip()
        if not tx_hash:
            raise ValueError("tx_hash must be non-empty")
        if self.hash and self.hash != tx_hash:
            raise ValueError(f"transaction {self.id} already has hash {self.hash}")
        return replace(self, hash=tx_hash)

    def with_confirmed(self, block_number: int, confirmations: int = 1) -> Transaction:
        """Return a copy with status CONFIRMED at block_number.

        Raises:
            ValueError: If the transaction is already terminal.
        """
        self._require_pending("confirm")
        return replace(
            self,
            status=TransactionStatus.CONFIRMED,
            block_number=block_number,
            confirmations=max(0, confirmations),
        )

    def with_failed(
        self,
        error: str,
        *,
        block_number: Optional[int] = None,
        replaced_by: Optional[str] = None,
    ) -> Transaction:
        """Return a copy with status FAILED and the given error.

        block_number is kept for transactions that were mined but reverted.

        Raises:
            ValueError: If the transaction is already terminal.
        """
        self._require_pending("fail")
        return replace(
            self,
            status=TransactionStatus.FAILED,
            error=error,
            block_number=block_number,
            confirmations=1 if block_number is not None else self.confirmations,
            replaced_by=replaced_by or self.replaced_by,
        )

    def _require_pending(self, action: str) -> None:
        if self.is_terminal:
            raise ValueError(
                f"cannot {action} transaction {self.id}: already {self.status.value}"
            )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible primitives (payload hex, ISO timestamps)."""
        return {
            "id": self.id,
            "hash": self.hash,
            "from": self.sender,
            "to": self.recipient,
            "value": str(self.value),
            "data": "0x" + self.data.hex() if self.data else None,
            "chain_id": self.chain_id,
            "nonce": self.nonce,
            "gas_limit": str(self.gas_limit),
            "gas_price": str(self.gas_price) if self.gas_price is not None else None,
            "max_fee_per_gas": str(self.max_fee_per_gas) if self.max_fee_per_gas is not None else None,
            "max_priority_fee_per_gas": (
                str(self.max_priority_fee_per_gas) if self.max_priority_fee_per_gas is not None else None
            ),
            "status": self.status.value,
            "block_number": self.block_number,
            "confirmations": self.confirmations,
            "created_at": self.created_at.isoformat(),
            "fee": str(self.fee),
            "error": self.error,
            "replaced_by": self.replaced_by,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Transaction:
        """Rebuild a Transaction from to_dict() output.

        Raises:
            KeyError, ValueError: If required fields are missing or malformed.
        """

        def _opt_int(key: str) -> Optional[int]:
            raw = data.get(key)
            return int(raw) if raw is not None else None

        payload = data.get("data")
        return cls(
            id=str(data["id"]),
            hash=str(data.get("hash") or ""),
            sender=str(data["from"]),
            recipient=str(data["to"]),
            value=int(data["value"]),
            data=bytes.fromhex(payload[2:]) if payload else None,
            chain_id=int(data["chain_id"]),
            nonce=int(data["nonce"]),
            gas_limit=int(data["gas_limit"]),
            gas_price=_opt_int("gas_price"),
            max_fee_per_gas=_opt_int("max_fee_per_gas"),
            max_priority_fee_per_gas=_opt_int("max_priority_fee_per_gas"),
            status=TransactionStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            fee=int(data["fee"]),
            block_number=_opt_int("block_number"),
            confirmations=int(data.get("confirmations") or 0),
            error=data.get("error"),
            replaced_by=data.get("replaced_by"),
        )

    @classmethod
    def create(
        cls,
        sender: str,
        recipient: str,
        value: int,
        *,
        chain_id: int,
        nonce: int,
        gas_limit: int,
        gas_price: Optional[int] = None,
        max_fee_per_gas: Optional[int] = None,
        max_priority_fee_per_gas: Optional[int] = None,
        data: Optional[bytes] = None,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Transaction:
        """Create a new PENDING, not yet submitted transaction with its fee computed.

        Raises:
            ValueError: If value, nonce or gas_limit are negative, or the fee model is inconsistent.
        """
        if value < 0:
            raise ValueError("value must be >= 0")
        if nonce < 0:
            raise ValueError("nonce must be >= 0")
        if gas_limit <= 0:
            raise ValueError("gas_limit must be > 0")
        _check_fee_model(gas_price, max_fee_per_gas, max_priority_fee_per_gas)
        return cls(
            id=id or uuid4().hex,
            hash="",
            sender=sender.strip(),
            recipient=recipient.strip(),
            value=value,
            data=data or None,
            chain_id=chain_id,
            nonce=nonce,
            gas_limit=gas_limit,
            gas_price=gas_price,
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            status=TransactionStatus.PENDING,
            created_at=created_at or datetime.now(timezone.utc),
            fee=compute_fee(gas_limit, gas_price, max_fee_per_gas),
        )
