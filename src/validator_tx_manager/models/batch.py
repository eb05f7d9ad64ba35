# -*- coding: utf-8 -*-
"""TransactionBatch: an ordered group of transactions sent by one sender.

Member nonces are contiguous from the sender's next nonce at batch start.
Totals cover only the members that were accepted by the node.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional
from uuid import uuid4

from validator_tx_manager.models.transaction import Transaction, TransactionStatus

if TYPE_CHECKING:
    from validator_tx_manager.services.submission.dto import SubmitOptions


class BatchStatus(str, Enum):
    """Batch lifecycle state."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class BatchItem:
    """One requested transfer or call inside a batch."""

    recipient: str
    value: int | str | Decimal
    data: Optional[bytes | str] = None
    options: Optional["SubmitOptions"] = None


@dataclass(frozen=True, slots=True)
class BatchItemFailure:
    """Why item `index` of the request could not be submitted."""

    index: int
    error: str
    error_type: str
    tx_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TransactionBatch:
    """Result of submit_batch: members in nonce order plus any failed items."""

    id: str
    sender: str
    transactions: tuple[Transaction, ...]
    failures: tuple[BatchItemFailure, ...]
    status: BatchStatus
    total_value: int
    total_fee: int
    created_at: datetime
    requested_count: int

    @property
    def nonces(self) -> list[int]:
        return [tx.nonce for tx in self.transactions]

    @property
    def transaction_ids(self) -> list[str]:
        return [tx.id for tx in self.transactions]

    def with_member_states(self, latest: Mapping[str, Transaction]) -> TransactionBatch:
        """Return a copy whose members and status reflect the latest known transaction states.

        latest maps transaction id -> current Transaction; missing ids keep their old copy.
        Any failed member or item makes the batch FAILED; all members confirmed makes it COMPLETED.
        """
        members = tuple(latest.get(tx.id, tx) for tx in self.transactions)
        return replace(self, transactions=members, status=_derive_status(members, self.failures))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "from": self.sender,
            "status": self.status.value,
            "total_value": str(self.total_value),
            "total_fee": str(self.total_fee),
            "created_at": self.created_at.isoformat(),
            "requested_count": self.requested_count,
            "transactions": [tx.to_dict() for tx in self.transactions],
            "failures": [
                {"index": f.index, "error": f.error, "error_type": f.error_type, "tx_id": f.tx_id}
                for f in self.failures
            ],
        }

    @classmethod
    def create(
        cls,
        sender: str,
        transactions: Iterable[Transaction],
        failures: Iterable[BatchItemFailure] = (),
        *,
        requested_count: int,
        id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> TransactionBatch:
        """Build a batch from its submitted members, computing totals and status.

        Raises:
            ValueError: If member nonces are not strictly increasing and contiguous.
        """
        members = tuple(transactions)
        failed = tuple(failures)
        nonces = [tx.nonce for tx in members]
        if any(b != a + 1 for a, b in zip(nonces, nonces[1:])):
            raise ValueError(f"batch nonces must be contiguous and increasing, got {nonces}")
        if members or failed:
            status = _derive_status(members, failed)
        else:
            status = BatchStatus.PENDING
        return cls(
            id=id or uuid4().hex,
            sender=sender,
            transactions=members,
            failures=failed,
            status=status,
            total_value=sum(tx.value for tx in members),
            total_fee=sum(tx.fee for tx in members),
            created_at=created_at or datetime.now(timezone.utc),
            requested_count=requested_count,
        )


def _derive_status(
    members: tuple[Transaction, ...],
    failures: tuple[BatchItemFailure, ...],
) -> BatchStatus:
    if failures or any(tx.status == TransactionStatus.FAILED for tx in members):
        return BatchStatus.FAILED
    if members and all(tx.status == TransactionStatus.CONFIRMED for tx in members):
        return BatchStatus.COMPLETED
    return BatchStatus.PROCESSING
