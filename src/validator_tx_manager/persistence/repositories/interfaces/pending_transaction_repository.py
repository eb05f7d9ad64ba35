"""Abstract interface for pending transaction storage (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from validator_tx_manager.models.transaction import Transaction


class IPendingTransactionRepository(ABC):
    """Interface for the set of submitted, not yet terminal transactions."""

    @abstractmethod
    async def save(self, tx: Transaction) -> None:
        """Insert or replace a pending transaction (keyed by id)."""
        ...

    @abstractmethod
    async def get(self, tx_id: str) -> Optional[Transaction]:
        """Return the pending transaction with this id, or None."""
        ...

    @abstractmethod
    async def get_by_hash(self, tx_hash: str) -> Optional[Transaction]:
        """Return the pending transaction with this ledger hash, or None."""
        ...

    @abstractmethod
    async def remove(self, tx_id: str) -> Optional[Transaction]:
        """Remove and return the pending transaction with this id, or None."""
        ...

    @abstractmethod
    async def list_all(self) -> list[Transaction]:
        """Return all pending transactions, oldest first."""
        ...

    async def list_by_sender(self, sender: str) -> list[Transaction]:
        """Return pending transactions sent by sender. Default impl filters list_all()."""
        needle = sender.strip().lower()
        return [tx for tx in await self.list_all() if tx.sender.lower() == needle]
