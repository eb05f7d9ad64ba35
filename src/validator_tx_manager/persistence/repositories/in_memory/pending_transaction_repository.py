# -*- coding: utf-8 -*-
"""In-memory pending transaction repository (keyed by id, indexed by hash)."""

from __future__ import annotations

from typing import Optional

from validator_tx_manager.models.transaction import Transaction
from validator_tx_manager.persistence.repositories.interfaces.pending_transaction_repository import (
    IPendingTransactionRepository,
)


class InMemoryPendingTransactionRepository(IPendingTransactionRepository):
    """In-memory implementation of IPendingTransactionRepository."""

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._by_id: dict[str, Transaction] = {}
        self._id_by_hash: dict[str, str] = {}

    async def save(self, tx: Transaction) -> None:
        previous = self._by_id.get(tx.id)
        if previous is not None and previous.hash and previous.hash != tx.hash:
            self._id_by_hash.pop(previous.hash.lower(), None)
        self._by_id[tx.id] = tx
        if tx.hash:
            self._id_by_hash[tx.hash.lower()] = tx.id

    async def get(self, tx_id: str) -> Optional[Transaction]:
        return self._by_id.get(tx_id)

    async def get_by_hash(self, tx_hash: str) -> Optional[Transaction]:
        tx_id = self._id_by_hash.get(tx_hash.strip().lower())
        return self._by_id.get(tx_id) if tx_id is not None else None

    async def remove(self, tx_id: str) -> Optional[Transaction]:
        tx = self._by_id.pop(tx_id, None)
        if tx is not None and tx.hash:
            self._id_by_hash.pop(tx.hash.lower(), None)
        return tx

    async def list_all(self) -> list[Transaction]:
        return sorted(self._by_id.values(), key=lambda t: t.created_at)
