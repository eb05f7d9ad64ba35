# -*- coding: utf-8 -*-
"""TransactionHistoryStore: bounded, newest-first record of terminal transactions."""

from __future__ import annotations

import csv
import io
import json
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Literal, Optional

import structlog

from validator_tx_manager.exceptions import PersistenceError
from validator_tx_manager.models.transaction import Transaction

if TYPE_CHECKING:
    from validator_tx_manager.config import Settings
    from validator_tx_manager.persistence.kv.base import IKeyValueStore

ExportFormat = Literal["json", "csv"]

_CSV_HEADER = ["ID", "Hash", "From", "To", "Value", "Status", "Block", "Timestamp"]


@dataclass(frozen=True)
class HistoryFilter:
    """History query: optional address (sender or recipient), page limit and offset."""

    address: Optional[str] = None
    limit: Optional[int] = None
    offset: int = 0


class TransactionHistoryStore:
    """Keeps at most settings.history.max_entries transactions, newest first.

    Recording at capacity evicts the oldest entry. Every mutation is written
    through to the key-value store under `<storage_key_prefix><user_id>`;
    write failures are logged and the in-memory list stays authoritative.

    Not locked: TransactionStateStore serializes every mutation.
    """

    def __init__(
        self,
        kv_store: "IKeyValueStore",
        settings: "Settings",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._kv = kv_store
        self._settings = settings
        self._max_entries = settings.history.max_entries
        self._entries: deque[Transaction] = deque(maxlen=self._max_entries)
        self._user_id = settings.history.user_id
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def user_id(self) -> str:
        return self._user_id

    def _storage_key(self) -> str:
        return f"{self._settings.history.storage_key_prefix}{self._user_id}"

    def __len__(self) -> int:
        return len(self._entries)

    async def load(self, user_id: Optional[str] = None) -> int:
        """Replace in-memory history with the persisted list for user_id.

        Unreadable or malformed blobs are logged and leave history empty.

        Returns:
            Number of entries loaded.
        """
        if user_id is not None:
            self._user_id = user_id
        self._entries.clear()
        key = self._storage_key()
        try:
            blob = await self._kv.get(key)
        except PersistenceError as e:
            self._logger.warning(
                "history_load_failed",
                storage_key=key,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return 0
        if not blob:
            return 0
        try:
            raw = json.loads(blob.decode("utf-8"))
            loaded = [Transaction.from_dict(item) for item in raw]
        except (ValueError, KeyError, TypeError) as e:
            self._logger.warning(
                "history_load_malformed",
                storage_key=key,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return 0
        self._entries.extend(loaded[: self._max_entries])
        self._logger.debug("history_loaded", storage_key=key, entries=len(self._entries))
        return len(self._entries)

    async def save(self) -> bool:
        """Write the current history through to the key-value store.

        Returns:
            True if the write succeeded.
        """
        key = self._storage_key()
        blob = json.dumps([tx.to_dict() for tx in self._entries]).encode("utf-8")
        try:
            await self._kv.set(key, blob)
        except PersistenceError as e:
            self._logger.warning(
                "history_save_failed",
                storage_key=key,
                entries=len(self._entries),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return False
        return True

    async def record(self, tx: Transaction) -> None:
        """Prepend a terminal transaction, evicting the oldest entry at capacity.

        Raises:
            ValueError: If tx is still pending.
        """
        if not tx.is_terminal:
            raise ValueError(f"only terminal transactions enter history (tx {tx.id} is {tx.status.value})")
        evicted = self._entries[-1] if len(self._entries) == self._max_entries else None
        self._entries.appendleft(tx)
        if evicted is not None:
            self._logger.debug("history_evicted", tx_id=evicted.id, tx_hash=evicted.hash)
        await self.save()

    def query(self, flt: Optional[HistoryFilter] = None) -> list[Transaction]:
        """Newest-first page of history, optionally filtered by address.

        The address matches sender or recipient case-insensitively. offset and
        limit apply after filtering; limit defaults to history.default_page_size.
        """
        flt = flt or HistoryFilter()
        limit = flt.limit if flt.limit is not None else self._settings.history.default_page_size
        offset = max(0, flt.offset)
        if limit <= 0:
            return []
        if flt.address:
            rows = [tx for tx in self._entries if tx.involves(flt.address)]
        else:
            rows = list(self._entries)
        return rows[offset : offset + limit]

    def get(self, tx_id: str) -> Optional[Transaction]:
        for tx in self._entries:
            if tx.id == tx_id:
                return tx
        return None

    def get_by_hash(self, tx_hash: str) -> Optional[Transaction]:
        needle = tx_hash.strip().lower()
        if not needle:
            return None
        for tx in self._entries:
            if tx.hash.lower() == needle:
                return tx
        return None

    def snapshot(self) -> list[Transaction]:
        """All entries, newest first (a copy)."""
        return list(self._entries)

    def export(self, fmt: str = "json") -> str:
        """Render the whole history as JSON (list of objects) or CSV. Does not mutate state.

        Raises:
            ValueError: If fmt is not "json" or "csv".
        """
        if fmt == "json":
            return json.dumps([tx.to_dict() for tx in self._entries], indent=2)
        if fmt == "csv":
            out = io.StringIO()
            writer = csv.writer(out, lineterminator="\n")
            writer.writerow(_CSV_HEADER)
            for tx in self._entries:
                writer.writerow(
                    [
                        tx.id,
                        tx.hash,
                        tx.sender,
                        tx.recipient,
                        str(tx.value),
                        tx.status.value,
                        tx.block_number if tx.block_number is not None else "",
                        tx.created_at.isoformat(),
                    ]
                )
            return out.getvalue()
        raise ValueError(f"Unsupported export format: {fmt!r}")

    async def clear(self) -> None:
        """Drop every entry and persist the empty history."""
        self._entries.clear()
        self._logger.info("history_cleared", user_id=self._user_id)
        await self.save()
