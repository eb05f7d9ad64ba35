# -*- coding: utf-8 -*-
"""Transaction lifecycle events (bubus BaseEvent).

Emitted by TransactionStateStore, WatcherPool and BatchCoordinator. Adapters
(notifiers, UI bridges) subscribe to these instead of reading service state.
"""

from __future__ import annotations

from typing import Literal, Optional

from bubus import BaseEvent  # type: ignore[import-untyped]


class TransactionStateChangedEvent(BaseEvent[None]):
    """Emitted whenever a transaction enters the pending set or reaches a terminal state."""

    tx_id: str
    tx_hash: str
    sender: str
    recipient: str
    nonce: int
    previous_status: Optional[Literal["pending", "confirmed", "failed"]] = None
    """None when the transaction was just recorded."""

    status: Literal["pending", "confirmed", "failed"]
    reason: Literal[
        "submitted",
        "confirmed",
        "reverted",
        "submission_failed",
        "cancelled",
        "replaced",
        "confirmation_timeout",
    ]
    block_number: Optional[int] = None
    fee: Optional[str] = None
    """Fee in smallest units, as a decimal string."""

    error_message: Optional[str] = None
    replaced_by: Optional[str] = None


class WatcherStoppedEvent(BaseEvent[None]):
    """Emitted when a confirmation watcher is deregistered."""

    tx_hash: str
    reason: Literal["resolved", "exhausted", "stopped"]
    attempts: int


class BatchSubmittedEvent(BaseEvent[None]):
    """Emitted once submit_batch has gone through every item it is going to attempt."""

    batch_id: str
    sender: str
    status: Literal["pending", "processing", "completed", "failed"]
    requested_count: int
    submitted_count: int
    failed_count: int
    total_value: str
    total_fee: str
