# -*- coding: utf-8 -*-
"""Transaction lifecycle events."""

from validator_tx_manager.events.transactions.transaction_events import (
    BatchSubmittedEvent,
    TransactionStateChangedEvent,
    WatcherStoppedEvent,
)

__all__ = ["BatchSubmittedEvent", "TransactionStateChangedEvent", "WatcherStoppedEvent"]
