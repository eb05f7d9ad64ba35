# -*- coding: utf-8 -*-
"""Event bus and event types."""

from validator_tx_manager.events.bus import create_event_bus, get_event_bus, set_event_bus
from validator_tx_manager.events.transactions import (
    BatchSubmittedEvent,
    TransactionStateChangedEvent,
    WatcherStoppedEvent,
)

__all__ = [
    "create_event_bus",
    "get_event_bus",
    "set_event_bus",
    "BatchSubmittedEvent",
    "TransactionStateChangedEvent",
    "WatcherStoppedEvent",
]
