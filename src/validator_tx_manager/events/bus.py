# -*- coding: utf-8 -*-
"""Shared bubus EventBus for transaction lifecycle events.

TransactionStateStore, WatcherPool and BatchCoordinator dispatch onto it;
adapters such as TransactionStatusNotifier subscribe with on().
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from bubus import EventBus  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from validator_tx_manager.config import Settings

BUS_NAME = "ValidatorTxManager"
DEFAULT_HISTORY_SIZE = 200

_event_bus: Optional[EventBus] = None


def create_event_bus(settings: Optional["Settings"] = None) -> EventBus:
    """Build a new bus keeping the last app.event_history_size events."""
    history_size = settings.app.event_history_size if settings is not None else DEFAULT_HISTORY_SIZE
    return EventBus(name=BUS_NAME, max_history_size=history_size, wal_path=None)


def get_event_bus(settings: Optional["Settings"] = None) -> EventBus:
    """Return the shared bus, built from settings on first call. Later settings are ignored."""
    global _event_bus
    if _event_bus is None:
        _event_bus = create_event_bus(settings)
    return _event_bus


def set_event_bus(bus: Optional[EventBus]) -> None:
    """Replace the shared bus (tests, host applications). None resets to the lazy default."""
    global _event_bus
    _event_bus = bus
