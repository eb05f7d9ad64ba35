"""Confirmation watchers."""

from validator_tx_manager.services.watchers.watcher_pool import (
    ExhaustedCallback,
    ResolvedCallback,
    Watcher,
    WatcherPool,
)

__all__ = ["ExhaustedCallback", "ResolvedCallback", "Watcher", "WatcherPool"]
