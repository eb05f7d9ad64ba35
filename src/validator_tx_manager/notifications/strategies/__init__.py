"""Notification strategies."""

from validator_tx_manager.notifications.strategies.base import (
    BaseNotificationStrategy,
)
from validator_tx_manager.notifications.strategies.console import ConsoleNotifier

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
]
