"""Notification subsystem."""

from validator_tx_manager.notifications.notification_manager import (
    NotificationService,
)
from validator_tx_manager.notifications.strategies import (
    BaseNotificationStrategy,
    ConsoleNotifier,
)
from validator_tx_manager.notifications.stylers import TransactionNotificationStyler
from validator_tx_manager.notifications.types import (
    NotificationMessage,
    NotificationStyler,
)

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "NotificationMessage",
    "NotificationService",
    "NotificationStyler",
    "TransactionNotificationStyler",
]
