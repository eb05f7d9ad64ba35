"""Notification stylers."""

from validator_tx_manager.notifications.stylers.transaction_styler import (
    TransactionNotificationStyler,
)

__all__ = ["TransactionNotificationStyler"]
