"""Notification-related services."""

from validator_tx_manager.services.notifications.transaction_status_notifier import (
    TransactionStatusNotifier,
)

__all__ = ["TransactionStatusNotifier"]
