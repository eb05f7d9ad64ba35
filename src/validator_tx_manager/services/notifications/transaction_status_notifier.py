# -*- coding: utf-8 -*-
"""TransactionStatusNotifier: turns lifecycle events into user-facing notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from validator_tx_manager.events.transactions import (
    BatchSubmittedEvent,
    TransactionStateChangedEvent,
    WatcherStoppedEvent,
)
from validator_tx_manager.notifications.types import NotificationMessage

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from validator_tx_manager.notifications.notification_manager import NotificationService


_EVENT_TYPES = {
    "submitted": "transaction_submitted",
    "confirmed": "transaction_confirmed",
    "reverted": "transaction_failed",
    "submission_failed": "transaction_failed",
    "confirmation_timeout": "transaction_failed",
    "cancelled": "transaction_cancelled",
    "replaced": "transaction_replaced",
}

_REASON_LABELS = {
    "submitted": "Submitted to the validator",
    "confirmed": "Confirmed",
    "reverted": "Reverted on execution",
    "submission_failed": "Rejected before broadcast",
    "confirmation_timeout": "No receipt before the watcher gave up",
    "cancelled": "Cancelled by a zero-value replacement",
    "replaced": "Replaced by a higher-fee resend",
}


class TransactionStatusNotifier:
    """Subscribes to transaction, watcher and batch events and sends notifications via NotificationService."""

    def __init__(
        self,
        notification_service: "NotificationService",
        event_bus: Any,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._notification_service = notification_service
        self._event_bus: "EventBus" = event_bus
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def start(self) -> None:
        """Subscribe to lifecycle events."""
        self._event_bus.on(TransactionStateChangedEvent, self._on_state_changed)
        self._event_bus.on(WatcherStoppedEvent, self._on_watcher_stopped)
        self._event_bus.on(BatchSubmittedEvent, self._on_batch_submitted)
        self._logger.debug("transaction_status_notifier_started")

    def stop(self) -> None:
        """Unsubscribe from lifecycle events."""
        handlers = getattr(self._event_bus, "handlers", {})
        for event_type, handler in (
            (TransactionStateChangedEvent, self._on_state_changed),
            (WatcherStoppedEvent, self._on_watcher_stopped),
            (BatchSubmittedEvent, self._on_batch_submitted),
        ):
            key = event_type.__name__
            if key in handlers:
                handlers[key] = [h for h in handlers[key] if h != handler]
        self._logger.debug("transaction_status_notifier_stopped")

    def _on_state_changed(self, event: TransactionStateChangedEvent) -> None:
        """Handle TransactionStateChangedEvent: build and send notification."""
        label = _REASON_LABELS.get(event.reason, event.reason.replace("_", " ").capitalize())
        message = f"Transaction {event.status}: {label}"
        if event.error_message:
            message += f" ({event.error_message})"
        payload: dict[str, Any] = {
            "tx_id": event.tx_id,
            "tx_hash": event.tx_hash or None,
            "nonce": event.nonce,
            "sender": event.sender,
            "recipient": event.recipient,
            "status": event.status,
            "reason": event.reason,
            "block_number": event.block_number,
            "fee": event.fee,
            "error_message": event.error_message,
            "replaced_by": event.replaced_by,
        }
        self._notification_service.notify(
            NotificationMessage(
                event_type=_EVENT_TYPES.get(event.reason, "transaction_updated"),
                message=message,
                payload=payload,
            )
        )
        self._logger.debug(
            "transaction_status_notified",
            tx_id=event.tx_id,
            tx_hash=event.tx_hash,
            reason=event.reason,
        )

    def _on_watcher_stopped(self, event: WatcherStoppedEvent) -> None:
        """Only exhausted watchers are worth a notification; resolved ones are covered by state changes."""
        if event.reason != "exhausted":
            return
        self._notification_service.notify(
            NotificationMessage(
                event_type="transaction_unconfirmed",
                message=f"No receipt after {event.attempts} polls; the transaction may still be pending",
                payload={"tx_hash": event.tx_hash, "attempts": event.attempts},
            )
        )

    def _on_batch_submitted(self, event: BatchSubmittedEvent) -> None:
        self._notification_service.notify(
            NotificationMessage(
                event_type="batch_submitted",
                message=f"Batch {event.status}: {event.submitted_count}/{event.requested_count} submitted",
                payload={
                    "batch_id": event.batch_id,
                    "sender": event.sender,
                    "status": event.status,
                    "requested_count": event.requested_count,
                    "submitted_count": event.submitted_count,
                    "failed_count": event.failed_count,
                    "total_value": event.total_value,
                    "total_fee": event.total_fee,
                },
            )
        )
