# -*- coding: utf-8 -*-
"""Plain-text styler for transaction lifecycle notifications."""

from __future__ import annotations

from typing import Any

from validator_tx_manager.notifications.types import NotificationMessage, NotificationStyler
from validator_tx_manager.utils.units import format_units


class TransactionNotificationStyler(NotificationStyler):
    """Render notifications by event_type with emojis, separators and formatted sections.

    Amounts in the payload are smallest units; they are shown in whole coins
    using `decimals` and suffixed with `symbol`.
    """

    def __init__(self, *, decimals: int = 18, symbol: str = "") -> None:
        self._decimals = decimals
        self._symbol = symbol

    def render(self, message: NotificationMessage) -> str:
        """Dispatch to the appropriate renderer based on event_type."""
        if message.event_type.startswith("transaction_"):
            return self._render_transaction(message)
        if message.event_type == "batch_submitted":
            return self._render_batch(message)
        return self._render_generic(message)

    def _render_transaction(self, message: NotificationMessage) -> str:
        payload: dict[str, Any] = message.payload or {}
        emoji, title = self._title(message.event_type)
        lines = [
            f"{emoji} {message.title or title}\n",
            self._section(
                "📄 Transaction",
                [
                    ("🆔 Id", payload.get("tx_id")),
                    ("🔗 Hash", payload.get("tx_hash")),
                    ("🔢 Nonce", payload.get("nonce")),
                    ("📤 From", payload.get("sender")),
                    ("📥 To", payload.get("recipient")),
                ],
            ),
            self._section(
                "⛽ Outcome",
                [
                    ("📦 Block", payload.get("block_number")),
                    ("💸 Fee", self._format_amount(payload.get("fee"))),
                    ("🔁 Replaced by", payload.get("replaced_by")),
                    ("⚠️ Error", payload.get("error_message")),
                ],
            ),
        ]
        return "\n".join(line for line in lines if line).strip()

    def _render_batch(self, message: NotificationMessage) -> str:
        payload: dict[str, Any] = message.payload or {}
        emoji, title = self._title(message.event_type)
        submitted = payload.get("submitted_count")
        requested = payload.get("requested_count")
        lines = [
            f"{emoji} {message.title or title}\n",
            self._section(
                "📚 Batch",
                [
                    ("🆔 Id", payload.get("batch_id")),
                    ("📤 From", payload.get("sender")),
                    ("📊 Status", payload.get("status")),
                    ("✅ Submitted", f"{submitted}/{requested}" if submitted is not None else None),
                    ("❌ Failed", payload.get("failed_count") or None),
                    ("💰 Total value", self._format_amount(payload.get("total_value"))),
                    ("💸 Total fee", self._format_amount(payload.get("total_fee"))),
                ],
            ),
        ]
        return "\n".join(line for line in lines if line).strip()

    def _render_generic(self, message: NotificationMessage) -> str:
        emoji, title = self._title(message.event_type)
        lines = [f"{emoji} {message.title or title}", message.message]
        if message.payload:
            for key in sorted(message.payload.keys()):
                value = message.payload.get(key)
                if value is not None:
                    lines.append(f"{key}: {value}")
        return "\n".join(lines).strip()

    @staticmethod
    def _title(event_type: str) -> tuple[str, str]:
        """Get the emoji and title for the given event type."""
        mapping = {
            "transaction_submitted": ("📨", "Transaction Submitted"),
            "transaction_confirmed": ("✅", "Transaction Confirmed"),
            "transaction_failed": ("❌", "Transaction Failed"),
            "transaction_cancelled": ("🚫", "Transaction Cancelled"),
            "transaction_replaced": ("⏩", "Transaction Sped Up"),
            "transaction_unconfirmed": ("⏳", "Confirmation Timed Out"),
            "batch_submitted": ("📚", "Batch Submitted"),
        }
        return mapping.get(event_type, ("ℹ️", event_type.replace("_", " ").title()))

    def _format_amount(self, value: Any) -> str | None:
        if value is None or value == "":
            return None
        try:
            text = format_units(int(value), self._decimals)
        except (TypeError, ValueError):
            return str(value)
        return f"{text} {self._symbol}".strip()

    @staticmethod
    def _section(header: str, rows: list[tuple[str, Any]]) -> str:
        """Format a section with a header and the rows that have a value."""
        content_lines = [f"{label}: {value}" for label, value in rows if value is not None and value != ""]
        if not content_lines:
            return ""
        return "\n".join([header, "─" * 12, *content_lines]) + "\n"
