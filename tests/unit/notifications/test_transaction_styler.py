# -*- coding: utf-8 -*-
"""Unit tests for TransactionNotificationStyler."""

from __future__ import annotations

from validator_tx_manager.notifications.stylers import TransactionNotificationStyler
from validator_tx_manager.notifications.types import NotificationMessage

TX_HASH = "0x" + "ee" * 32


def test_confirmed_transaction_shows_block_and_fee_in_coins() -> None:
    styler = TransactionNotificationStyler(decimals=18, symbol="VAL")
    message = NotificationMessage(
        event_type="transaction_confirmed",
        message="Transaction confirmed: Confirmed",
        payload={"tx_id": "tx-1", "tx_hash": TX_HASH, "nonce": 3, "block_number": 99, "fee": "420000000000000"},
    )

    text = styler.render(message)

    assert text.startswith("✅ Transaction Confirmed")
    assert f"🔗 Hash: {TX_HASH}" in text
    assert "📦 Block: 99" in text
    assert "💸 Fee: 0.00042 VAL" in text
    assert "Error" not in text


def test_replacement_link_and_error_are_rendered() -> None:
    styler = TransactionNotificationStyler()
    message = NotificationMessage(
        event_type="transaction_cancelled",
        message="",
        payload={"tx_id": "tx-1", "error_message": "cancelled", "replaced_by": "tx-2"},
    )

    text = styler.render(message)

    assert text.startswith("🚫 Transaction Cancelled")
    assert "🔁 Replaced by: tx-2" in text
    assert "Error: cancelled" in text


def test_batch_summary() -> None:
    styler = TransactionNotificationStyler(decimals=0)
    message = NotificationMessage(
        event_type="batch_submitted",
        message="",
        payload={
            "batch_id": "b-1",
            "status": "failed",
            "requested_count": 3,
            "submitted_count": 2,
            "failed_count": 1,
            "total_value": "30",
            "total_fee": "5",
        },
    )

    text = styler.render(message)

    assert "✅ Submitted: 2/3" in text
    assert "❌ Failed: 1" in text
    assert "💰 Total value: 30" in text


def test_unknown_event_uses_generic_rendering() -> None:
    styler = TransactionNotificationStyler()
    message = NotificationMessage(event_type="node_status", message="Node is syncing", payload={"height": 12})

    text = styler.render(message)

    assert text.splitlines() == ["ℹ️ Node Status", "Node is syncing", "height: 12"]


def test_explicit_title_overrides_default() -> None:
    styler = TransactionNotificationStyler()
    message = NotificationMessage(event_type="transaction_failed", message="", title="Custom", payload={})

    assert styler.render(message).startswith("❌ Custom")
