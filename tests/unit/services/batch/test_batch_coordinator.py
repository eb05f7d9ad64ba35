# -*- coding: utf-8 -*-
"""Unit tests for BatchCoordinator."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from validator_tx_manager.events.transactions import BatchSubmittedEvent
from validator_tx_manager.exceptions import ValidationError
from validator_tx_manager.models.batch import BatchItem, BatchStatus
from validator_tx_manager.services.submission import SubmitOptions


async def test_batch_members_get_contiguous_nonces(stack: SimpleNamespace, sender, recipient) -> None:
    stack.ledger.nonces[sender.lower()] = 5
    items = [BatchItem(recipient=recipient, value=v) for v in (1, 2, 3)]

    batch = await stack.batches.submit_batch(sender, items)

    assert batch.nonces == [5, 6, 7]
    assert batch.status == BatchStatus.PROCESSING
    assert batch.total_value == 6
    assert batch.total_fee == sum(tx.fee for tx in batch.transactions)
    assert batch.failures == ()
    assert stack.ledger.nonce_calls == 1
    assert len(await stack.state.pending_snapshot()) == 3


async def test_batch_emits_submitted_event(stack: SimpleNamespace, sender, recipient) -> None:
    batch = await stack.batches.submit_batch(sender, [BatchItem(recipient=recipient, value=1)])

    events = stack.bus.of_type(BatchSubmittedEvent)
    assert len(events) == 1
    assert events[0].batch_id == batch.id
    assert events[0].submitted_count == 1
    assert events[0].failed_count == 0


async def test_item_nonce_overrides_are_replaced_by_batch_sequence(
    stack: SimpleNamespace, sender, recipient
) -> None:
    stack.ledger.nonces[sender.lower()] = 2
    items = [
        BatchItem(recipient=recipient, value=1, options=SubmitOptions(nonce=99, gas_limit=30_000)),
        BatchItem(recipient=recipient, value=1),
    ]

    batch = await stack.batches.submit_batch(sender, items)

    assert batch.nonces == [2, 3]
    assert batch.transactions[0].gas_limit == 30_000


async def test_abort_policy_stops_at_first_failed_item(stack: SimpleNamespace, sender, recipient) -> None:
    stack.ledger.nonces[sender.lower()] = 5
    items = [
        BatchItem(recipient=recipient, value=1),
        BatchItem(recipient="0xnot-an-address", value=1),
        BatchItem(recipient=recipient, value=1),
    ]

    batch = await stack.batches.submit_batch(sender, items, failure_policy="abort")

    assert batch.nonces == [5]
    assert batch.status == BatchStatus.FAILED
    assert batch.requested_count == 3
    assert [(f.index, f.error_type) for f in batch.failures] == [(1, "ValidationError")]


async def test_continue_policy_attempts_every_item_without_nonce_gaps(
    stack: SimpleNamespace, sender, recipient
) -> None:
    stack.ledger.nonces[sender.lower()] = 5
    items = [
        BatchItem(recipient=recipient, value=1),
        BatchItem(recipient=recipient, value=-1),
        BatchItem(recipient=recipient, value=3),
    ]

    batch = await stack.batches.submit_batch(sender, items, failure_policy="continue")

    assert batch.nonces == [5, 6]
    assert batch.total_value == 4
    assert [f.index for f in batch.failures] == [1]
    assert batch.status == BatchStatus.FAILED


async def test_configured_policy_is_used_by_default(stack_factory, sender, recipient) -> None:
    stack = stack_factory(batch={"failure_policy": "continue"})
    items = [BatchItem(recipient="0xbad", value=1), BatchItem(recipient=recipient, value=1)]

    batch = await stack.batches.submit_batch(sender, items)

    assert len(batch.transactions) == 1
    assert len(batch.failures) == 1


async def test_submission_failure_is_recorded_with_transaction_id(stack: SimpleNamespace, sender, recipient) -> None:
    stack.signer.error = RuntimeError("hsm offline")

    batch = await stack.batches.submit_batch(sender, [BatchItem(recipient=recipient, value=1)])

    failure = batch.failures[0]
    assert failure.error_type == "SubmissionError"
    assert failure.tx_id is not None
    assert stack.history.get(failure.tx_id) is not None


async def test_invalid_batches_are_rejected(stack: SimpleNamespace, sender, recipient) -> None:
    with pytest.raises(ValidationError) as empty:
        await stack.batches.submit_batch(sender, [])
    with pytest.raises(ValidationError) as bad_sender:
        await stack.batches.submit_batch("nope", [BatchItem(recipient=recipient, value=1)])
    with pytest.raises(ValidationError) as bad_policy:
        await stack.batches.submit_batch(sender, [BatchItem(recipient=recipient, value=1)], failure_policy="retry")

    assert empty.value.field == "items"
    assert bad_sender.value.field == "sender"
    assert bad_policy.value.field == "failure_policy"
    assert stack.ledger.submitted == []


async def test_get_batch_reflects_member_confirmations(stack: SimpleNamespace, sender, recipient) -> None:
    items = [BatchItem(recipient=recipient, value=1), BatchItem(recipient=recipient, value=2)]
    batch = await stack.batches.submit_batch(sender, items)

    for tx in batch.transactions:
        await stack.state.apply_receipt(stack.ledger.confirm(tx.hash))
    refreshed = await stack.batches.get_batch(batch.id)

    assert refreshed is not None
    assert refreshed.status == BatchStatus.COMPLETED
    assert all(tx.block_number == 100 for tx in refreshed.transactions)
    assert await stack.batches.get_batch("unknown") is None


async def test_get_batch_follows_sped_up_member_to_its_replacement(
    stack: SimpleNamespace, sender, recipient
) -> None:
    items = [BatchItem(recipient=recipient, value=1), BatchItem(recipient=recipient, value=2)]
    batch = await stack.batches.submit_batch(sender, items)
    first, second = batch.transactions

    replacement = await stack.replacement.speed_up(first.id)
    await stack.state.apply_receipt(stack.ledger.confirm(replacement.hash))
    await stack.state.apply_receipt(stack.ledger.confirm(second.hash))
    refreshed = await stack.batches.get_batch(batch.id)

    assert refreshed is not None
    assert refreshed.status == BatchStatus.COMPLETED
    assert [tx.id for tx in refreshed.transactions] == [replacement.id, second.id]
    assert refreshed.nonces == batch.nonces


async def test_get_batch_keeps_cancelled_member_failed(stack: SimpleNamespace, sender, recipient) -> None:
    items = [BatchItem(recipient=recipient, value=1), BatchItem(recipient=recipient, value=2)]
    batch = await stack.batches.submit_batch(sender, items)
    first, second = batch.transactions

    cancellation = await stack.replacement.cancel(first.id)
    await stack.state.apply_receipt(stack.ledger.confirm(cancellation.hash))
    await stack.state.apply_receipt(stack.ledger.confirm(second.hash))
    refreshed = await stack.batches.get_batch(batch.id)

    assert refreshed is not None
    assert refreshed.status == BatchStatus.FAILED
    assert refreshed.transactions[0].id == first.id
    assert refreshed.transactions[0].error == "cancelled"
