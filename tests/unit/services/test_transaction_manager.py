# -*- coding: utf-8 -*-
"""Unit tests for the TransactionManager facade."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from types import SimpleNamespace
from typing import Any

import pytest

from validator_tx_manager.exceptions import ValidationError
from validator_tx_manager.models.batch import BatchItem
from validator_tx_manager.models.transaction import TransactionStatus

GWEI = 10**9
OTHER = "0x1111111111111111111111111111111111111111"


async def _eventually(predicate: Callable[[], Awaitable[bool]], attempts: int = 200, delay: float = 0) -> None:
    for _ in range(attempts):
        if await predicate():
            return
        await asyncio.sleep(delay)
    raise AssertionError("condition not reached")


@pytest.fixture
def fast_stack(stack_factory: Callable[..., SimpleNamespace]) -> SimpleNamespace:
    return stack_factory(watcher={"poll_interval_seconds": 0, "max_retries": 2})


async def test_submitted_transaction_is_confirmed_by_its_watcher(fast_stack: SimpleNamespace, sender, recipient) -> None:
    manager = fast_stack.manager
    fast_stack.ledger.confirm("0x" + f"{1:064x}", block_number=900)

    tx = await manager.submit(sender, recipient, 10**18)

    async def confirmed() -> bool:
        current = await manager.get_transaction(tx.id)
        return current is not None and current.status == TransactionStatus.CONFIRMED

    await _eventually(confirmed)
    assert (await manager.get_transaction(tx.hash)).block_number == 900
    assert await manager.get_pending() == []
    assert [t.id for t in manager.get_history()] == [tx.id]


async def test_watch_attaches_user_callbacks_after_state_update(
    fast_stack: SimpleNamespace, sender, recipient
) -> None:
    manager = fast_stack.manager
    fast_stack.ledger.confirm("0x" + f"{1:064x}")
    seen: list[Any] = []
    done = asyncio.Event()
    tx = await manager.submit(sender, recipient, 1)

    async def on_resolved(receipt: Any) -> None:
        seen.append((await manager.get_transaction(tx.id)).status)
        done.set()

    assert manager.watch(tx.hash, on_resolved=on_resolved) is False
    await asyncio.wait_for(done.wait(), timeout=2)

    assert seen == [TransactionStatus.CONFIRMED]


async def test_exhausted_transaction_stays_pending_and_can_be_rewatched(
    fast_stack: SimpleNamespace, sender, recipient
) -> None:
    manager = fast_stack.manager
    tx = await manager.submit(sender, recipient, 1)

    async def exhausted() -> bool:
        return not fast_stack.watchers.is_watching(tx.hash)

    await _eventually(exhausted)
    assert [p.id for p in await manager.get_pending()] == [tx.id]

    fast_stack.ledger.confirm(tx.hash)
    assert await manager.rewatch_pending() == 1

    async def confirmed() -> bool:
        return (await manager.get_transaction(tx.id)).status == TransactionStatus.CONFIRMED

    await _eventually(confirmed)
    assert await manager.rewatch_pending() == 0


async def test_watch_external_hash_and_stop_watching(stack: SimpleNamespace) -> None:
    tx_hash = "0x" + "cc" * 32

    assert stack.manager.watch(tx_hash) is True
    assert stack.manager.stop_watching(tx_hash) is True
    assert stack.manager.stop_watching(tx_hash) is False


async def test_estimate_fee_validates_and_estimates(stack: SimpleNamespace, sender, recipient) -> None:
    stack.ledger.gas_estimate = 50_000

    estimate = await stack.manager.estimate_fee(sender, recipient, "0.1", "0x01")

    assert estimate.gas_limit == 50_000
    assert estimate.total_cost == 50_000 * 20 * GWEI
    assert stack.ledger.estimate_calls[0]["value"] == hex(10**17)
    with pytest.raises(ValidationError) as exc_info:
        await stack.manager.estimate_fee(sender, "0xbad", 1)
    assert exc_info.value.field == "recipient"


async def test_history_queries_export_and_clear(stack: SimpleNamespace, sender, recipient) -> None:
    manager = stack.manager
    first = await manager.submit(sender, recipient, 1)
    second = await manager.submit(sender, OTHER, 2)
    await stack.state.apply_receipt(stack.ledger.confirm(first.hash))
    await stack.state.apply_receipt(stack.ledger.confirm(second.hash, success=False))

    assert [t.id for t in manager.get_history()] == [second.id, first.id]
    assert [t.id for t in manager.get_history(address=OTHER)] == [second.id]
    assert [t.id for t in manager.get_history(limit=1, offset=1)] == [first.id]
    assert [row["id"] for row in json.loads(manager.export_history())] == [second.id, first.id]
    assert manager.export_history("csv").splitlines()[0] == "ID,Hash,From,To,Value,Status,Block,Timestamp"

    await manager.clear_history()

    assert manager.get_history() == []


async def test_batch_cancel_and_speed_up_delegate(stack: SimpleNamespace, sender, recipient) -> None:
    manager = stack.manager
    batch = await manager.submit_batch(sender, [BatchItem(recipient=recipient, value=1)] * 2)
    first, second = batch.transactions

    cancelled = await manager.cancel(first.id)
    faster = await manager.speed_up(second.id, 2)

    assert cancelled.nonce == first.nonce
    assert faster.gas_price == 40 * GWEI
    assert (await manager.get_batch(batch.id)).status.value == "failed"


async def test_lifecycle_loads_and_saves_history(
    stack_factory: Callable[..., SimpleNamespace], sender, recipient
) -> None:
    stack = stack_factory()
    async with stack.manager as manager:
        tx = await manager.submit(sender, recipient, 1)
        await stack.state.apply_receipt(stack.ledger.confirm(tx.hash))

    assert len(stack.watchers) == 0
    assert await stack.kv.get("tx_history_default") is not None

    restarted = stack_factory()
    await restarted.kv.set("tx_history_default", await stack.kv.get("tx_history_default"))
    await restarted.manager.start()

    assert [t.id for t in restarted.manager.get_history()] == [tx.id]
    await restarted.manager.shutdown()


async def test_start_with_user_id_reads_that_users_history(stack: SimpleNamespace) -> None:
    await stack.manager.start("bob")

    assert stack.history.user_id == "bob"
    await stack.manager.shutdown()
    assert "tx_history_bob" in stack.kv.keys()


async def test_sweep_confirms_transaction_after_its_watcher_gave_up(
    stack_factory: Callable[..., SimpleNamespace], sender, recipient
) -> None:
    stack = stack_factory(
        watcher={"poll_interval_seconds": 0, "max_retries": 2, "sweep_interval_seconds": 0.01}
    )
    manager = stack.manager
    await manager.start()
    assert manager.is_sweeping

    tx = await manager.submit(sender, recipient, 1)

    async def exhausted() -> bool:
        return not stack.watchers.is_watching(tx.hash)

    await _eventually(exhausted)
    stack.ledger.confirm(tx.hash)

    async def confirmed() -> bool:
        return (await manager.get_transaction(tx.id)).status == TransactionStatus.CONFIRMED

    await _eventually(confirmed, delay=0.01)
    await manager.shutdown()
    assert not manager.is_sweeping


async def test_sweep_is_not_started_when_disabled(
    stack_factory: Callable[..., SimpleNamespace],
) -> None:
    stack = stack_factory(watcher={"sweep_interval_seconds": None})

    await stack.manager.start()

    assert not stack.manager.is_sweeping
    assert stack.manager.start_sweep(60) is True
    assert stack.manager.start_sweep(60) is False
    await stack.manager.shutdown()
    assert not stack.manager.is_sweeping


async def test_get_transaction_prefers_tracked_state(stack: SimpleNamespace, sender, recipient) -> None:
    tx = await stack.manager.submit(sender, recipient, 1)
    stack.ledger.transactions[tx.hash] = tx.with_confirmed(5)

    assert await stack.manager.get_transaction(tx.id) == tx
    assert await stack.manager.get_transaction(tx.hash) == tx


async def test_get_transaction_falls_back_to_ledger_for_unknown_hash(
    stack: SimpleNamespace, tx_factory: Callable[..., Any]
) -> None:
    external_hash = "0x" + "ab" * 32
    external = tx_factory(tx_hash=external_hash).with_confirmed(77)
    stack.ledger.transactions[external_hash] = external

    found = await stack.manager.get_transaction(external_hash)

    assert found == external
    assert await stack.state.find(external_hash) is None
    assert await stack.manager.get_transaction("0x" + "cd" * 32) is None
    assert await stack.manager.get_transaction("not-a-hash") is None
