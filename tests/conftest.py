# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Optional

import pytest

from validator_tx_manager.clients.ledger.base import ILedgerClient
from validator_tx_manager.config import Settings
from validator_tx_manager.models.gas_estimate import FeeParameters
from validator_tx_manager.models.receipt import Receipt
from validator_tx_manager.models.transaction import Transaction, UnsignedTransaction
from validator_tx_manager.persistence.kv import InMemoryKeyValueStore
from validator_tx_manager.persistence.repositories.in_memory import (
    InMemoryPendingTransactionRepository,
)
from validator_tx_manager.services.batch import BatchCoordinator
from validator_tx_manager.services.fees import FeeEstimator
from validator_tx_manager.services.history import TransactionHistoryStore
from validator_tx_manager.services.nonce import NonceTracker
from validator_tx_manager.services.replacement import ReplacementEngine
from validator_tx_manager.services.state import TransactionStateStore
from validator_tx_manager.services.submission import TransactionSubmitter
from validator_tx_manager.services.transaction_manager import TransactionManager
from validator_tx_manager.services.watchers import WatcherPool
from validator_tx_manager.signing.base import ISigner

GWEI = 10**9


def tx_hash_for(n: int) -> str:
    """Deterministic 0x transaction hash (66 chars)."""
    return "0x" + f"{n:064x}"


class FakeLedgerClient(ILedgerClient):
    """In-memory ledger double. Set the *_error attributes to make calls fail."""

    def __init__(self) -> None:
        self.nonces: dict[str, int] = {}
        self.fee_params = FeeParameters(gas_price=20 * GWEI)
        self.gas_estimate = 21_000
        self.receipts: dict[str, Optional[Receipt]] = {}
        self.transactions: dict[str, Transaction] = {}
        self.submit_error: Optional[Exception] = None
        self.estimate_error: Optional[Exception] = None
        self.fee_error: Optional[Exception] = None
        self.nonce_error: Optional[Exception] = None
        self.receipt_error: Optional[Exception] = None
        self.submitted: list[str] = []
        self.receipt_calls: list[str] = []
        self.estimate_calls: list[dict[str, Any]] = []
        self.fee_calls = 0
        self.nonce_calls = 0
        self._counter = 0

    async def submit(self, signed_payload: str) -> str:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(signed_payload)
        self._counter += 1
        return tx_hash_for(self._counter)

    async def get_transaction(self, tx_hash: str) -> Optional[Transaction]:
        return self.transactions.get(tx_hash)

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        self.receipt_calls.append(tx_hash)
        if self.receipt_error is not None:
            raise self.receipt_error
        return self.receipts.get(tx_hash.lower())

    async def estimate_gas(self, call: dict[str, Any]) -> int:
        self.estimate_calls.append(call)
        if self.estimate_error is not None:
            raise self.estimate_error
        return self.gas_estimate

    async def get_fee_parameters(self) -> FeeParameters:
        self.fee_calls += 1
        if self.fee_error is not None:
            raise self.fee_error
        return self.fee_params

    async def get_nonce(self, address: str) -> int:
        self.nonce_calls += 1
        if self.nonce_error is not None:
            raise self.nonce_error
        return self.nonces.get(address.lower(), 0)

    def confirm(self, tx_hash: str, *, block_number: int = 100, success: bool = True) -> Receipt:
        receipt = Receipt(transaction_hash=tx_hash, block_number=block_number, status=success, gas_used=21_000)
        self.receipts[tx_hash.lower()] = receipt
        return receipt


class FakeSigner(ISigner):
    """Signer double: returns a payload derived from the nonce, or raises `error`."""

    def __init__(self) -> None:
        self.signed: list[UnsignedTransaction] = []
        self.error: Optional[Exception] = None

    async def sign(self, unsigned: UnsignedTransaction) -> str:
        if self.error is not None:
            raise self.error
        self.signed.append(unsigned)
        return "0xf86c" + unsigned.nonce.to_bytes(4, "big").hex()


class FakeEventBus:
    """Minimal event bus fake for unit tests."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[Any]] = {}
        self.dispatched: list[Any] = []

    def on(self, event_type: type[Any], handler: Any) -> None:
        key = event_type.__name__
        self.handlers.setdefault(key, []).append(handler)

    def dispatch(self, event: Any) -> None:
        self.dispatched.append(event)

    def of_type(self, event_type: type[Any]) -> list[Any]:
        return [e for e in self.dispatched if isinstance(e, event_type)]


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


_TEST_SETTINGS: dict[str, Any] = {
    "ledger": {"chain_id": 1, "rpc_url": "http://node.test:8545"},
    "watcher": {"poll_interval_seconds": 60.0, "max_retries": 3},
    "logging": {"log_to_console": False, "log_to_file": False},
}


@pytest.fixture
def sender() -> str:
    """Default sending account used by tests."""
    return "0x2d27b6e21b3d4d7c9a43fdf58f12345678907706"


@pytest.fixture
def recipient() -> str:
    """Default receiving account used by tests."""
    return "0x8ba1f109551bd432803012645ac136ddd64dba72"


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build Settings with test defaults (chain id 1, slow watchers) and nested overrides."""

    def _build(**overrides: Any) -> Settings:
        return Settings.from_env(**_deep_merge(_TEST_SETTINGS, overrides))

    return _build


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()


@pytest.fixture
def ledger() -> FakeLedgerClient:
    return FakeLedgerClient()


@pytest.fixture
def signer() -> FakeSigner:
    return FakeSigner()


@pytest.fixture
def fake_event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def tx_factory(sender: str, recipient: str, now_utc: datetime) -> Callable[..., Transaction]:
    """Build a PENDING transaction (unsubmitted unless tx_hash is given)."""

    def _build(**overrides: Any) -> Transaction:
        tx_hash = overrides.pop("tx_hash", None)
        tx = Transaction.create(
            overrides.pop("sender", sender),
            overrides.pop("recipient", recipient),
            overrides.pop("value", 10**18),
            chain_id=overrides.pop("chain_id", 1),
            nonce=overrides.pop("nonce", 0),
            gas_limit=overrides.pop("gas_limit", 21_000),
            gas_price=overrides.pop("gas_price", 20 * GWEI),
            max_fee_per_gas=overrides.pop("max_fee_per_gas", None),
            max_priority_fee_per_gas=overrides.pop("max_priority_fee_per_gas", None),
            data=overrides.pop("data", None),
            id=overrides.pop("id", None),
            created_at=overrides.pop("created_at", now_utc),
        )
        return tx.with_hash(tx_hash) if tx_hash else tx

    return _build


@pytest.fixture
async def stack_factory(
    ledger: FakeLedgerClient,
    signer: FakeSigner,
    fake_event_bus: FakeEventBus,
    settings_factory: Callable[..., Settings],
) -> AsyncIterator[Callable[..., SimpleNamespace]]:
    """Wire the full service graph around the ledger/signer/bus doubles. Sweeps and watchers are stopped on teardown."""
    built: list[SimpleNamespace] = []

    def _build(fee_distributor: Any = None, **overrides: Any) -> SimpleNamespace:
        cfg = settings_factory(**overrides)
        kv = InMemoryKeyValueStore()
        pending = InMemoryPendingTransactionRepository()
        history = TransactionHistoryStore(kv_store=kv, settings=cfg)
        state = TransactionStateStore(
            pending_repository=pending,
            history_store=history,
            settings=cfg,
            event_bus=fake_event_bus,
        )
        nonces = NonceTracker(ledger_client=ledger)
        fees = FeeEstimator(ledger_client=ledger, settings=cfg)
        watchers = WatcherPool(ledger_client=ledger, settings=cfg, event_bus=fake_event_bus)
        submitter = TransactionSubmitter(
            ledger_client=ledger,
            signer=signer,
            nonce_tracker=nonces,
            fee_estimator=fees,
            state_store=state,
            watcher_pool=watchers,
            settings=cfg,
            fee_distributor=fee_distributor,
        )
        replacement = ReplacementEngine(state_store=state, submitter=submitter, settings=cfg)
        batches = BatchCoordinator(
            submitter=submitter,
            nonce_tracker=nonces,
            state_store=state,
            settings=cfg,
            event_bus=fake_event_bus,
        )
        manager = TransactionManager(
            submitter=submitter,
            replacement_engine=replacement,
            batch_coordinator=batches,
            fee_estimator=fees,
            watcher_pool=watchers,
            state_store=state,
            history_store=history,
            settings=cfg,
            ledger_client=ledger,
        )
        stack = SimpleNamespace(
            settings=cfg,
            ledger=ledger,
            signer=signer,
            bus=fake_event_bus,
            kv=kv,
            pending=pending,
            history=history,
            state=state,
            nonces=nonces,
            fees=fees,
            watchers=watchers,
            submitter=submitter,
            replacement=replacement,
            batches=batches,
            manager=manager,
        )
        built.append(stack)
        return stack

    yield _build
    for built_stack in built:
        await built_stack.manager.stop_sweep()
        await built_stack.watchers.stop_all()


@pytest.fixture
def stack(stack_factory: Callable[..., SimpleNamespace]) -> SimpleNamespace:
    """Service graph with default test settings."""
    return stack_factory()
