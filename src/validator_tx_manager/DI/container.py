# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from typing import Optional

from dependency_injector import containers, providers

from validator_tx_manager.clients.fee_distribution import HttpFeeDistributor, IFeeDistributor
from validator_tx_manager.clients.http import AsyncHttpClient
from validator_tx_manager.clients.ledger import JsonRpcLedgerClient
from validator_tx_manager.config import Settings, get_settings
from validator_tx_manager.events.bus import get_event_bus
from validator_tx_manager.notifications.notification_manager import NotificationService
from validator_tx_manager.notifications.strategies.base import BaseNotificationStrategy
from validator_tx_manager.notifications.strategies.console import ConsoleNotifier
from validator_tx_manager.notifications.stylers import TransactionNotificationStyler
from validator_tx_manager.persistence.kv import FileKeyValueStore, IKeyValueStore, InMemoryKeyValueStore
from validator_tx_manager.persistence.repositories.in_memory import InMemoryPendingTransactionRepository
from validator_tx_manager.services.batch import BatchCoordinator
from validator_tx_manager.services.fees import FeeEstimator
from validator_tx_manager.services.history import TransactionHistoryStore
from validator_tx_manager.services.nonce import NonceTracker
from validator_tx_manager.services.notifications import TransactionStatusNotifier
from validator_tx_manager.services.replacement import ReplacementEngine
from validator_tx_manager.services.state import TransactionStateStore
from validator_tx_manager.services.submission import TransactionSubmitter
from validator_tx_manager.services.transaction_manager import TransactionManager
from validator_tx_manager.services.watchers import WatcherPool
from validator_tx_manager.signing.base import ISigner


def _build_kv_store(settings: Settings) -> IKeyValueStore:
    """File-backed store when history.storage_dir is set, in-memory otherwise."""
    if settings.history.storage_dir:
        return FileKeyValueStore(settings.history.storage_dir)
    return InMemoryKeyValueStore()


def _build_fee_distributor(
    settings: Settings,
    http_client: AsyncHttpClient,
) -> Optional[IFeeDistributor]:
    if not settings.fee_distribution.enabled:
        return None
    return HttpFeeDistributor(http_client=http_client, settings=settings)


def _build_notification_notifiers(
    settings: Settings,
    styler: TransactionNotificationStyler,
) -> list[BaseNotificationStrategy]:
    notifiers: list[BaseNotificationStrategy] = []
    if settings.console.enabled:
        notifiers.append(ConsoleNotifier(settings=settings, styler=styler))
    return notifiers


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, ledger client, services and notifications.

    The signer is supplied by the host application:

        container = Container(signer=providers.Object(my_signer))
    """

    config = providers.Callable(get_settings)

    signer = providers.Dependency(instance_of=ISigner)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    ledger_client = providers.Singleton(
        JsonRpcLedgerClient,
        http_client=http_client,
        settings=config,
    )

    fee_distributor = providers.Singleton(_build_fee_distributor, config, http_client)

    event_bus = providers.Callable(get_event_bus, settings=config)

    kv_store = providers.Singleton(_build_kv_store, config)

    pending_repository = providers.Singleton(InMemoryPendingTransactionRepository)

    history_store = providers.Singleton(
        TransactionHistoryStore,
        kv_store=kv_store,
        settings=config,
    )

    state_store = providers.Singleton(
        TransactionStateStore,
        pending_repository=pending_repository,
        history_store=history_store,
        settings=config,
        event_bus=event_bus,
    )

    nonce_tracker = providers.Singleton(
        NonceTracker,
        ledger_client=ledger_client,
    )

    fee_estimator = providers.Singleton(
        FeeEstimator,
        ledger_client=ledger_client,
        settings=config,
    )

    watcher_pool = providers.Singleton(
        WatcherPool,
        ledger_client=ledger_client,
        settings=config,
        event_bus=event_bus,
    )

    submitter = providers.Singleton(
        TransactionSubmitter,
        ledger_client=ledger_client,
        signer=signer,
        nonce_tracker=nonce_tracker,
        fee_estimator=fee_estimator,
        state_store=state_store,
        watcher_pool=watcher_pool,
        settings=config,
        fee_distributor=fee_distributor,
    )

    replacement_engine = providers.Singleton(
        ReplacementEngine,
        state_store=state_store,
        submitter=submitter,
        settings=config,
    )

    batch_coordinator = providers.Singleton(
        BatchCoordinator,
        submitter=submitter,
        nonce_tracker=nonce_tracker,
        state_store=state_store,
        settings=config,
        event_bus=event_bus,
    )

    transaction_manager = providers.Singleton(
        TransactionManager,
        submitter=submitter,
        replacement_engine=replacement_engine,
        batch_coordinator=batch_coordinator,
        fee_estimator=fee_estimator,
        watcher_pool=watcher_pool,
        state_store=state_store,
        history_store=history_store,
        settings=config,
        ledger_client=ledger_client,
    )

    notification_styler = providers.Singleton(
        TransactionNotificationStyler,
        decimals=providers.Callable(lambda s: s.ledger.decimals, config),
    )

    notification_service = providers.Singleton(
        NotificationService,
        notifiers=providers.Callable(_build_notification_notifiers, config, notification_styler),
    )

    transaction_status_notifier = providers.Singleton(
        TransactionStatusNotifier,
        notification_service=notification_service,
        event_bus=event_bus,
    )
