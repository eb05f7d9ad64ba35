# -*- coding: utf-8 -*-
"""WatcherPool: one polling task per submitted transaction hash until a receipt shows up."""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal, Optional, Union

import structlog

from validator_tx_manager.events.transactions import WatcherStoppedEvent
from validator_tx_manager.exceptions import LedgerAPIError

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from validator_tx_manager.clients.ledger.base import ILedgerClient
    from validator_tx_manager.config import Settings
    from validator_tx_manager.models.receipt import Receipt

ResolvedCallback = Callable[["Receipt"], Union[Awaitable[None], None]]
ExhaustedCallback = Callable[[str], Union[Awaitable[None], None]]
StopReason = Literal["resolved", "exhausted", "stopped"]


@dataclass(slots=True, eq=False)
class Watcher:
    """Polling state for one hash. Lives in the pool only while it is polling."""

    tx_hash: str
    retry_count: int = 0
    """Polls that returned no receipt (or failed)."""

    attempts: int = 0
    stopped: bool = False
    in_flight: bool = False
    task: Optional[asyncio.Task[None]] = None
    on_resolved: list[ResolvedCallback] = field(default_factory=list)
    on_exhausted: list[ExhaustedCallback] = field(default_factory=list)


def _key(tx_hash: str) -> str:
    return tx_hash.strip().lower()


class WatcherPool:
    """Polls get_receipt every watcher.poll_interval_seconds, at most watcher.max_retries times per hash.

    States: unregistered -> polling -> resolved | exhausted, or stopped by the
    caller. Each poll happens after the interval elapses; a failed query
    counts as a miss. stop() cancels the pending sleep but never an in-flight
    poll; the response of such a poll is discarded.
    """

    def __init__(
        self,
        ledger_client: "ILedgerClient",
        settings: "Settings",
        event_bus: Optional[Any] = None,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ledger = ledger_client
        self._poll_interval = settings.watcher.poll_interval_seconds
        self._max_retries = settings.watcher.max_retries
        self._event_bus: Optional["EventBus"] = event_bus
        self._watchers: dict[str, Watcher] = {}
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def watch(
        self,
        tx_hash: str,
        on_resolved: Optional[ResolvedCallback] = None,
        on_exhausted: Optional[ExhaustedCallback] = None,
    ) -> bool:
        """Start polling tx_hash.

        If tx_hash is already watched no second poller is started; the given
        callbacks are attached to the existing watcher.

        Returns:
            True if a new watcher was started, False if one already existed.

        Raises:
            ValueError: If tx_hash is empty.
        """
        key = _key(tx_hash)
        if not key:
            raise ValueError("tx_hash must be non-empty")
        existing = self._watchers.get(key)
        if existing is not None:
            if on_resolved is not None:
                existing.on_resolved.append(on_resolved)
            if on_exhausted is not None:
                existing.on_exhausted.append(on_exhausted)
            return False

        watcher = Watcher(tx_hash=tx_hash.strip())
        if on_resolved is not None:
            watcher.on_resolved.append(on_resolved)
        if on_exhausted is not None:
            watcher.on_exhausted.append(on_exhausted)
        self._watchers[key] = watcher
        watcher.task = asyncio.create_task(self._run(watcher), name=f"watch:{watcher.tx_hash}")
        self._logger.debug(
            "watcher_started",
            tx_hash=watcher.tx_hash,
            poll_interval_seconds=self._poll_interval,
            max_retries=self._max_retries,
        )
        return True

    def stop(self, tx_hash: str) -> bool:
        """Deregister the watcher for tx_hash. A second call is a no-op.

        Returns:
            True if a watcher was stopped.
        """
        watcher = self._watchers.pop(_key(tx_hash), None)
        if watcher is None:
            return False
        watcher.stopped = True
        if watcher.task is not None and not watcher.in_flight:
            watcher.task.cancel()
        self._emit_stopped(watcher, "stopped")
        return True

    async def stop_all(self) -> None:
        """Stop every watcher and wait for their tasks to finish."""
        watchers = list(self._watchers.values())
        for watcher in watchers:
            self.stop(watcher.tx_hash)
        tasks = [w.task for w in watchers if w.task is not None]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._logger.debug("watchers_stopped_all", count=len(watchers))

    def is_watching(self, tx_hash: str) -> bool:
        return _key(tx_hash) in self._watchers

    def active_hashes(self) -> list[str]:
        return [w.tx_hash for w in self._watchers.values()]

    def __len__(self) -> int:
        return len(self._watchers)

    async def _run(self, watcher: Watcher) -> None:
        key = _key(watcher.tx_hash)
        while True:
            await asyncio.sleep(self._poll_interval)
            if watcher.stopped:
                return
            watcher.in_flight = True
            try:
                receipt = await self._poll(watcher)
            finally:
                watcher.in_flight = False
            if watcher.stopped or self._watchers.get(key) is not watcher:
                self._logger.debug("watcher_late_response_discarded", tx_hash=watcher.tx_hash)
                return

            if receipt is not None:
                self._deregister(watcher, "resolved")
                for resolved_cb in watcher.on_resolved:
                    await self._invoke(resolved_cb, receipt, watcher)
                return

            watcher.retry_count += 1
            if watcher.retry_count >= self._max_retries:
                self._logger.warning(
                    "watcher_exhausted",
                    tx_hash=watcher.tx_hash,
                    attempts=watcher.attempts,
                )
                self._deregister(watcher, "exhausted")
                for exhausted_cb in watcher.on_exhausted:
                    await self._invoke(exhausted_cb, watcher.tx_hash, watcher)
                return

    async def _poll(self, watcher: Watcher) -> Optional["Receipt"]:
        """One receipt query. Errors are logged and count as a miss."""
        watcher.attempts += 1
        try:
            return await self._ledger.get_receipt(watcher.tx_hash)
        except LedgerAPIError as e:
            self._logger.warning(
                "watcher_poll_failed",
                tx_hash=watcher.tx_hash,
                attempt=watcher.attempts,
                error_type=type(e).__name__,
                error_message=str(e),
            )
        except Exception as e:
            self._logger.exception(
                "watcher_poll_error",
                tx_hash=watcher.tx_hash,
                attempt=watcher.attempts,
                error=str(e),
            )
        return None

    async def _invoke(self, callback: Callable[[Any], Any], arg: Any, watcher: Watcher) -> None:
        try:
            result = callback(arg)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._logger.exception(
                "watcher_callback_error",
                tx_hash=watcher.tx_hash,
                error=str(e),
            )

    def _deregister(self, watcher: Watcher, reason: StopReason) -> None:
        key = _key(watcher.tx_hash)
        if self._watchers.get(key) is watcher:
            del self._watchers[key]
        self._emit_stopped(watcher, reason)

    def _emit_stopped(self, watcher: Watcher, reason: StopReason) -> None:
        self._logger.debug(
            "watcher_stopped",
            tx_hash=watcher.tx_hash,
            reason=reason,
            attempts=watcher.attempts,
        )
        if self._event_bus is None:
            return
        self._event_bus.dispatch(
            WatcherStoppedEvent(tx_hash=watcher.tx_hash, reason=reason, attempts=watcher.attempts)
        )
