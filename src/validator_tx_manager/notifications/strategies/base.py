# -*- coding: utf-8 -*-
"""Base class for channels that deliver transaction notifications."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

from validator_tx_manager.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from validator_tx_manager.config.config import Settings
    from validator_tx_manager.notifications.types import NotificationStyler


class BaseNotificationStrategy(ABC):
    """A channel that renders each message with an optional styler and delivers the text.

    Subclasses say whether they are enabled in settings and how a rendered
    body is written. Messages sent while the channel is not running are ignored.
    """

    def __init__(self, settings: "Settings", styler: Optional["NotificationStyler"] = None) -> None:
        self.settings = settings
        self._styler = styler
        self._running = False

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether settings turn this channel on."""

    @abstractmethod
    async def deliver(self, body: str) -> None:
        """Write one rendered notification."""

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = self.enabled

    async def shutdown(self) -> None:
        self._running = False

    def render(self, message: NotificationMessage) -> str:
        return self._styler.render(message) if self._styler else message.message

    async def send_notification(self, message: NotificationMessage) -> None:
        if not self._running:
            return
        await self.deliver(self.render(message))
