# -*- coding: utf-8 -*-
"""Console notifier: writes rendered transaction updates to a text stream."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Optional, TextIO

from validator_tx_manager.notifications.strategies.base import BaseNotificationStrategy

if TYPE_CHECKING:  # pragma: no cover
    from validator_tx_manager.config import Settings
    from validator_tx_manager.notifications.types import NotificationStyler


class ConsoleNotifier(BaseNotificationStrategy):
    """Print notifications to stdout (or any text stream), each followed by a blank line."""

    def __init__(
        self,
        settings: "Settings",
        styler: Optional["NotificationStyler"] = None,
        *,
        stream: Optional[TextIO] = None,
    ) -> None:
        super().__init__(settings, styler)
        self._stream = stream

    @property
    def enabled(self) -> bool:
        return self.settings.console.enabled

    async def deliver(self, body: str) -> None:
        print(body, end="\n\n", file=self._stream or sys.stdout, flush=True)
