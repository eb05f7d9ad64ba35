# -*- coding: utf-8 -*-
"""NonceTracker: next usable nonce for a sender."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from validator_tx_manager.exceptions import LedgerAPIError, ValidationError
from validator_tx_manager.utils.validation import mask_address

if TYPE_CHECKING:
    from validator_tx_manager.clients.ledger.base import ILedgerClient


class NonceTracker:
    """Resolves the nonce for the next transaction of a sender.

    The ledger's pending transaction count is authoritative; nothing is
    cached locally, so transactions sent from elsewhere are picked up.
    """

    def __init__(
        self,
        ledger_client: "ILedgerClient",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ledger = ledger_client
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def next_nonce(self, sender: str, *, override: Optional[int] = None) -> int:
        """Return the nonce for the next transaction sent by sender.

        Args:
            sender: 0x account address.
            override: Caller-chosen nonce; returned as-is without a ledger call.

        Returns:
            override when given, else the ledger's pending transaction count.
            0 when the ledger cannot be queried.

        Raises:
            ValidationError: If override is negative.
        """
        if override is not None:
            if isinstance(override, bool) or not isinstance(override, int) or override < 0:
                raise ValidationError(f"nonce must be a non-negative integer, got {override!r}", field="nonce")
            return override
        try:
            return await self._ledger.get_nonce(sender)
        except LedgerAPIError as e:
            self._logger.warning(
                "nonce_lookup_failed",
                sender_masked=mask_address(sender),
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return 0
