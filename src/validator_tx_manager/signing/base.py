# -*- coding: utf-8 -*-
"""Abstract interface for the signing collaborator. Key material never enters this package."""

from __future__ import annotations

from abc import ABC, abstractmethod

from validator_tx_manager.models.transaction import UnsignedTransaction


class ISigner(ABC):
    """Turns an unsigned transaction into a broadcastable payload."""

    @abstractmethod
    async def sign(self, unsigned: UnsignedTransaction) -> str:
        """Return the signed, serialized transaction as a 0x-hex string.

        Implementations raise any exception to refuse signing; the submitter
        records the transaction as failed.
        """
        ...
