# -*- coding: utf-8 -*-
"""Abstract interface for the fee-distribution collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod


class IFeeDistributor(ABC):
    """Told about the fee of each accepted transaction. Callers never wait on or fail because of it."""

    @abstractmethod
    async def distribute(self, amount: int, policy: str, tx_ref: str) -> None:
        """Report amount (smallest units) paid by tx_ref, split according to policy."""
        ...
