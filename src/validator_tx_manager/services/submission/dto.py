"""Models for transaction submission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SubmitOptions:
    """Caller overrides for one submission. Unset fields are resolved from the ledger."""

    nonce: Optional[int] = None
    gas_limit: Optional[int] = None
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    chain_id: Optional[int] = None

    @property
    def has_fee_override(self) -> bool:
        return (
            self.gas_price is not None
            or self.max_fee_per_gas is not None
            or self.max_priority_fee_per_gas is not None
        )
