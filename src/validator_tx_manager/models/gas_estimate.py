"""Fee parameters reported by the node and the gas estimate built from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from validator_tx_manager.models.transaction import _check_fee_model, compute_fee


@dataclass(frozen=True, slots=True)
class FeeParameters:
    """Current per-gas pricing: gas_price (legacy) or the max-fee/priority-fee pair."""

    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    def __post_init__(self) -> None:
        _check_fee_model(self.gas_price, self.max_fee_per_gas, self.max_priority_fee_per_gas)

    @property
    def is_eip1559(self) -> bool:
        return self.max_fee_per_gas is not None


@dataclass(frozen=True, slots=True)
class GasEstimate:
    """Gas limit plus pricing for one prospective transaction. Never persisted."""

    gas_limit: int
    fee_parameters: FeeParameters

    @property
    def gas_price(self) -> Optional[int]:
        return self.fee_parameters.gas_price

    @property
    def max_fee_per_gas(self) -> Optional[int]:
        return self.fee_parameters.max_fee_per_gas

    @property
    def max_priority_fee_per_gas(self) -> Optional[int]:
        return self.fee_parameters.max_priority_fee_per_gas

    @property
    def total_cost(self) -> int:
        """gas_limit * gas_price, or gas_limit * max_fee_per_gas for the EIP-1559 model."""
        return compute_fee(self.gas_limit, self.gas_price, self.max_fee_per_gas)
