# -*- coding: utf-8 -*-
"""Receipt: the node's execution record for a submitted transaction.

Validated once at the ledger-client boundary so the rest of the code never
handles raw RPC dicts.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _quantity(value: Any) -> Any:
    """Accept 0x-hex strings, decimal strings and ints for integer fields."""
    if isinstance(value, str):
        s = value.strip()
        if s.lower().startswith("0x"):
            return int(s, 16)
        return int(s)
    return value


class Receipt(BaseModel):
    """Validated transaction receipt."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    transaction_hash: str = Field(min_length=3)
    block_number: int = Field(ge=0)
    block_hash: Optional[str] = None
    status: bool
    """True when execution succeeded, False when it reverted."""
    gas_used: int = Field(default=0, ge=0)
    effective_gas_price: Optional[int] = Field(default=None, ge=0)
    confirmations: int = Field(default=1, ge=0)

    @field_validator("block_number", "gas_used", "effective_gas_price", "confirmations", mode="before")
    @classmethod
    def _parse_quantity(cls, value: Any) -> Any:
        return _quantity(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        parsed = _quantity(value)
        if parsed not in (0, 1):
            raise ValueError(f"receipt status must be 0 or 1, got {value!r}")
        return parsed == 1

    @property
    def succeeded(self) -> bool:
        return self.status

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> Receipt:
        """Build from an eth_getTransactionReceipt result (camelCase, hex quantities).

        Raises:
            pydantic.ValidationError: If the shape is not a receipt.
        """
        return cls.model_validate(
            {
                "transaction_hash": data.get("transactionHash"),
                "block_number": data.get("blockNumber"),
                "block_hash": data.get("blockHash"),
                "status": data.get("status"),
                "gas_used": data.get("gasUsed", 0),
                "effective_gas_price": data.get("effectiveGasPrice"),
                "confirmations": data.get("confirmations", 1),
            }
        )
