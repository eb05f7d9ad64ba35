# -*- coding: utf-8 -*-
"""FeeEstimator: gas limit and fee parameters for a prospective transaction."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog
from cachetools import TTLCache
from structlog.contextvars import bound_contextvars

from validator_tx_manager.exceptions import EstimationError, LedgerAPIError
from validator_tx_manager.models.gas_estimate import FeeParameters, GasEstimate
from validator_tx_manager.utils.validation import mask_address

if TYPE_CHECKING:
    from validator_tx_manager.clients.ledger.base import ILedgerClient
    from validator_tx_manager.config import Settings

_FEE_PARAMETERS_KEY = ("fee_parameters",)


class FeeEstimator:
    """Queries the ledger for gas limits and current pricing.

    Both gas-limit estimates (per call shape) and fee parameters are cached
    in a cachetools.TTLCache for settings.fees.estimate_cache_ttl_seconds.
    """

    def __init__(
        self,
        ledger_client: "ILedgerClient",
        settings: "Settings",
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._ledger = ledger_client
        self._settings = settings
        self._cache: TTLCache[tuple[Any, ...], Any] = TTLCache(
            maxsize=max(1, settings.fees.estimate_cache_size),
            ttl=settings.fees.estimate_cache_ttl_seconds,
        )
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def default_gas_limit(self, data: Optional[bytes]) -> int:
        """Conservative gas limit: transfer limit for plain transfers, contract default otherwise."""
        if data:
            return self._settings.fees.default_contract_gas_limit
        return self._settings.fees.transfer_gas_limit

    async def estimate_gas_limit(
        self,
        sender: str,
        recipient: str,
        value: int,
        data: Optional[bytes] = None,
    ) -> int:
        """Gas limit the node expects this call to consume.

        Raises:
            EstimationError: If the ledger query fails.
        """
        key = ("gas", sender.lower(), recipient.lower(), value, data or b"")
        cached = self._cache.get(key)
        if cached is not None:
            return int(cached)
        call: dict[str, Any] = {
            "from": sender,
            "to": recipient,
            "value": hex(value),
        }
        if data:
            call["data"] = "0x" + data.hex()
        try:
            gas_limit = await self._ledger.estimate_gas(call)
        except LedgerAPIError as e:
            raise EstimationError(f"Gas estimation failed: {e}", cause=e) from e
        self._cache[key] = gas_limit
        return gas_limit

    async def fee_parameters(self) -> FeeParameters:
        """Current gas price or max-fee pair.

        Raises:
            EstimationError: If the ledger query fails.
        """
        cached = self._cache.get(_FEE_PARAMETERS_KEY)
        if cached is not None:
            return cached
        try:
            params = await self._ledger.get_fee_parameters()
        except LedgerAPIError as e:
            raise EstimationError(f"Fee parameter query failed: {e}", cause=e) from e
        self._cache[_FEE_PARAMETERS_KEY] = params
        return params

    async def estimate(
        self,
        sender: str,
        recipient: str,
        value: int,
        data: Optional[bytes] = None,
    ) -> GasEstimate:
        """Gas limit and pricing for one prospective transaction.

        Raises:
            EstimationError: If either ledger query fails.
        """
        with bound_contextvars(sender_masked=mask_address(sender), recipient_masked=mask_address(recipient)):
            gas_limit = await self.estimate_gas_limit(sender, recipient, value, data)
            params = await self.fee_parameters()
            estimate = GasEstimate(gas_limit=gas_limit, fee_parameters=params)
            self._logger.debug(
                "fee_estimated",
                gas_limit=gas_limit,
                gas_price=params.gas_price,
                max_fee_per_gas=params.max_fee_per_gas,
                total_cost=str(estimate.total_cost),
            )
            return estimate

    def invalidate(self) -> None:
        """Drop all cached estimates."""
        self._cache.clear()
