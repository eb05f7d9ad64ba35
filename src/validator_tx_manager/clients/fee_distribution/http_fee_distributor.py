# -*- coding: utf-8 -*-
"""Fee distributor that posts fee reports to an HTTP endpoint."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from validator_tx_manager.clients.fee_distribution.base import IFeeDistributor
from validator_tx_manager.exceptions import MissingRequiredConfigError

if TYPE_CHECKING:
    from validator_tx_manager.clients.http import AsyncHttpClient
    from validator_tx_manager.config import Settings


class HttpFeeDistributor(IFeeDistributor):
    """POSTs {amount, policy, tx_ref} to settings.fee_distribution.endpoint_url."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        endpoint = settings.fee_distribution.endpoint_url
        if not endpoint:
            raise MissingRequiredConfigError("FEE_DISTRIBUTION__ENDPOINT_URL")
        self._http = http_client
        self._endpoint = endpoint
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def distribute(self, amount: int, policy: str, tx_ref: str) -> None:
        await self._http.post(
            self._endpoint,
            json={"amount": str(amount), "policy": policy, "tx_ref": tx_ref},
        )
        self._logger.debug(
            "fee_distribution_reported",
            tx_hash=tx_ref,
            fee_amount=str(amount),
            fee_policy=policy,
        )
