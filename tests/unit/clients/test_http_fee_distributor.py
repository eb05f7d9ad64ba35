# -*- coding: utf-8 -*-
"""Unit tests for HttpFeeDistributor."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from validator_tx_manager.clients.fee_distribution import HttpFeeDistributor
from validator_tx_manager.config import Settings
from validator_tx_manager.exceptions import LedgerAPIError, MissingRequiredConfigError

ENDPOINT = "http://fees.test/report"


async def test_distribute_posts_fee_report(settings_factory: Callable[..., Settings]) -> None:
    http = MagicMock()
    http.post = AsyncMock(return_value={"ok": True})
    distributor = HttpFeeDistributor(
        http_client=http,
        settings=settings_factory(fee_distribution={"enabled": True, "endpoint_url": ENDPOINT}),
    )

    await distributor.distribute(420_000_000_000_000, "fixed", "0x" + "ab" * 32)

    http.post.assert_awaited_once_with(
        ENDPOINT,
        json={"amount": "420000000000000", "policy": "fixed", "tx_ref": "0x" + "ab" * 32},
    )


async def test_distribute_propagates_http_failures(settings_factory: Callable[..., Settings]) -> None:
    http = MagicMock()
    http.post = AsyncMock(side_effect=LedgerAPIError("POST failed", url=ENDPOINT))
    distributor = HttpFeeDistributor(
        http_client=http,
        settings=settings_factory(fee_distribution={"endpoint_url": ENDPOINT}),
    )

    with pytest.raises(LedgerAPIError):
        await distributor.distribute(1, "fixed", "ref")


def test_missing_endpoint_is_a_config_error(settings: Settings) -> None:
    with pytest.raises(MissingRequiredConfigError) as exc_info:
        HttpFeeDistributor(http_client=MagicMock(), settings=settings)

    assert exc_info.value.key == "FEE_DISTRIBUTION__ENDPOINT_URL"
