# -*- coding: utf-8 -*-
"""Unit tests for JsonRpcLedgerClient."""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from validator_tx_manager.clients.ledger import JsonRpcLedgerClient
from validator_tx_manager.config import Settings
from validator_tx_manager.exceptions import LedgerAPIError, LedgerResponseError

TX_HASH = "0x" + "9f" * 32
RPC_URL = "http://node.test:8545"


def _client(settings: Settings, *results) -> tuple[JsonRpcLedgerClient, MagicMock]:
    http = MagicMock()
    http.post = AsyncMock(side_effect=[{"jsonrpc": "2.0", "id": i + 1, "result": r} for i, r in enumerate(results)])
    http.aclose = AsyncMock()
    return JsonRpcLedgerClient(http_client=http, settings=settings), http


def _methods(http: MagicMock) -> list[str]:
    return [c.kwargs["json"]["method"] for c in http.post.call_args_list]


async def test_submit_sends_raw_transaction_once(settings: Settings) -> None:
    client, http = _client(settings, TX_HASH)

    tx_hash = await client.submit("f86c0a")

    assert tx_hash == TX_HASH
    call = http.post.call_args
    assert call.args == (RPC_URL,)
    assert call.kwargs["attempts"] == 1
    assert call.kwargs["json"]["method"] == "eth_sendRawTransaction"
    assert call.kwargs["json"]["params"] == ["0xf86c0a"]


async def test_submit_rejects_non_hash_result(settings: Settings) -> None:
    client, _ = _client(settings, "accepted")

    with pytest.raises(LedgerResponseError):
        await client.submit("0xf86c")


async def test_rpc_error_object_raises_response_error(settings: Settings) -> None:
    http = MagicMock()
    http.post = AsyncMock(
        return_value={"jsonrpc": "2.0", "id": 1, "error": {"code": -32000, "message": "nonce too low"}}
    )
    client = JsonRpcLedgerClient(http_client=http, settings=settings)

    with pytest.raises(LedgerResponseError) as exc_info:
        await client.submit("0xf86c")

    assert str(exc_info.value) == "nonce too low"
    assert exc_info.value.code == -32000
    assert exc_info.value.method == "eth_sendRawTransaction"
    assert isinstance(exc_info.value, LedgerAPIError)


async def test_non_object_response_raises_response_error(settings: Settings) -> None:
    http = MagicMock()
    http.post = AsyncMock(return_value=["not", "rpc"])
    client = JsonRpcLedgerClient(http_client=http, settings=settings)

    with pytest.raises(LedgerResponseError):
        await client.get_nonce("0x2d27b6e21b3d4d7c9a43fdf58f12345678907706")


async def test_get_receipt_returns_none_while_pending(settings: Settings) -> None:
    client, http = _client(settings, None)

    assert await client.get_receipt(TX_HASH) is None
    assert http.post.call_args.kwargs["json"]["params"] == [TX_HASH]
    assert http.post.call_args.kwargs["attempts"] is None


async def test_get_receipt_parses_result(settings: Settings) -> None:
    client, _ = _client(
        settings,
        {"transactionHash": TX_HASH, "blockNumber": "0x2a", "status": "0x1", "gasUsed": "0x5208"},
    )

    receipt = await client.get_receipt(TX_HASH)

    assert receipt is not None
    assert receipt.block_number == 42
    assert receipt.succeeded


async def test_get_receipt_rejects_malformed_result(settings: Settings) -> None:
    client, _ = _client(settings, {"transactionHash": TX_HASH, "status": "0x7"})

    with pytest.raises(LedgerResponseError):
        await client.get_receipt(TX_HASH)


async def test_estimate_gas_and_nonce_parse_hex_quantities(settings: Settings) -> None:
    client, http = _client(settings, "0x5208", "0x1f")

    assert await client.estimate_gas({"from": "0x1", "to": "0x2"}) == 21_000
    assert await client.get_nonce("0x2d27b6e21b3d4d7c9a43fdf58f12345678907706") == 31
    assert _methods(http) == ["eth_estimateGas", "eth_getTransactionCount"]
    assert http.post.call_args.kwargs["json"]["params"][1] == "pending"


async def test_malformed_quantity_raises_response_error(settings: Settings) -> None:
    client, _ = _client(settings, "lots")

    with pytest.raises(LedgerResponseError):
        await client.estimate_gas({})


async def test_legacy_fee_parameters_use_gas_price(settings: Settings) -> None:
    client, http = _client(settings, "0x4a817c800")

    params = await client.get_fee_parameters()

    assert params.gas_price == 20 * 10**9
    assert params.is_eip1559 is False
    assert _methods(http) == ["eth_gasPrice"]


async def test_eip1559_fee_parameters_derive_from_base_fee(settings_factory: Callable[..., Settings]) -> None:
    settings = settings_factory(ledger={"fee_model": "eip1559"})
    client, http = _client(settings, {"number": "0x10", "baseFeePerGas": "0x3b9aca00"}, "0x77359400")

    params = await client.get_fee_parameters()

    assert params.max_priority_fee_per_gas == 2 * 10**9
    assert params.max_fee_per_gas == 2 * 10**9 + 2 * 10**9
    assert _methods(http) == ["eth_getBlockByNumber", "eth_maxPriorityFeePerGas"]


async def test_eip1559_requires_base_fee(settings_factory: Callable[..., Settings]) -> None:
    settings = settings_factory(ledger={"fee_model": "eip1559"})
    client, _ = _client(settings, {"number": "0x10"})

    with pytest.raises(LedgerResponseError):
        await client.get_fee_parameters()


async def test_request_ids_increase(settings: Settings) -> None:
    client, http = _client(settings, "0x1", "0x2")

    await client.get_nonce("0x2d27b6e21b3d4d7c9a43fdf58f12345678907706")
    await client.get_nonce("0x2d27b6e21b3d4d7c9a43fdf58f12345678907706")

    assert [c.kwargs["json"]["id"] for c in http.post.call_args_list] == [1, 2]


async def test_aclose_closes_http_client(settings: Settings) -> None:
    client, http = _client(settings)

    await client.aclose()

    http.aclose.assert_awaited_once()


def _rpc_transaction(**overrides) -> dict:
    data = {
        "hash": TX_HASH,
        "from": "0x" + "11" * 20,
        "to": "0x" + "22" * 20,
        "nonce": "0x7",
        "value": "0xde0b6b3a7640000",
        "gas": "0x5208",
        "gasPrice": "0x4a817c800",
        "input": "0x",
        "blockNumber": None,
    }
    data.update(overrides)
    return data


async def test_get_transaction_returns_pending_legacy_transaction(settings: Settings) -> None:
    client, http = _client(settings, _rpc_transaction())

    tx = await client.get_transaction(TX_HASH)

    assert tx is not None
    assert tx.status.value == "pending"
    assert tx.hash == TX_HASH
    assert tx.nonce == 7
    assert tx.value == 10**18
    assert tx.gas_price == 20 * 10**9
    assert tx.fee == 21_000 * 20 * 10**9
    assert tx.chain_id == 1
    assert _methods(http) == ["eth_getTransactionByHash"]
    assert http.post.call_args.kwargs["json"]["params"] == [TX_HASH]


async def test_get_transaction_marks_mined_eip1559_transaction_confirmed(settings: Settings) -> None:
    client, _ = _client(
        settings,
        _rpc_transaction(
            gasPrice=None,
            maxFeePerGas="0x6fc23ac00",
            maxPriorityFeePerGas="0x3b9aca00",
            chainId="0x5",
            blockNumber="0x10",
            input="0xa9059cbb",
        ),
    )

    tx = await client.get_transaction(TX_HASH)

    assert tx is not None
    assert tx.status.value == "confirmed"
    assert tx.block_number == 16
    assert tx.is_eip1559
    assert tx.chain_id == 5
    assert tx.data == bytes.fromhex("a9059cbb")


async def test_get_transaction_unknown_hash_returns_none(settings: Settings) -> None:
    client, _ = _client(settings, None)

    assert await client.get_transaction(TX_HASH) is None


@pytest.mark.parametrize("result", ["0x1", _rpc_transaction(nonce=None), {"hash": TX_HASH}])
async def test_get_transaction_rejects_malformed_result(settings: Settings, result) -> None:
    client, _ = _client(settings, result)

    with pytest.raises(LedgerResponseError):
        await client.get_transaction(TX_HASH)
