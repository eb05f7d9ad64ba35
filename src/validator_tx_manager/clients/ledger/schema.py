"""JSON-RPC shapes exchanged with the validator node."""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict


class RpcErrorSchema(TypedDict):
    code: int
    message: str
    data: NotRequired[Any]


class RpcResponseSchema(TypedDict):
    jsonrpc: str
    id: int
    result: NotRequired[Any]
    error: NotRequired[RpcErrorSchema]


class BlockSchema(TypedDict):
    """Subset of eth_getBlockByNumber used for fee parameters."""

    number: str
    baseFeePerGas: NotRequired[str]


# eth_getTransactionByHash result (quantities are 0x-hex strings); "from" is a keyword.
TransactionSchema = TypedDict(
    "TransactionSchema",
    {
        "hash": str,
        "from": str,
        "to": str | None,
        "nonce": str,
        "value": str,
        "gas": str,
        "input": str,
        "blockNumber": str | None,
        "chainId": NotRequired[str],
        "gasPrice": NotRequired[str],
        "maxFeePerGas": NotRequired[str],
        "maxPriorityFeePerGas": NotRequired[str],
    },
)
