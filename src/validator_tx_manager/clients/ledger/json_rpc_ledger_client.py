"""Validator node client over Ethereum-style JSON-RPC."""

from __future__ import annotations

from collections.abc import Callable
from itertools import count
from typing import TYPE_CHECKING, Any, Optional, cast

import structlog
from pydantic import ValidationError as PydanticValidationError

from validator_tx_manager.clients.ledger.base import ILedgerClient
from validator_tx_manager.clients.ledger.schema import (
    BlockSchema,
    RpcErrorSchema,
    RpcResponseSchema,
    TransactionSchema,
)
from validator_tx_manager.exceptions import LedgerResponseError
from validator_tx_manager.models.gas_estimate import FeeParameters
from validator_tx_manager.models.receipt import Receipt
from validator_tx_manager.models.transaction import Transaction
from validator_tx_manager.utils.validation import is_tx_hash, mask_address, parse_payload

if TYPE_CHECKING:
    from validator_tx_manager.clients.http import AsyncHttpClient
    from validator_tx_manager.config import Settings


def _parse_quantity(raw: Any, *, method: str) -> int:
    """Parse a JSON-RPC quantity (0x-hex string or int)."""
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.lower().startswith("0x"):
        try:
            return int(raw, 16)
        except ValueError:
            pass
    raise LedgerResponseError(f"{method}: expected hex quantity, got {raw!r}", method=method)


def _transaction_from_rpc(data: TransactionSchema, *, default_chain_id: int) -> Transaction:
    """Build a Transaction from eth_getTransactionByHash: confirmed once mined, pending otherwise."""
    method = "eth_getTransactionByHash"
    try:
        chain_id = data.get("chainId")
        common: dict[str, Any] = {
            "chain_id": _parse_quantity(chain_id, method=method) if chain_id is not None else default_chain_id,
            "nonce": _parse_quantity(data["nonce"], method=method),
            "gas_limit": _parse_quantity(data["gas"], method=method),
            "data": parse_payload(data.get("input")),
        }
        sender = str(data["from"])
        recipient = str(data.get("to") or "")
        value = _parse_quantity(data["value"], method=method)
        max_fee = data.get("maxFeePerGas")
        if max_fee is not None:
            tx = Transaction.create(
                sender,
                recipient,
                value,
                max_fee_per_gas=_parse_quantity(max_fee, method=method),
                max_priority_fee_per_gas=_parse_quantity(data.get("maxPriorityFeePerGas", "0x0"), method=method),
                **common,
            )
        else:
            tx = Transaction.create(
                sender,
                recipient,
                value,
                gas_price=_parse_quantity(data.get("gasPrice"), method=method),
                **common,
            )
        tx = tx.with_hash(str(data["hash"]))
    except (KeyError, ValueError) as e:
        raise LedgerResponseError(f"{method}: malformed transaction: {e}", method=method) from e
    block_number = data.get("blockNumber")
    if block_number is None:
        return tx
    return tx.with_confirmed(_parse_quantity(block_number, method=method))


class JsonRpcLedgerClient(ILedgerClient):
    """ILedgerClient backed by a JSON-RPC endpoint (eth_* methods)."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            settings: Configuration (uses settings.ledger.rpc_url, fee_model).
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._settings = settings
        self._ids = count(1)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def _rpc_url(self) -> str:
        return self._settings.ledger.rpc_url.rstrip("/")

    async def _call(self, method: str, params: list[Any], *, attempts: Optional[int] = None) -> Any:
        """Send one JSON-RPC request and return its result.

        Raises:
            LedgerAPIError: If the HTTP request fails.
            LedgerResponseError: If the response carries an error object or is not JSON-RPC.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        response = await self._http.post(self._rpc_url(), json=payload, attempts=attempts)
        if not isinstance(response, dict):
            raise LedgerResponseError(
                f"{method}: unexpected RPC response type {type(response).__name__}",
                method=method,
                url=self._rpc_url(),
            )
        rpc = cast(RpcResponseSchema, response)
        if rpc.get("error") is not None:
            err = rpc["error"]
            code: Optional[int] = None
            if isinstance(err, dict):
                err_d = cast(RpcErrorSchema, err)
                msg = str(err_d.get("message", err_d))
                code = err_d.get("code") if isinstance(err_d.get("code"), int) else None
            else:
                msg = str(err)
            raise LedgerResponseError(msg, method=method, code=code, url=self._rpc_url())
        return rpc.get("result")

    async def submit(self, signed_payload: str) -> str:
        """eth_sendRawTransaction, sent exactly once (no automatic resubmission)."""
        payload = signed_payload if signed_payload.startswith("0x") else "0x" + signed_payload
        result = await self._call("eth_sendRawTransaction", [payload], attempts=1)
        if not is_tx_hash(result):
            raise LedgerResponseError(
                f"eth_sendRawTransaction: expected transaction hash, got {result!r}",
                method="eth_sendRawTransaction",
            )
        tx_hash = str(result)
        self._logger.debug("ledger_submitted", tx_hash=tx_hash)
        return tx_hash

    async def get_receipt(self, tx_hash: str) -> Optional[Receipt]:
        result = await self._call("eth_getTransactionReceipt", [tx_hash])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise LedgerResponseError(
                f"eth_getTransactionReceipt: unexpected result {result!r}",
                method="eth_getTransactionReceipt",
            )
        try:
            return Receipt.from_rpc(cast(dict[str, Any], result))
        except PydanticValidationError as e:
            raise LedgerResponseError(
                f"eth_getTransactionReceipt: malformed receipt for {tx_hash}: {e.error_count()} error(s)",
                method="eth_getTransactionReceipt",
            ) from e

    async def get_transaction(self, tx_hash: str) -> Optional[Transaction]:
        """Look tx_hash up on the node. The result carries a fresh local id and is not tracked."""
        result = await self._call("eth_getTransactionByHash", [tx_hash])
        if result is None:
            return None
        if not isinstance(result, dict):
            raise LedgerResponseError(
                f"eth_getTransactionByHash: unexpected result {result!r}",
                method="eth_getTransactionByHash",
            )
        return _transaction_from_rpc(
            cast(TransactionSchema, result),
            default_chain_id=self._settings.ledger.chain_id or 0,
        )

    async def estimate_gas(self, call: dict[str, Any]) -> int:
        result = await self._call("eth_estimateGas", [call])
        return _parse_quantity(result, method="eth_estimateGas")

    async def get_fee_parameters(self) -> FeeParameters:
        """Gas price (legacy) or max-fee pair derived from the latest base fee (eip1559).

        For eip1559, max_fee = 2 * baseFee + priority fee.
        """
        if self._settings.ledger.fee_model == "legacy":
            price = _parse_quantity(await self._call("eth_gasPrice", []), method="eth_gasPrice")
            return FeeParameters(gas_price=price)

        block = await self._call("eth_getBlockByNumber", ["latest", False])
        if not isinstance(block, dict) or "baseFeePerGas" not in block:
            raise LedgerResponseError(
                "eth_getBlockByNumber: latest block has no baseFeePerGas",
                method="eth_getBlockByNumber",
            )
        latest = cast(BlockSchema, block)
        base_fee = _parse_quantity(latest["baseFeePerGas"], method="eth_getBlockByNumber")
        priority = _parse_quantity(
            await self._call("eth_maxPriorityFeePerGas", []),
            method="eth_maxPriorityFeePerGas",
        )
        return FeeParameters(
            max_fee_per_gas=2 * base_fee + priority,
            max_priority_fee_per_gas=priority,
        )

    async def get_nonce(self, address: str) -> int:
        result = await self._call("eth_getTransactionCount", [address, "pending"])
        nonce = _parse_quantity(result, method="eth_getTransactionCount")
        self._logger.debug("ledger_nonce", address_masked=mask_address(address), nonce=nonce)
        return nonce

    async def aclose(self) -> None:
        await self._http.aclose()
