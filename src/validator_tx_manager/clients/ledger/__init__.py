"""Validator node (ledger) clients."""

from validator_tx_manager.clients.ledger.base import ILedgerClient
from validator_tx_manager.clients.ledger.json_rpc_ledger_client import JsonRpcLedgerClient

__all__ = ["ILedgerClient", "JsonRpcLedgerClient"]
