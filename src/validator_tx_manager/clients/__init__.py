"""HTTP and ledger clients."""

from validator_tx_manager.clients.fee_distribution import HttpFeeDistributor, IFeeDistributor
from validator_tx_manager.clients.http import AsyncHttpClient
from validator_tx_manager.clients.ledger import ILedgerClient, JsonRpcLedgerClient

__all__ = [
    "AsyncHttpClient",
    "HttpFeeDistributor",
    "IFeeDistributor",
    "ILedgerClient",
    "JsonRpcLedgerClient",
]
