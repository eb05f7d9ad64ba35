"""Fee-distribution collaborators."""

from validator_tx_manager.clients.fee_distribution.base import IFeeDistributor
from validator_tx_manager.clients.fee_distribution.http_fee_distributor import HttpFeeDistributor

__all__ = ["IFeeDistributor", "HttpFeeDistributor"]
