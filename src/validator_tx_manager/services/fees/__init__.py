"""Gas and fee estimation."""

from validator_tx_manager.services.fees.fee_estimator import FeeEstimator

__all__ = ["FeeEstimator"]
