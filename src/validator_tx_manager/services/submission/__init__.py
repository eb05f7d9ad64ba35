"""Transaction submission."""

from validator_tx_manager.services.submission.dto import SubmitOptions
from validator_tx_manager.services.submission.transaction_submitter import TransactionSubmitter

__all__ = ["SubmitOptions", "TransactionSubmitter"]
