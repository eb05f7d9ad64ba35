"""Batch submission."""

from validator_tx_manager.services.batch.batch_coordinator import BatchCoordinator, FailurePolicy

__all__ = ["BatchCoordinator", "FailurePolicy"]
