"""Logging setup."""

from validator_tx_manager.logging.config import configure_logging

__all__ = ["configure_logging"]
