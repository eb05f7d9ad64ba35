"""Signer collaborator interface."""

from validator_tx_manager.signing.base import ISigner

__all__ = ["ISigner"]
