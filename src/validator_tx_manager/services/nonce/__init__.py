"""Nonce resolution."""

from validator_tx_manager.services.nonce.nonce_tracker import NonceTracker

__all__ = ["NonceTracker"]
