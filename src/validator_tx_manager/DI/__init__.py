"""Dependency injection."""

from validator_tx_manager.DI.container import Container

__all__ = ["Container"]
