"""Fee-bump replacement (cancel / speed-up)."""

from validator_tx_manager.services.replacement.replacement_engine import ReplacementEngine

__all__ = ["ReplacementEngine"]
