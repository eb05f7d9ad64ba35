# -*- coding: utf-8 -*-
"""Utility modules."""

from validator_tx_manager.utils.units import bump_fee, format_units, to_base_units
from validator_tx_manager.utils.validation import (
    is_hex_address,
    is_tx_hash,
    mask_address,
    parse_payload,
    same_address,
)

__all__ = [
    "bump_fee",
    "format_units",
    "is_hex_address",
    "is_tx_hash",
    "mask_address",
    "parse_payload",
    "same_address",
    "to_base_units",
]
