"""Validation helpers for addresses, transaction hashes and payloads."""

from __future__ import annotations

from typing import Any


def _is_hex_of_length(value: Any, length: int) -> bool:
    if not isinstance(value, str):
        return False
    s = value.strip()
    if len(s) != length or not s.startswith("0x"):
        return False
    try:
        int(s[2:], 16)
        return True
    except ValueError:
        return False


def is_hex_address(addr: Any) -> bool:
    """Return True if addr is a valid 0x account address (42 chars)."""
    return _is_hex_of_length(addr, 42)


def is_tx_hash(value: Any) -> bool:
    """Return True if value is a 0x transaction hash (0x + 64 hex chars = 66 chars)."""
    return _is_hex_of_length(value, 66)


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address equality (checksummed and lowercase forms match)."""
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


def parse_payload(data: Any) -> bytes | None:
    """Normalize a call payload to bytes.

    Accepts None, bytes, or a 0x-prefixed hex string. "0x" and b"" become None.

    Raises:
        ValueError: If data is not valid hex or has an unsupported type.
    """
    if data is None:
        return None
    if isinstance(data, (bytes, bytearray)):
        return bytes(data) or None
    if isinstance(data, str):
        s = data.strip()
        if s.startswith("0x") or s.startswith("0X"):
            s = s[2:]
        if not s:
            return None
        return bytes.fromhex(s)
    raise ValueError(f"Unsupported payload type: {type(data).__name__}")


def mask_address(addr: str | None) -> str:
    """Return a masked address or hash for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"
