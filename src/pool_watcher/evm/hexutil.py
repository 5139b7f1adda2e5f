"""Hex quantity helpers for JSON-RPC payloads."""

from __future__ import annotations

from pool_watcher.errors import ProtocolError


def hex_to_int(value: object, field: str = "value") -> int:
    """Decode a 0x-prefixed hex quantity, raising ProtocolError if malformed."""
    if not isinstance(value, str) or value[:2].lower() != "0x":
        raise ProtocolError(f"{field}: expected 0x-prefixed hex string, got {value!r}")
    try:
        return int(value, 16)
    except ValueError:
        raise ProtocolError(f"{field}: invalid hex quantity {value!r}") from None


def int_to_hex(value: int) -> str:
    if value < 0:
        raise ValueError(f"block number must be non-negative, got {value}")
    return hex(value)
