"""
Byte-level helpers for contract arguments
"""

from typing import Tuple


def to_bytes32(value) -> bytes:
    """Hex string (with or without 0x) or bytes, left-padded to 32 bytes"""
    if isinstance(value, str):
        raw = bytes.fromhex(value[2:] if value.startswith("0x") else value)
    else:
        raw = bytes(value)
    if len(raw) > 32:
        raise ValueError(f"Value longer than 32 bytes: {len(raw)}")
    return raw.rjust(32, b"\x00")


def split_signature(signature: str) -> Tuple[int, bytes, bytes]:
    """Split a 65-byte hex signature into (v, r, s)"""
    sig_bytes = bytes.fromhex(signature[2:] if signature.startswith("0x") else signature)
    if len(sig_bytes) != 65:
        raise ValueError(f"Invalid signature length: {len(sig_bytes)}")

    r = sig_bytes[:32]
    s = sig_bytes[32:64]
    v = sig_bytes[64]

    # Some wallets return 0/1 instead of 27/28
    if v < 27:
        v += 27
    return v, r, s
