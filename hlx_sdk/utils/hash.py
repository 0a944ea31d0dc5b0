from __future__ import annotations

from eth_utils import keccak

from .bytes import BytesLike, ensure_bytes


# --- Keccak-256 (Ethereum-style) ----------------------------------------------
# Original Keccak padding (differs from NIST SHA3-256).


def keccak256(data: BytesLike) -> bytes:
    """Return Keccak-256 digest of *data* (bytes)."""
    return keccak(ensure_bytes(data))


def keccak256_text(text: str) -> bytes:
    """Return Keccak-256 digest of the UTF-8 encoding of *text*."""
    return keccak(text=text)


__all__ = [
    "keccak256",
    "keccak256_text",
]
