from __future__ import annotations

from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

ADDRESS_LEN = 20
U64_MAX = (1 << 64) - 1


def ensure_bytes(data: Union[BytesLike, str]) -> bytes:
    """Bytes-like values pass through; strings are parsed as (0x-)hex."""
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    if isinstance(data, str):
        return from_hex(data)
    raise TypeError(f"cannot interpret {type(data).__name__} as bytes")


def to_hex(b: BytesLike, prefix: bool = True) -> str:
    s = bytes(b).hex()
    return f"0x{s}" if prefix else s


def from_hex(s: str) -> bytes:
    if not isinstance(s, str):
        raise TypeError(f"expected hex text, got {type(s).__name__}")
    body = s[2:] if s[:2] in ("0x", "0X") else s
    if len(body) % 2:
        raise ValueError(f"odd-length hex: {s!r}")
    try:
        return bytes.fromhex(body)
    except ValueError:
        raise ValueError(f"not hex: {s!r}") from None


# --- Addresses ---------------------------------------------------------------


def address_to_bytes(address: Union[str, BytesLike]) -> bytes:
    """Return the 20 raw bytes of an address given as hex text or bytes."""
    raw = ensure_bytes(address)
    if len(raw) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(raw)}")
    return raw


def normalize_address(address: Union[str, BytesLike]) -> str:
    """Canonical text form of an address: lowercase, 0x-prefixed, 40 hex chars."""
    return to_hex(address_to_bytes(address))


def ensure_u64(value: int, name: str = "value") -> int:
    """Validate that *value* fits an unsigned 64-bit integer (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    if not 0 <= value <= U64_MAX:
        raise ValueError(f"{name} out of u64 range: {value}")
    return value


def u64_be(value: int) -> bytes:
    """8-byte big-endian encoding of an unsigned 64-bit integer."""
    return ensure_u64(value).to_bytes(8, "big")


__all__ = [
    "BytesLike",
    "ADDRESS_LEN",
    "U64_MAX",
    "ensure_bytes",
    "to_hex",
    "from_hex",
    "address_to_bytes",
    "normalize_address",
    "ensure_u64",
    "u64_be",
]
