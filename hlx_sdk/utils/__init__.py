"""
Utility helpers shared by the hash engine and wire codecs.

Modules:
- bytes   : hex/bytes conversions, address normalization, u64 helpers
- hash    : Keccak-256 wrappers
- packing : insertion-ordered msgpack encoding for native payloads
"""

from .bytes import ensure_bytes, from_hex, normalize_address, to_hex, u64_be  # noqa: F401
from .hash import keccak256, keccak256_text  # noqa: F401
from .packing import dumps as msgpack_dumps  # noqa: F401

__all__ = [
    "ensure_bytes",
    "from_hex",
    "normalize_address",
    "to_hex",
    "u64_be",
    "keccak256",
    "keccak256_text",
    "msgpack_dumps",
]
