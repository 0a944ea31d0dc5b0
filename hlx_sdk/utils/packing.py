"""
Deterministic msgpack encoding for native (L1) action payloads.

Goals
-----
- Produce byte-for-byte the same encoding the exchange verifier recomputes.
- Map entries are written in **insertion order**. Payload types build their
  dictionaries in field-declaration order, so the declared order is the wire
  order. We never sort keys here: the verifier hashes the order it receives.

Supported types
---------------
Whatever `msgpack` supports natively (None, bool, int, float, str, bytes,
list/tuple, dict). Anything else (Decimal, dataclasses, sets) is rejected
with `EncodingError` so payloads must render decimals/addresses as text
before encoding.

API
---
- dumps(obj) -> bytes
"""

from __future__ import annotations

from typing import Any, Optional

import msgpack

from ..errors import EncodingError


def dumps(obj: Any, *, action_type: Optional[str] = None) -> bytes:
    """Encode *obj* to msgpack bytes, preserving map insertion order."""
    try:
        return msgpack.packb(obj, use_bin_type=True, strict_types=False)
    except (TypeError, ValueError, OverflowError) as e:
        raise EncodingError(message=str(e), action_type=action_type) from e


__all__ = ["dumps"]
