"""
Wall-clock nonce source for native actions.

The exchange rejects a reused nonce, so every native action prepared through
one client must get a distinct, strictly increasing value even when many
threads prepare concurrently. One lock serializes the clock read and the
comparison against the last issued value.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .utils.bytes import ensure_u64

log = logging.getLogger(__name__)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class NonceManager:
    """Issues millisecond nonces: ``max(now, last + 1)``."""

    def __init__(self, clock: Optional[Callable[[], int]] = None) -> None:
        self._clock = clock or now_ms
        self._lock = threading.Lock()
        self._last = 0

    def next(self) -> int:
        with self._lock:
            n = max(int(self._clock()), self._last + 1)
            self._last = n
        return ensure_u64(n, "nonce")

    def observe(self, nonce: int) -> None:
        """Record an externally chosen nonce so later ones are issued above it."""
        ensure_u64(nonce, "nonce")
        with self._lock:
            if nonce > self._last:
                self._last = nonce

    @property
    def last(self) -> int:
        with self._lock:
            return self._last


__all__ = ["NonceManager", "now_ms"]
