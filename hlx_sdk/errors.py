"""
Typed error classes for the Python SDK.

These are raised by the hash engine, the action lifecycle, the signer
adapters and the exchange client so callers can catch specific failure modes
while still being able to catch the base `HlxSdkError`.

Server-side business rejections are *not* exceptions: they come back as
`ExchangeRejected` response values (see `hlx_sdk.exchange.responses`). Use
`ExchangeError.raise_for_error()` to opt into `ExchangeApiError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

__all__ = [
    "HlxSdkError",
    "EncodingError",
    "CapabilityConflict",
    "SignatureError",
    "TransportError",
    "ChainMismatchError",
    "NonceConflict",
    "EnvelopeError",
    "ExchangeApiError",
    "InsufficientStakeError",
    "api_error_from_message",
]


class HlxSdkError(Exception):
    """Base class for all SDK errors."""


@dataclass(slots=True)
class EncodingError(HlxSdkError):
    """
    Raised when an action payload cannot be canonically encoded.

    This is local and non-retryable: it indicates a payload construction bug
    (unsupported value types, out-of-range integers, malformed addresses).
    """

    message: str
    action_type: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.action_type}]" if self.action_type else ""
        return f"EncodingError{where}: {self.message}"


@dataclass(slots=True)
class CapabilityConflict(HlxSdkError):
    """
    Raised at class-definition / registration time when a payload type claims
    both signing capabilities, and when a value with neither capability is
    offered as an action.
    """

    message: str
    type_name: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.type_name}]" if self.type_name else ""
        return f"CapabilityConflict{where}: {self.message}"


@dataclass(slots=True)
class SignatureError(HlxSdkError):
    """Raised when a signer rejects a digest or returns an unusable signature."""

    message: str
    signer: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        who = f" signer={self.signer}" if self.signer else ""
        return f"SignatureError{who}: {self.message}"


@dataclass(slots=True)
class TransportError(HlxSdkError):
    """
    Raised when the request/response exchange could not complete: connection
    failures, timeouts, or a success status whose body is not JSON.
    """

    message: str
    url: Optional[str] = None
    status_code: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        parts = [f"TransportError: {self.message}"]
        if self.url:
            parts.append(f"url={self.url}")
        if self.status_code is not None:
            parts.append(f"http={self.status_code}")
        return " ".join(parts)


@dataclass(slots=True)
class ChainMismatchError(HlxSdkError):
    """A signed envelope was hashed for a different network than the client's."""

    expected: str
    got: str

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"ChainMismatchError: envelope signed for {self.got!r}, client targets {self.expected!r}"


@dataclass(slots=True)
class NonceConflict(HlxSdkError):
    """An explicit nonce disagrees with the timestamp embedded in a structured action."""

    message: str
    embedded: Optional[int] = None
    requested: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"NonceConflict: {self.message} (embedded={self.embedded}, requested={self.requested})"


@dataclass(slots=True)
class EnvelopeError(HlxSdkError):
    """Raised when a wire envelope cannot be decoded into a SignedAction."""

    message: str
    field: Optional[str] = None
    data: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        where = f" [{self.field}]" if self.field else ""
        return f"EnvelopeError{where}: {self.message}"


@dataclass(slots=True)
class ExchangeApiError(HlxSdkError):
    """
    Raised by `ExchangeError.raise_for_error()` for callers that prefer
    exceptions over response values.

    Fields:
      - message: raw server message
      - code: HTTP status code of the exchange
      - rejected: True when the transport succeeded but the server refused
        the action (``{"status": "err"}``)
    """

    message: str
    code: Optional[int] = None
    rejected: bool = False

    def __str__(self) -> str:  # pragma: no cover - trivial
        code = f" code={self.code}" if self.code is not None else ""
        kind = "rejected" if self.rejected else "failed"
        return f"Exchange {kind}{code}: {self.message}"


class InsufficientStakeError(ExchangeApiError):
    """The account lacks the stake required by the action (e.g. perp deploys)."""


def api_error_from_message(message: str, *, code: Optional[int] = None, rejected: bool = False) -> ExchangeApiError:
    """Map a raw server message onto the most specific ExchangeApiError."""
    if "insufficient staked" in message.lower():
        return InsufficientStakeError(message=message, code=code, rejected=rejected)
    return ExchangeApiError(message=message, code=code, rejected=rejected)
