"""
Exchange response values.

Every submission ends in exactly one of:

- `ExchangeSuccess`   2xx with a JSON body the server accepted
- `ExchangeRejected`  2xx whose body is ``{"status": "err", "response": msg}``
- `ExchangeError`     non-2xx; ``message`` is the raw body text

None of these are exceptions. Callers wanting one call
`ExchangeResponse.raise_for_error()`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from ..errors import api_error_from_message


@dataclass(frozen=True)
class ExchangeSuccess:
    status_code: int
    body: Any

    @property
    def ok(self) -> bool:
        return True

    @property
    def data(self) -> Any:
        """``response.data`` of an ``{"status": "ok", "response": {...}}`` body, if present."""
        if isinstance(self.body, dict):
            inner = self.body.get("response")
            if isinstance(inner, dict):
                return inner.get("data", inner)
        return self.body

    def raise_for_error(self) -> "ExchangeSuccess":
        return self


@dataclass(frozen=True)
class ExchangeError:
    code: int
    message: str
    details: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return False

    @property
    def rejected(self) -> bool:
        return False

    def raise_for_error(self) -> "ExchangeSuccess":
        raise api_error_from_message(self.message, code=self.code, rejected=self.rejected)


@dataclass(frozen=True)
class ExchangeRejected(ExchangeError):
    """Transport succeeded; the server refused the action."""

    @property
    def rejected(self) -> bool:
        return True


ExchangeResponse = Union[ExchangeSuccess, ExchangeError]


def response_from_http(status_code: int, text: str, body: Any = None, *, parsed: bool = False) -> ExchangeResponse:
    """
    Map an HTTP exchange onto a response value.

    *body* is the decoded JSON when the caller managed to parse it
    (``parsed=True``); non-2xx responses always keep the raw text.
    """
    if not 200 <= status_code < 300:
        return ExchangeError(code=status_code, message=text, details=body if parsed else None)
    if isinstance(body, dict) and body.get("status") == "err":
        msg = body.get("response")
        return ExchangeRejected(code=status_code, message=msg if isinstance(msg, str) else str(msg), details=body)
    return ExchangeSuccess(status_code=status_code, body=body)


__all__ = [
    "ExchangeSuccess",
    "ExchangeError",
    "ExchangeRejected",
    "ExchangeResponse",
    "response_from_http",
]
