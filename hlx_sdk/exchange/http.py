"""
HTTP plumbing for the ``/exchange`` endpoint (httpx, sync and async).

- One POST per call, JSON body, no retries: a resubmitted native action
  would need a new nonce, so retry policy belongs to the caller.
- Network failures and undecodable 2xx bodies raise TransportError; every
  completed HTTP exchange becomes a response value.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from ..errors import TransportError
from ..version import __version__ as SDK_VERSION
from .responses import ExchangeResponse, response_from_http

log = logging.getLogger(__name__)

EXCHANGE_PATH = "/exchange"


def default_headers(extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    headers: Dict[str, str] = {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "User-Agent": f"hlx-sdk-py/{SDK_VERSION}",
    }
    if extra:
        headers.update(dict(extra))
    return headers


def exchange_url(base_url: str) -> str:
    return base_url.rstrip("/") + EXCHANGE_PATH


def encode_body(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def _to_response(url: str, r: httpx.Response) -> ExchangeResponse:
    text = r.text
    if 200 <= r.status_code < 300:
        try:
            body = r.json()
        except ValueError as e:
            raise TransportError(
                message=f"non-JSON response body: {text[:256]!r}", url=url, status_code=r.status_code
            ) from e
        log.debug("exchange response %s: %s", r.status_code, body)
        return response_from_http(r.status_code, text, body, parsed=True)
    log.debug("exchange error %s: %s", r.status_code, text[:512])
    return response_from_http(r.status_code, text)


def post_exchange(client: httpx.Client, url: str, payload: Mapping[str, Any]) -> ExchangeResponse:
    body = encode_body(payload)
    log.debug("POST %s %s", url, body)
    try:
        r = client.post(url, content=body)
    except httpx.HTTPError as e:
        raise TransportError(message=f"{type(e).__name__}: {e}", url=url) from e
    return _to_response(url, r)


async def post_exchange_async(client: httpx.AsyncClient, url: str, payload: Mapping[str, Any]) -> ExchangeResponse:
    body = encode_body(payload)
    log.debug("POST %s %s", url, body)
    try:
        r = await client.post(url, content=body)
    except httpx.HTTPError as e:
        raise TransportError(message=f"{type(e).__name__}: {e}", url=url) from e
    return _to_response(url, r)


__all__ = [
    "EXCHANGE_PATH",
    "default_headers",
    "exchange_url",
    "encode_body",
    "post_exchange",
    "post_exchange_async",
]
