"""
hlx_sdk.wallet.signer
=====================

Signers turn a 32-byte signing hash into a secp256k1 ``(r, s, v)`` signature.

The hash engine never sees a key: anything with a ``sign_hash(digest)``
method satisfies `Signer`, so local keys, hardware wallets and remote
signing services are interchangeable. ``sign_hash`` may return the
signature directly or an awaitable resolving to one.

Provided here
-------------
- `Signature`       value type with wire / bytes / hex forms
- `LocalSigner`     private key held in-process (eth_account)
- `CallableSigner`  adapts any function or coroutine function
- `recover_address` ecrecover of a digest + signature (eth_keys)
"""

from __future__ import annotations

import inspect
import os
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Union, runtime_checkable

from eth_account import Account
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import to_checksum_address

from ..errors import SignatureError
from ..utils.bytes import ensure_bytes

_SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

__all__ = [
    "Signature",
    "Signer",
    "LocalSigner",
    "CallableSigner",
    "recover_address",
]


# --- Signature value ----------------------------------------------------------


@dataclass(frozen=True)
class Signature:
    """secp256k1 signature; ``v`` is always normalized to 27/28."""

    r: int
    s: int
    v: int

    def __post_init__(self) -> None:
        v = int(self.v)
        if v in (0, 1):
            v += 27
        if v not in (27, 28):
            raise SignatureError(message=f"invalid recovery id v={self.v}")
        for name in ("r", "s"):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or not 0 < val < _SECP256K1_N:
                raise SignatureError(message=f"signature component {name} out of range")
        object.__setattr__(self, "v", v)

    # wire

    def to_wire(self) -> dict:
        return {"r": f"0x{self.r:064x}", "s": f"0x{self.s:064x}", "v": self.v}

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> "Signature":
        try:
            return cls(r=_parse_int(data["r"]), s=_parse_int(data["s"]), v=_parse_int(data["v"]))
        except (KeyError, TypeError, ValueError) as e:
            raise SignatureError(message=f"malformed signature object: {e}") from e

    # r || s || v

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    @classmethod
    def from_bytes(cls, raw: Union[bytes, bytearray, memoryview, str]) -> "Signature":
        try:
            b = ensure_bytes(raw)
        except (TypeError, ValueError) as e:
            raise SignatureError(message=str(e)) from e
        if len(b) != 65:
            raise SignatureError(message=f"signature must be 65 bytes, got {len(b)}")
        return cls(r=int.from_bytes(b[:32], "big"), s=int.from_bytes(b[32:64], "big"), v=b[64])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    @classmethod
    def coerce(cls, value: Any) -> "Signature":
        """
        Accept a Signature, 65 raw bytes, a 0x-hex string, a ``{r, s, v}``
        mapping, an ``(r, s, v)`` tuple or any object with ``r``/``s``/``v``
        attributes (e.g. eth_account's SignedMessage).
        """
        if isinstance(value, Signature):
            return value
        if isinstance(value, (bytes, bytearray, memoryview, str)):
            return cls.from_bytes(value)
        if isinstance(value, Mapping):
            return cls.from_wire(value)
        if isinstance(value, tuple) and len(value) == 3:
            r, s, v = value
            return cls(r=_parse_int(r), s=_parse_int(s), v=_parse_int(v))
        if all(hasattr(value, a) for a in ("r", "s", "v")):
            return cls(r=int(value.r), s=int(value.s), v=int(value.v))
        raise SignatureError(message=f"cannot interpret {type(value).__name__} as a signature")


def _parse_int(v: Any) -> int:
    if isinstance(v, bool):
        raise TypeError("bool is not a signature component")
    if isinstance(v, int):
        return v
    if isinstance(v, str):
        s = v.strip()
        return int(s, 16) if s.lower().startswith("0x") else int(s, 10)
    raise TypeError(f"unsupported signature component type {type(v).__name__}")


# --- Signer capability --------------------------------------------------------


@runtime_checkable
class Signer(Protocol):
    def sign_hash(self, digest: bytes) -> Union[Signature, Awaitable[Signature]]:
        ...


def _check_digest(digest: bytes) -> bytes:
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != 32:
        raise SignatureError(message="signing hash must be exactly 32 bytes")
    return bytes(digest)


class LocalSigner:
    """Private key held in memory. Signs raw digests without any prefixing."""

    def __init__(self, private_key: Union[str, bytes]) -> None:
        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError, ValidationError) as e:
            raise SignatureError(message=f"invalid private key: {e}") from e

    @classmethod
    def from_env(cls, var: str = "HLX_PRIVATE_KEY") -> "LocalSigner":
        key = os.getenv(var)
        if not key:
            raise SignatureError(message=f"environment variable {var} is not set")
        return cls(key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_hash(self, digest: bytes) -> Signature:
        signed = self._account.unsafe_sign_hash(_check_digest(digest))
        return Signature(r=signed.r, s=signed.s, v=signed.v)

    def __repr__(self) -> str:
        return f"LocalSigner(address={self.address})"


class CallableSigner:
    """
    Wrap ``fn(digest) -> signature-like`` (or a coroutine function) as a Signer.

    Whatever the function returns is run through `Signature.coerce`.
    """

    def __init__(self, fn: Callable[[bytes], Any], *, name: Optional[str] = None, address: Optional[str] = None) -> None:
        self._fn = fn
        self.name = name or getattr(fn, "__name__", "callable")
        self.address = to_checksum_address(address) if address else None

    def sign_hash(self, digest: bytes) -> Union[Signature, Awaitable[Signature]]:
        result = self._fn(_check_digest(digest))
        if inspect.isawaitable(result):
            return self._resolve(result)
        return Signature.coerce(result)

    async def _resolve(self, pending: Awaitable[Any]) -> Signature:
        return Signature.coerce(await pending)

    def __repr__(self) -> str:
        return f"CallableSigner(name={self.name!r})"


# --- Recovery -----------------------------------------------------------------


def recover_address(digest: bytes, signature: Union[Signature, Any]) -> str:
    """Checksummed address whose key produced *signature* over *digest*."""
    sig = Signature.coerce(signature)
    try:
        ks = keys.Signature(vrs=(sig.v - 27, sig.r, sig.s))
        return ks.recover_public_key_from_msg_hash(_check_digest(digest)).to_checksum_address()
    except (BadSignature, ValidationError) as e:
        raise SignatureError(message=f"signature recovery failed: {e}") from e
