"""
Concrete action payloads.

- ToggleBigBlocks      native      ``evmUserModify``
- SetOpenInterestCaps  native      ``perpDeploy`` / ``setOpenInterestCaps`` (vault-exempt)
- UsdSend              structured  ``usdSend``
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from ..errors import EncodingError
from ..utils.bytes import ensure_u64, normalize_address
from .base import L1Action, UserSignedAction


def decimal_text(value: Decimal) -> str:
    """Plain (non-exponent) rendering that keeps the caller's scale: 100.50 -> "100.50"."""
    return format(value, "f")


def _to_decimal(value: Union[Decimal, str, int]) -> Decimal:
    if isinstance(value, float):
        raise EncodingError(message="amounts must be Decimal, str or int; floats are ambiguous")
    try:
        d = Decimal(value) if not isinstance(value, Decimal) else value
    except InvalidOperation as e:
        raise EncodingError(message=f"invalid decimal amount {value!r}") from e
    if not d.is_finite():
        raise EncodingError(message=f"amount must be finite, got {value!r}")
    return d


@dataclass(frozen=True)
class ToggleBigBlocks(L1Action):
    """Switch the account's EVM transactions between small and big blocks."""

    ACTION_TYPE = "evmUserModify"

    using_big_blocks: bool

    @classmethod
    def enable(cls) -> "ToggleBigBlocks":
        return cls(using_big_blocks=True)

    @classmethod
    def disable(cls) -> "ToggleBigBlocks":
        return cls(using_big_blocks=False)

    def action_fields(self) -> Dict[str, Any]:
        return {"usingBigBlocks": bool(self.using_big_blocks)}

    @classmethod
    def from_action_fields(cls, fields: Mapping[str, Any]) -> "ToggleBigBlocks":
        return cls(using_big_blocks=bool(fields["usingBigBlocks"]))


@dataclass(frozen=True)
class SetOpenInterestCaps(L1Action):
    """
    Perp-deployer action capping open interest per asset.

    Caps are kept sorted by (coin, cap) so two payloads listing the same caps
    in a different order hash identically.
    """

    ACTION_TYPE = "perpDeploy"
    PAYLOAD_KEY = "setOpenInterestCaps"
    EXCLUDE_VAULT_FROM_HASH = True

    caps: Tuple[Tuple[str, int], ...]

    def __post_init__(self) -> None:
        caps = tuple(sorted((str(coin), ensure_u64(int(cap), "cap")) for coin, cap in self.caps))
        object.__setattr__(self, "caps", caps)

    @classmethod
    def for_dex(cls, dex_name: str, caps: Iterable[Tuple[str, int]]) -> "SetOpenInterestCaps":
        """Qualify symbols with their dex: ``("mydex", [("btc", 10)])`` -> ``mydex:BTC``."""
        dex = dex_name.lower()
        return cls(caps=tuple((f"{dex}:{symbol.upper()}", cap) for symbol, cap in caps))

    def action_fields(self) -> Dict[str, Any]:
        return {self.PAYLOAD_KEY: [[coin, cap] for coin, cap in self.caps]}

    @classmethod
    def from_action_fields(cls, fields: Mapping[str, Any]) -> "SetOpenInterestCaps":
        return cls(caps=tuple((coin, cap) for coin, cap in fields[cls.PAYLOAD_KEY]))


@dataclass(frozen=True)
class UsdSend(UserSignedAction):
    """
    Transfer USDC to another address.

    ``time`` is the embedded timestamp and doubles as the nonce; leave it
    unset to let the client fill it in.
    """

    ACTION_TYPE = "usdSend"
    PRIMARY_TYPE = "HyperliquidTransaction:UsdSend"
    EIP712_FIELDS = (
        ("string", "hyperliquidChain"),
        ("string", "destination"),
        ("string", "amount"),
        ("uint64", "time"),
    )
    TIMESTAMP_FIELD = "time"

    destination: str
    amount: Decimal
    time: Optional[int] = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "destination", normalize_address(self.destination))
        except (TypeError, ValueError) as e:
            raise EncodingError(message=f"invalid destination: {e}", action_type=self.ACTION_TYPE) from e
        object.__setattr__(self, "amount", _to_decimal(self.amount))
        if self.time is not None:
            ensure_u64(self.time, "time")

    def eip712_values(self) -> Dict[str, Any]:
        return {
            "destination": self.destination,
            "amount": decimal_text(self.amount),
            "time": self.time,
        }

    @classmethod
    def from_wire_fields(cls, fields: Mapping[str, Any]) -> "UsdSend":
        return cls(
            destination=fields["destination"],
            amount=Decimal(str(fields["amount"])),
            time=int(fields["time"]),
        )


__all__ = ["ToggleBigBlocks", "SetOpenInterestCaps", "UsdSend", "decimal_text"]
