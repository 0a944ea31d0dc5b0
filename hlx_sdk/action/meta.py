from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..chain import ChainDescriptor
from ..utils.bytes import ensure_u64, normalize_address


@dataclass(frozen=True)
class SigningMetadata:
    """
    Session values combined with a payload to produce a signing hash.

    Carries no action-specific data. ``vault_address`` is normalized to
    lowercase 0x-hex on construction.
    """

    nonce: int
    chain: ChainDescriptor
    vault_address: Optional[str] = None
    expires_after: Optional[int] = None

    def __post_init__(self) -> None:
        ensure_u64(self.nonce, "nonce")
        if self.expires_after is not None:
            ensure_u64(self.expires_after, "expires_after")
        if self.vault_address is not None:
            object.__setattr__(self, "vault_address", normalize_address(self.vault_address))


__all__ = ["SigningMetadata"]
