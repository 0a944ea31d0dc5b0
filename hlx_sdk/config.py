"""
Session configuration for the exchange client and the ``hlx`` CLI.

Every field can come from an ``HLX_*`` environment variable; blank values
count as unset. Endpoint and chain are derived from the network unless a
base URL is given explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .chain import ChainDescriptor, Network, base_url_for, chain_for, parse_network
from .utils.bytes import ensure_u64, normalize_address
from .version import __version__

_DEFAULT_USER_AGENT = f"hlx-sdk-py/{__version__}"


def _env(name: str) -> Optional[str]:
    v = os.getenv(name, "").strip()
    return v or None


def _check_http_url(url: str) -> str:
    scheme, sep, _ = url.partition("://")
    if not sep or scheme.lower() not in ("http", "https"):
        raise ValueError(f"base_url must be an http(s) URL, got: {url!r}")
    return url.rstrip("/")


def _opt_address(val: Optional[str]) -> Optional[str]:
    return normalize_address(val) if val else None


def _opt_u64(val: Any) -> Optional[int]:
    if val is None or val == "":
        return None
    return ensure_u64(int(val), "expires_after")


@dataclass(slots=True)
class SDKConfig:
    network: Network = Network.MAINNET
    # None: derived from the network
    base_url: Optional[str] = None
    # Applied to every prepared action
    vault_address: Optional[str] = None
    expires_after: Optional[int] = None
    request_timeout: float = 10.0
    user_agent: str = _DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        self.network = parse_network(self.network)
        self.base_url = _check_http_url(self.base_url or base_url_for(self.network))
        self.vault_address = _opt_address(self.vault_address)
        self.expires_after = _opt_u64(self.expires_after)

    @property
    def chain(self) -> ChainDescriptor:
        return chain_for(self.network)

    @classmethod
    def from_env(cls, prefix: str = "HLX_") -> "SDKConfig":
        """
        HLX_NETWORK         mainnet | testnet | localhost
        HLX_BASE_URL        http(s) endpoint, defaults per network
        HLX_TIMEOUT         HTTP timeout, float seconds
        HLX_VAULT_ADDRESS   0x-hex, 20 bytes
        HLX_EXPIRES_AFTER   ms timestamp
        HLX_USER_AGENT
        """
        timeout = _env(f"{prefix}TIMEOUT")
        return cls(
            network=_env(f"{prefix}NETWORK") or Network.MAINNET,
            base_url=_env(f"{prefix}BASE_URL"),
            vault_address=_env(f"{prefix}VAULT_ADDRESS"),
            expires_after=_env(f"{prefix}EXPIRES_AFTER"),
            request_timeout=float(timeout) if timeout else 10.0,
            user_agent=_env(f"{prefix}USER_AGENT") or _DEFAULT_USER_AGENT,
        )

    @classmethod
    def with_overrides(
        cls, base: Optional["SDKConfig"] = None, **overrides: Any
    ) -> "SDKConfig":
        """
        Build from an existing config plus keyword overrides.
        Unknown keys are ignored. Changing the network without an explicit
        base_url re-derives the endpoint for the new network.
        """
        base = base or cls.from_env()
        data = base.to_dict()
        data.update({k: v for k, v in overrides.items() if k in data})
        if "network" in overrides and "base_url" not in overrides:
            data["base_url"] = None
        return cls(**data)

    def http_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network.value,
            "base_url": self.base_url,
            "vault_address": self.vault_address,
            "expires_after": self.expires_after,
            "request_timeout": float(self.request_timeout),
            "user_agent": self.user_agent,
        }


__all__ = ["SDKConfig"]
