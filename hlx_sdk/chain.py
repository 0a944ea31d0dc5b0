"""
Per-network constants used by both signing schemes.

A `ChainDescriptor` is pure data:

- ``native_source``  -> ``source`` field of the native scheme's Agent struct
- ``network_name``   -> ``hyperliquidChain`` string in structured payloads
- ``network_id``     -> EIP-712 domain chainId of the structured scheme

Only two descriptors exist. Localhost deployments sign with the test
descriptor.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union


class Network(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    LOCALHOST = "localhost"


@dataclass(frozen=True)
class ChainDescriptor:
    name: str
    native_source: str
    network_name: str
    network_id: int

    @property
    def signature_chain_id(self) -> str:
        """Hex rendering of the network id, as carried by structured wire payloads."""
        return hex(self.network_id)


PRODUCTION = ChainDescriptor(name="production", native_source="a", network_name="Mainnet", network_id=42161)
TEST = ChainDescriptor(name="test", native_source="b", network_name="Testnet", network_id=421614)

_BY_NETWORK: Dict[Network, ChainDescriptor] = {
    Network.MAINNET: PRODUCTION,
    Network.TESTNET: TEST,
    Network.LOCALHOST: TEST,
}

BASE_URLS: Dict[Network, str] = {
    Network.MAINNET: "https://api.hyperliquid.xyz",
    Network.TESTNET: "https://api.hyperliquid-testnet.xyz",
    Network.LOCALHOST: "http://localhost:3001",
}


def parse_network(value: Union[Network, str]) -> Network:
    if isinstance(value, Network):
        return value
    try:
        return Network(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"unknown network {value!r}; expected one of {[n.value for n in Network]}") from None


def chain_for(network: Union[Network, str]) -> ChainDescriptor:
    """Return the descriptor a network signs with."""
    return _BY_NETWORK[parse_network(network)]


def base_url_for(network: Union[Network, str]) -> str:
    return BASE_URLS[parse_network(network)]


def chain_by_network_name(network_name: str) -> ChainDescriptor:
    """Reverse lookup from the ``hyperliquidChain`` string ("Mainnet"/"Testnet")."""
    for chain in (PRODUCTION, TEST):
        if chain.network_name == network_name:
            return chain
    raise ValueError(f"unknown network name {network_name!r}")


__all__ = [
    "Network",
    "ChainDescriptor",
    "PRODUCTION",
    "TEST",
    "BASE_URLS",
    "parse_network",
    "chain_for",
    "base_url_for",
    "chain_by_network_name",
]
