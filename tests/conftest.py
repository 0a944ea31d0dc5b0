"""
Shared pytest fixtures:
- A fixed secp256k1 key with known Agent-envelope signatures
- Deterministic signing metadata on both networks
- Environment isolation for HLX_* variables
"""
from __future__ import annotations

from decimal import Decimal

import pytest

from hlx_sdk.action.meta import SigningMetadata
from hlx_sdk.action.types import ToggleBigBlocks, UsdSend
from hlx_sdk.chain import PRODUCTION, TEST
from hlx_sdk.wallet.signer import LocalSigner

TEST_KEY = "0xe908f86dbb4d55ac876378565aafeabc187f6690f046459397b17d9b9a19688e"
DESTINATION = "0x0d1d9635d0640821d15e323ac8adadfa9c111414"
VAULT = "0x1719884eb866cb12b2287399b15f7db5e7d775ea"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "HLX_NETWORK",
        "HLX_BASE_URL",
        "HLX_TIMEOUT",
        "HLX_VAULT_ADDRESS",
        "HLX_EXPIRES_AFTER",
        "HLX_USER_AGENT",
        "HLX_PRIVATE_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def signer() -> LocalSigner:
    return LocalSigner(TEST_KEY)


@pytest.fixture
def usd_send() -> UsdSend:
    return UsdSend(destination=DESTINATION, amount=Decimal("100.50"), time=1700000000000)


@pytest.fixture
def toggle() -> ToggleBigBlocks:
    return ToggleBigBlocks.enable()


@pytest.fixture
def test_meta() -> SigningMetadata:
    return SigningMetadata(nonce=5, chain=TEST)


@pytest.fixture
def prod_meta() -> SigningMetadata:
    return SigningMetadata(nonce=1700000000000, chain=PRODUCTION)
