import asyncio
import json

import httpx
import pytest
import respx

from hlx_sdk.action.lifecycle import SignedAction
from hlx_sdk.action.types import ToggleBigBlocks, UsdSend
from hlx_sdk.chain import TEST
from hlx_sdk.config import SDKConfig
from hlx_sdk.errors import (
    ChainMismatchError,
    EnvelopeError,
    ExchangeApiError,
    InsufficientStakeError,
    NonceConflict,
    SignatureError,
    TransportError,
)
from hlx_sdk.exchange.client import AsyncExchangeClient, ExchangeClient
from hlx_sdk.exchange.responses import ExchangeError, ExchangeRejected, ExchangeSuccess
from hlx_sdk.nonce import NonceManager
from hlx_sdk.wallet.signer import CallableSigner, LocalSigner

from .conftest import DESTINATION, TEST_KEY, VAULT

TESTNET_URL = "https://api.hyperliquid-testnet.xyz/exchange"
MAINNET_URL = "https://api.hyperliquid.xyz/exchange"
OK_BODY = {"status": "ok", "response": {"type": "default"}}


def _client(signer=None, **kwargs) -> ExchangeClient:
    kwargs.setdefault("network", "testnet")
    kwargs.setdefault("nonce_manager", NonceManager(clock=lambda: 1_700_000_000_000))
    return ExchangeClient(signer=signer, **kwargs)


def test_prepare_native_uses_nonce_manager():
    with _client() as ex:
        a = ex.prepare(ToggleBigBlocks.enable())
        b = ex.prepare(ToggleBigBlocks.enable())
        assert (a.metadata.nonce, b.metadata.nonce) == (1_700_000_000_000, 1_700_000_000_001)
        assert a.signing_hash != b.signing_hash
        assert a.metadata.chain is TEST


def test_prepare_native_explicit_nonce_is_observed():
    with _client() as ex:
        p = ex.prepare(ToggleBigBlocks.enable(), nonce=5)
        assert p.metadata.nonce == 5
        ex.nonce_manager.observe(1_800_000_000_000)
        assert ex.prepare(ToggleBigBlocks.enable()).metadata.nonce == 1_800_000_000_001


def test_prepare_structured_reuses_embedded_time(usd_send):
    with _client(network="mainnet") as ex:
        p = ex.prepare(usd_send)
        assert p.metadata.nonce == 1700000000000
        assert ex.prepare(usd_send, nonce=1700000000000).metadata.nonce == 1700000000000
        with pytest.raises(NonceConflict):
            ex.prepare(usd_send, nonce=1700000000001)


def test_embedded_timestamp_is_observed_by_nonce_manager(usd_send):
    # the clock reads exactly the transfer's embedded time
    with _client(network="mainnet") as ex:
        assert ex.prepare(usd_send).metadata.nonce == 1_700_000_000_000
        assert ex.nonce_manager.last == 1_700_000_000_000
        assert ex.prepare(ToggleBigBlocks.enable()).metadata.nonce == 1_700_000_000_001


def test_prepare_structured_fills_missing_time():
    with _client() as ex:
        p = ex.prepare(UsdSend(destination=DESTINATION, amount="1"))
        assert p.metadata.nonce == 1_700_000_000_000
        assert p.action.embedded_timestamp() == 1_700_000_000_000
        q = ex.prepare(UsdSend(destination=DESTINATION, amount="1"), nonce=42)
        assert q.action.embedded_timestamp() == 42


def test_session_defaults_flow_into_metadata():
    with _client(vault_address="0x1719884EB866CB12B2287399B15F7DB5E7D775EA", expires_after=1_700_000_009_000) as ex:
        p = ex.prepare(ToggleBigBlocks.enable())
        assert p.metadata.vault_address == VAULT
        assert p.metadata.expires_after == 1_700_000_009_000


@respx.mock
def test_execute_posts_envelope(signer):
    route = respx.post(TESTNET_URL).mock(return_value=httpx.Response(200, json=OK_BODY))
    with _client(signer) as ex:
        resp = ex.execute(ToggleBigBlocks.enable(), nonce=5)
    assert isinstance(resp, ExchangeSuccess)
    assert resp.body == OK_BODY
    assert resp.raise_for_error() is resp
    assert route.called
    sent = json.loads(route.calls.last.request.content)
    assert sent["type"] == "evmUserModify"
    assert sent["action"] == {"type": "evmUserModify", "usingBigBlocks": True}
    assert sent["nonce"] == 5
    assert set(sent["signature"]) == {"r", "s", "v"}
    assert route.calls.last.request.headers["content-type"] == "application/json"


@respx.mock
def test_business_rejection_is_a_value(signer):
    respx.post(TESTNET_URL).mock(
        return_value=httpx.Response(200, json={"status": "err", "response": "Insufficient staked HYPE"})
    )
    with _client(signer) as ex:
        resp = ex.execute(ToggleBigBlocks.enable())
    assert isinstance(resp, ExchangeRejected)
    assert isinstance(resp, ExchangeError)
    assert resp.rejected and not resp.ok
    assert resp.message == "Insufficient staked HYPE"
    with pytest.raises(InsufficientStakeError) as exc:
        resp.raise_for_error()
    assert exc.value.rejected is True


@respx.mock
def test_http_error_keeps_raw_text(signer):
    respx.post(TESTNET_URL).mock(return_value=httpx.Response(422, text="Failed to deserialize the JSON body"))
    with _client(signer) as ex:
        resp = ex.execute(ToggleBigBlocks.enable())
    assert isinstance(resp, ExchangeError) and not isinstance(resp, ExchangeRejected)
    assert resp.code == 422
    assert resp.message == "Failed to deserialize the JSON body"
    with pytest.raises(ExchangeApiError) as exc:
        resp.raise_for_error()
    assert not isinstance(exc.value, InsufficientStakeError)
    assert exc.value.code == 422


@respx.mock
def test_non_json_success_is_transport_error(signer):
    respx.post(TESTNET_URL).mock(return_value=httpx.Response(200, text="<html>gateway</html>"))
    with _client(signer) as ex:
        with pytest.raises(TransportError):
            ex.execute(ToggleBigBlocks.enable())


@respx.mock
def test_network_failure_is_transport_error_without_retry(signer):
    route = respx.post(TESTNET_URL).mock(side_effect=httpx.ConnectError("connection refused"))
    with _client(signer) as ex:
        with pytest.raises(TransportError) as exc:
            ex.execute(ToggleBigBlocks.enable())
    assert exc.value.url == TESTNET_URL
    assert route.call_count == 1


@respx.mock
def test_chain_mismatch_detected_before_io(signer):
    route = respx.post(MAINNET_URL).mock(return_value=httpx.Response(200, json=OK_BODY))
    with _client(signer) as test_ex, _client(signer, network="mainnet") as main_ex:
        signed = test_ex.sign(test_ex.prepare(ToggleBigBlocks.enable()))
        with pytest.raises(ChainMismatchError):
            main_ex.send(signed)
    assert not route.called


@respx.mock
def test_send_rejects_envelope_without_chain(signer):
    route = respx.post(TESTNET_URL).mock(return_value=httpx.Response(200, json=OK_BODY))
    with _client(signer) as ex:
        wire = ex.sign(ex.prepare(ToggleBigBlocks.enable())).to_wire()
        unbound = SignedAction.from_wire(wire)
        assert unbound.chain is None
        with pytest.raises(EnvelopeError):
            ex.send(unbound)
        assert ex.send(SignedAction.from_wire(wire, chain=TEST)).ok
    assert route.call_count == 1


def test_missing_signer(usd_send):
    with _client(network="mainnet") as ex:
        with pytest.raises(SignatureError):
            ex.sign(ex.prepare(usd_send))


def test_per_call_signer_overrides_default(signer):
    def unused(digest: bytes):
        raise AssertionError("default signer must not be used")

    with _client(CallableSigner(unused)) as ex:
        signed = ex.sign(ex.prepare(ToggleBigBlocks.enable()), signer)
    assert signed.recover_signer() == signer.address


@respx.mock
def test_from_config():
    cfg = SDKConfig(network="localhost", vault_address=VAULT, request_timeout=2.0, user_agent="ua-test")
    route = respx.post("http://localhost:3001/exchange").mock(return_value=httpx.Response(200, json=OK_BODY))
    with ExchangeClient.from_config(cfg) as ex:
        assert ex.chain is TEST
        assert ex.vault_address == VAULT
        assert ex.exchange_url == "http://localhost:3001/exchange"
        ex.execute(ToggleBigBlocks.enable(), LocalSigner(TEST_KEY))
    assert route.calls.last.request.headers["user-agent"] == "ua-test"
    sent = json.loads(route.calls.last.request.content)
    assert sent["vaultAddress"] == VAULT


@respx.mock
def test_async_client_with_async_signer(signer, usd_send):
    route = respx.post(MAINNET_URL).mock(return_value=httpx.Response(200, json=OK_BODY))

    async def remote(digest: bytes):
        await asyncio.sleep(0)
        return signer.sign_hash(digest)

    async def run():
        async with AsyncExchangeClient(network="mainnet", signer=CallableSigner(remote)) as ex:
            return await ex.execute(usd_send)

    resp = asyncio.run(run())
    assert isinstance(resp, ExchangeSuccess)
    sent = json.loads(route.calls.last.request.content)
    assert sent["nonce"] == 1700000000000
    assert sent["action"]["hyperliquidChain"] == "Mainnet"
    assert sent["action"]["signatureChainId"] == "0xa4b1"
    assert sent["action"]["amount"] == "100.50"


@respx.mock
def test_async_chain_mismatch(signer):
    route = respx.post(TESTNET_URL).mock(return_value=httpx.Response(200, json=OK_BODY))

    async def run():
        async with AsyncExchangeClient(network="mainnet", signer=signer) as main_ex:
            signed = await main_ex.sign(main_ex.prepare(ToggleBigBlocks.enable()))
        async with AsyncExchangeClient(network="testnet") as test_ex:
            await test_ex.send(signed)

    with pytest.raises(ChainMismatchError):
        asyncio.run(run())
    assert not route.called
