import asyncio
import json

import pytest

from hlx_sdk.action.base import action_of
from hlx_sdk.action.lifecycle import PreparedAction, SignedAction, prepare_action
from hlx_sdk.action.meta import SigningMetadata
from hlx_sdk.action.types import SetOpenInterestCaps, UsdSend
from hlx_sdk.chain import PRODUCTION, TEST
from hlx_sdk.errors import EnvelopeError, NonceConflict, SignatureError
from hlx_sdk.wallet.signer import CallableSigner, Signature

from .conftest import DESTINATION, VAULT


def test_prepared_hash_computed_once_and_frozen(toggle, test_meta):
    prepared = prepare_action(toggle, test_meta)
    assert prepared.signing_hash == action_of(toggle).signing_hash(test_meta)
    with pytest.raises(AttributeError):
        prepared.signing_hash = b"\x00" * 32  # type: ignore[misc]
    with pytest.raises(AttributeError):
        prepared.metadata = SigningMetadata(nonce=6, chain=TEST)  # type: ignore[misc]


def test_signing_hash_is_not_an_init_argument(toggle, test_meta):
    with pytest.raises(TypeError):
        PreparedAction(action=action_of(toggle), metadata=test_meta, signing_hash=b"\x00" * 32)  # type: ignore[call-arg]


def test_structured_nonce_must_match_embedded_time(usd_send):
    with pytest.raises(NonceConflict):
        prepare_action(usd_send, SigningMetadata(nonce=1, chain=PRODUCTION))
    unset = UsdSend(destination=DESTINATION, amount="1")
    prepared = prepare_action(unset, SigningMetadata(nonce=99, chain=PRODUCTION))
    assert prepared.action.embedded_timestamp() == 99


def test_signed_action_cannot_be_built_directly(signer, toggle, test_meta):
    sig = prepare_action(toggle, test_meta).sign(signer).signature
    with pytest.raises(TypeError):
        SignedAction(
            action=action_of(toggle),
            nonce=5,
            vault_address=None,
            expires_after=None,
            signature=sig,
            chain=TEST,
        )


def test_sign_and_recover(signer, toggle, test_meta):
    signed = prepare_action(toggle, test_meta).sign(signer)
    assert signed.chain is TEST
    assert signed.recover_signer() == signer.address


def test_wire_shape_native(signer, toggle):
    meta = SigningMetadata(nonce=5, chain=TEST, vault_address=VAULT, expires_after=1700000005000)
    wire = prepare_action(toggle, meta).sign(signer).to_wire()
    assert list(wire) == ["type", "action", "nonce", "vaultAddress", "expiresAfter", "signature"]
    assert wire["type"] == "evmUserModify"
    assert wire["action"] == {"type": "evmUserModify", "usingBigBlocks": True}
    assert wire["vaultAddress"] == VAULT
    sig = wire["signature"]
    assert sig["v"] in (27, 28)
    assert sig["r"].startswith("0x") and len(sig["r"]) == 66
    assert len(sig["s"]) == 66


def test_optional_fields_absent(signer, toggle, test_meta):
    wire = prepare_action(toggle, test_meta).sign(signer).to_wire()
    assert "vaultAddress" not in wire
    assert "expiresAfter" not in wire


def test_round_trip_structured(signer, usd_send, prod_meta):
    signed = prepare_action(usd_send, prod_meta).sign(signer)
    decoded = SignedAction.from_json(signed.to_json())
    assert decoded == signed
    assert decoded.chain is PRODUCTION
    assert decoded.to_wire() == signed.to_wire()
    assert decoded.recover_signer() == signer.address


def test_round_trip_native_with_chain(signer, test_meta):
    caps = SetOpenInterestCaps(caps=(("BTC", 10),))
    meta = SigningMetadata(nonce=test_meta.nonce, chain=TEST, vault_address=VAULT)
    signed = prepare_action(caps, meta).sign(signer)
    decoded = SignedAction.from_wire(json.loads(signed.to_json()), chain=TEST)
    assert decoded == signed
    assert decoded.recover_signer() == signer.address


def test_native_envelope_without_chain(signer, toggle, test_meta):
    signed = prepare_action(toggle, test_meta).sign(signer)
    decoded = SignedAction.from_wire(signed.to_wire())
    assert decoded.chain is None
    assert decoded.to_wire() == signed.to_wire()
    with pytest.raises(EnvelopeError):
        decoded.recover_signer()
    assert decoded.recover_signer(TEST) == signer.address
    # wrong network recovers someone else
    assert decoded.recover_signer(PRODUCTION) != signer.address


def test_with_external_signature(signer, toggle, test_meta):
    prepared = prepare_action(toggle, test_meta)
    raw = signer.sign_hash(prepared.signing_hash).to_hex()
    signed = prepared.with_signature(raw)
    assert signed.signature == Signature.from_bytes(raw)
    assert signed.recover_signer() == signer.address


def test_async_signer(signer, toggle, test_meta):
    async def remote(digest: bytes):
        await asyncio.sleep(0)
        return signer.sign_hash(digest).to_wire()

    prepared = prepare_action(toggle, test_meta)
    async_signer = CallableSigner(remote)
    signed = asyncio.run(prepared.sign_async(async_signer))
    assert signed.recover_signer() == signer.address
    with pytest.raises(SignatureError):
        prepared.sign(async_signer)


def test_failing_signer_becomes_signature_error(toggle, test_meta):
    def broken(digest: bytes):
        raise RuntimeError("device unplugged")

    with pytest.raises(SignatureError) as exc:
        prepare_action(toggle, test_meta).sign(CallableSigner(broken, name="ledger"))
    assert exc.value.signer == "ledger"


@pytest.mark.parametrize(
    "mutate",
    [
        lambda w: w.pop("type"),
        lambda w: w.pop("signature"),
        lambda w: w.pop("nonce"),
        lambda w: w.__setitem__("nonce", 1),
        lambda w: w.__setitem__("type", "somethingElse"),
        lambda w: w["action"].__setitem__("hyperliquidChain", "Devnet"),
        lambda w: w["action"].__setitem__("signatureChainId", "0x1"),
        lambda w: w["signature"].__setitem__("v", 30),
    ],
)
def test_malformed_envelopes(signer, usd_send, prod_meta, mutate):
    wire = prepare_action(usd_send, prod_meta).sign(signer).to_wire()
    mutate(wire)
    with pytest.raises(EnvelopeError):
        SignedAction.from_wire(wire)


def test_structured_envelope_chain_must_match_expectation(signer, usd_send, prod_meta):
    wire = prepare_action(usd_send, prod_meta).sign(signer).to_wire()
    with pytest.raises(EnvelopeError):
        SignedAction.from_wire(wire, chain=TEST)
