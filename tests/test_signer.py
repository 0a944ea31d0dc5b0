import pytest
from eth_account import Account
from eth_utils import keccak

from hlx_sdk.errors import SignatureError
from hlx_sdk.wallet.signer import CallableSigner, LocalSigner, Signature, Signer, recover_address

from .conftest import TEST_KEY

DIGEST = keccak(b"hlx signer test")


def test_local_signer_address_and_recovery(signer):
    assert signer.address == Account.from_key(TEST_KEY).address
    sig = signer.sign_hash(DIGEST)
    assert sig.v in (27, 28)
    assert recover_address(DIGEST, sig) == signer.address
    assert isinstance(signer, Signer)


def test_local_signer_is_deterministic(signer):
    assert signer.sign_hash(DIGEST) == LocalSigner(TEST_KEY).sign_hash(DIGEST)


def test_digest_must_be_32_bytes(signer):
    with pytest.raises(SignatureError):
        signer.sign_hash(b"short")


def test_invalid_private_key():
    with pytest.raises(SignatureError):
        LocalSigner("0x1234")


def test_local_signer_from_env(monkeypatch):
    monkeypatch.setenv("HLX_PRIVATE_KEY", TEST_KEY)
    assert LocalSigner.from_env().address == Account.from_key(TEST_KEY).address
    monkeypatch.delenv("HLX_PRIVATE_KEY")
    with pytest.raises(SignatureError):
        LocalSigner.from_env()


def test_signature_forms(signer):
    sig = signer.sign_hash(DIGEST)
    raw = sig.to_bytes()
    assert len(raw) == 65 and raw[-1] == sig.v
    assert Signature.from_bytes(raw) == sig
    assert Signature.coerce(sig.to_hex()) == sig
    assert Signature.coerce(sig.to_wire()) == sig
    assert Signature.coerce((sig.r, sig.s, sig.v)) == sig
    assert Signature.coerce(Account.from_key(TEST_KEY).unsafe_sign_hash(DIGEST)) == sig


def test_recovery_id_normalized():
    sig = Signature(r=1, s=2, v=0)
    assert sig.v == 27
    assert Signature.from_wire({"r": "0x1", "s": "0x2", "v": 1}).v == 28


@pytest.mark.parametrize(
    "kwargs",
    [
        {"r": 1, "s": 2, "v": 29},
        {"r": 0, "s": 2, "v": 27},
        {"r": 1, "s": 2**256, "v": 27},
    ],
)
def test_invalid_signatures(kwargs):
    with pytest.raises(SignatureError):
        Signature(**kwargs)


def test_uncoercible_values():
    with pytest.raises(SignatureError):
        Signature.coerce(12345)
    with pytest.raises(SignatureError):
        Signature.from_bytes(b"\x00" * 64)


def test_callable_signer_sync(signer):
    wrapped = CallableSigner(lambda d: signer.sign_hash(d).to_hex(), address=signer.address)
    assert wrapped.sign_hash(DIGEST) == signer.sign_hash(DIGEST)
    assert wrapped.address == signer.address
