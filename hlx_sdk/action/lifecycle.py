"""
Lifecycle value objects: ``Unsigned -> HashComputed -> Signed -> Submitted``.

- `PreparedAction` binds an action to one `SigningMetadata` snapshot and
  computes the signing hash once, at construction. It is frozen: changing
  the metadata means preparing a new action.
- `SignedAction` is the submission envelope. It only comes out of
  `PreparedAction.sign` / `sign_async` / `with_signature`, or out of
  decoding a wire envelope; calling the class directly raises `TypeError`.

Submission (the ``Submitted`` state) belongs to the exchange client.
"""

from __future__ import annotations

import inspect
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from ..chain import ChainDescriptor, chain_by_network_name
from ..errors import EncodingError, EnvelopeError, HlxSdkError, NonceConflict, SignatureError
from ..utils.bytes import ensure_u64, normalize_address, to_hex
from ..wallet.signer import Signature, Signer, recover_address
from .base import Action, ActionPayload, NativeAction, StructuredAction, action_of, payload_from_wire
from .meta import SigningMetadata

log = logging.getLogger(__name__)

_MINT = object()


@dataclass(frozen=True)
class PreparedAction:
    action: Action
    metadata: SigningMetadata
    signing_hash: bytes = field(init=False, repr=False)

    def __post_init__(self) -> None:
        action = action_of(self.action)
        # User-signed actions carry their nonce inside the payload.
        action = action.with_nonce(self.metadata.nonce)
        object.__setattr__(self, "action", action)
        object.__setattr__(self, "signing_hash", action.signing_hash(self.metadata))

    @property
    def signing_hash_hex(self) -> str:
        return to_hex(self.signing_hash)

    def sign(self, signer: Signer) -> "SignedAction":
        """Sign with a synchronous signer."""
        result = _call_signer(signer, self.signing_hash)
        if inspect.isawaitable(result):
            if inspect.iscoroutine(result):
                result.close()
            raise SignatureError(message="signer is asynchronous; use sign_async()", signer=_signer_name(signer))
        return self.with_signature(result)

    async def sign_async(self, signer: Signer) -> "SignedAction":
        """Sign with any signer, awaiting it if it returns an awaitable."""
        result = _call_signer(signer, self.signing_hash)
        if inspect.isawaitable(result):
            try:
                result = await result
            except HlxSdkError:
                raise
            except Exception as e:
                raise SignatureError(message=str(e), signer=_signer_name(signer)) from e
        return self.with_signature(result)

    def with_signature(self, signature: Any) -> "SignedAction":
        """Attach an externally produced signature (hardware / remote flows)."""
        sig = Signature.coerce(signature)
        log.debug("signed %s nonce=%d hash=%s", self.action.action_type(), self.metadata.nonce, self.signing_hash_hex)
        return SignedAction(
            action=self.action,
            nonce=self.metadata.nonce,
            vault_address=self.metadata.vault_address,
            expires_after=self.metadata.expires_after,
            signature=sig,
            chain=self.metadata.chain,
            _mint=_MINT,
        )


def prepare_action(payload: Union[ActionPayload, Action], metadata: SigningMetadata) -> PreparedAction:
    """Unsigned -> HashComputed. Raises EncodingError if the payload cannot be encoded."""
    return PreparedAction(action=action_of(payload), metadata=metadata)


def _signer_name(signer: Any) -> str:
    return getattr(signer, "name", None) or type(signer).__name__


def _call_signer(signer: Signer, digest: bytes) -> Any:
    try:
        return signer.sign_hash(digest)
    except HlxSdkError:
        raise
    except Exception as e:
        raise SignatureError(message=str(e), signer=_signer_name(signer)) from e


@dataclass(frozen=True)
class SignedAction:
    """
    Submission envelope. ``chain`` is the descriptor the hash was computed
    for; it is not part of the wire shape for native actions, so decoding a
    native envelope without an explicit chain leaves it ``None``.
    """

    action: Action
    nonce: int
    vault_address: Optional[str]
    expires_after: Optional[int]
    signature: Signature
    chain: Optional[ChainDescriptor]
    _mint: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self._mint is not _MINT:
            raise TypeError("SignedAction is produced by PreparedAction.sign*/with_signature or SignedAction.from_wire")

    def action_type(self) -> str:
        return self.action.action_type()

    def metadata(self, chain: Optional[ChainDescriptor] = None) -> SigningMetadata:
        chain = chain or self.chain
        if chain is None:
            raise EnvelopeError(message="chain unknown for this envelope; pass one explicitly", field="chain")
        return SigningMetadata(
            nonce=self.nonce, chain=chain, vault_address=self.vault_address, expires_after=self.expires_after
        )

    def signing_hash(self, chain: Optional[ChainDescriptor] = None) -> bytes:
        return self.action.signing_hash(self.metadata(chain))

    def recover_signer(self, chain: Optional[ChainDescriptor] = None) -> str:
        """Recompute the hash from the carried metadata and recover the signing address."""
        return recover_address(self.signing_hash(chain), self.signature)

    # --- wire -----------------------------------------------------------------

    def to_wire(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "type": self.action_type(),
            "action": self.action.serialize_payload(self.chain),
            "nonce": self.nonce,
        }
        if self.vault_address is not None:
            out["vaultAddress"] = self.vault_address
        if self.expires_after is not None:
            out["expiresAfter"] = self.expires_after
        out["signature"] = self.signature.to_wire()
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"))

    @classmethod
    def from_json(cls, text: Union[str, bytes], chain: Optional[ChainDescriptor] = None) -> "SignedAction":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise EnvelopeError(message=f"invalid JSON: {e}") from e
        return cls.from_wire(data, chain=chain)

    @classmethod
    def from_wire(cls, data: Mapping[str, Any], chain: Optional[ChainDescriptor] = None) -> "SignedAction":
        """
        Decode a wire envelope. User-signed envelopes name their network in
        ``hyperliquidChain``; native ones rely on *chain* if given.
        """
        if not isinstance(data, Mapping):
            raise EnvelopeError(message="envelope must be an object", data=data)
        tag = data.get("type")
        body = data.get("action")
        if not isinstance(tag, str):
            raise EnvelopeError(message="missing action type", field="type")
        if not isinstance(body, Mapping):
            raise EnvelopeError(message="missing action object", field="action")
        if body.get("type", tag) != tag:
            raise EnvelopeError(message=f"action type {body.get('type')!r} does not match {tag!r}", field="action")
        body = {"type": tag, **{k: v for k, v in body.items() if k != "type"}}

        try:
            action = action_of(payload_from_wire(body))
        except KeyError as e:
            raise EnvelopeError(message=f"cannot decode action: {e}", field="action") from e
        except (TypeError, ValueError, EncodingError) as e:
            raise EnvelopeError(message=f"invalid action fields: {e}", field="action") from e

        if isinstance(action, StructuredAction):
            chain = _structured_chain(body, chain)

        try:
            nonce = ensure_u64(data["nonce"], "nonce")
            vault = data.get("vaultAddress")
            vault = normalize_address(vault) if vault is not None else None
            expires = data.get("expiresAfter")
            expires = ensure_u64(expires, "expiresAfter") if expires is not None else None
        except KeyError as e:
            raise EnvelopeError(message="missing nonce", field="nonce") from e
        except (TypeError, ValueError) as e:
            raise EnvelopeError(message=str(e)) from e

        sig_obj = data.get("signature")
        if not isinstance(sig_obj, Mapping):
            raise EnvelopeError(message="missing signature object", field="signature")
        try:
            signature = Signature.from_wire(sig_obj)
        except SignatureError as e:
            raise EnvelopeError(message=e.message, field="signature") from e

        if chain is None and isinstance(action, NativeAction):
            # Native envelope without a known chain: no hash can be bound yet.
            return cls(
                action=action,
                nonce=nonce,
                vault_address=vault,
                expires_after=expires,
                signature=signature,
                chain=None,
                _mint=_MINT,
            )
        meta = SigningMetadata(nonce=nonce, chain=chain, vault_address=vault, expires_after=expires)
        try:
            prepared = PreparedAction(action=action, metadata=meta)
        except NonceConflict as e:
            raise EnvelopeError(message=e.message, field="nonce") from e
        return prepared.with_signature(signature)


def _structured_chain(body: Mapping[str, Any], chain: Optional[ChainDescriptor]) -> ChainDescriptor:
    name = body.get("hyperliquidChain")
    if name is None:
        if chain is None:
            raise EnvelopeError(message="user-signed action without hyperliquidChain", field="action")
        return chain
    try:
        found = chain_by_network_name(name)
    except ValueError as e:
        raise EnvelopeError(message=str(e), field="hyperliquidChain") from e
    if chain is not None and chain != found:
        raise EnvelopeError(
            message=f"envelope names {found.network_name}, caller expected {chain.network_name}",
            field="hyperliquidChain",
        )
    sig_chain_id = body.get("signatureChainId")
    if sig_chain_id is not None and str(sig_chain_id).lower() != found.signature_chain_id:
        raise EnvelopeError(
            message=f"signatureChainId {sig_chain_id} does not match {found.network_name}", field="signatureChainId"
        )
    return found


__all__ = ["PreparedAction", "SignedAction", "prepare_action"]
