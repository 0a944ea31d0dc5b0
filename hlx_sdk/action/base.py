"""
Action capability model.

Concrete payloads subclass exactly one of two capability bases:

- `L1Action`          native scheme (msgpack + connection id + Agent envelope)
- `UserSignedAction`  structured scheme (EIP-712 typed data)

Subclassing both is rejected while the class statement executes, before
anything can be hashed. Every concrete class (one that declares its own
``ACTION_TYPE``) is recorded in a registry keyed by ``(tag, payload_key)`` so
wire envelopes can be decoded back into payload values.

The uniform contract is the sum type `Action` = `NativeAction` |
`StructuredAction`, obtained through `action_of()`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Type, Union

from ..chain import ChainDescriptor
from ..errors import CapabilityConflict, EncodingError, NonceConflict
from . import encode
from .meta import SigningMetadata

NATIVE = "native"
STRUCTURED = "structured"

_REGISTRY: Dict[Tuple[str, Optional[str]], Type["ActionPayload"]] = {}


class ActionPayload:
    """Base of all payload types. Carries business fields only."""

    ACTION_TYPE: ClassVar[str] = ""
    _CAPABILITY: ClassVar[Optional[str]] = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.__dict__.get("_CAPABILITY_ROOT", False):
            return
        caps = {
            base.__dict__["_CAPABILITY"]
            for base in cls.__mro__
            if base.__dict__.get("_CAPABILITY_ROOT", False)
        }
        if len(caps) > 1:
            raise CapabilityConflict(
                message="a payload type cannot be both natively signed and user-signed",
                type_name=cls.__qualname__,
            )
        if caps and "ACTION_TYPE" in cls.__dict__:
            _register(cls)

    @classmethod
    def capability(cls) -> Optional[str]:
        return cls._CAPABILITY


def _register(cls: Type[ActionPayload]) -> None:
    tag = cls.ACTION_TYPE
    if not tag:
        raise CapabilityConflict(message="ACTION_TYPE must be a non-empty string", type_name=cls.__qualname__)
    key = (tag, getattr(cls, "PAYLOAD_KEY", None))
    existing = _REGISTRY.get(key)
    # Re-executing the same class statement (module reload) replaces the entry.
    if existing is not None and (existing.__module__, existing.__qualname__) != (cls.__module__, cls.__qualname__):
        raise CapabilityConflict(
            message=f"action type {key} already registered by {existing.__module__}.{existing.__qualname__}",
            type_name=cls.__qualname__,
        )
    _REGISTRY[key] = cls


def registered_types() -> Dict[Tuple[str, Optional[str]], Type[ActionPayload]]:
    return dict(_REGISTRY)


class L1Action(ActionPayload):
    """
    Native capability.

    Subclasses set ``ACTION_TYPE`` and implement `action_fields()` returning
    the camelCase fields in declaration order (the ``type`` entry is added in
    front automatically). Types whose signature must not cover the vault
    address set ``EXCLUDE_VAULT_FROM_HASH``. Families sharing one tag (e.g.
    ``perpDeploy``) distinguish themselves with ``PAYLOAD_KEY``, the single
    field key their action carries.
    """

    _CAPABILITY_ROOT: ClassVar[bool] = True
    _CAPABILITY: ClassVar[Optional[str]] = NATIVE

    EXCLUDE_VAULT_FROM_HASH: ClassVar[bool] = False
    PAYLOAD_KEY: ClassVar[Optional[str]] = None

    def action_fields(self) -> Dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_action_fields(cls, fields: Mapping[str, Any]) -> "L1Action":
        raise NotImplementedError(f"{cls.__name__} cannot be decoded from the wire")


class UserSignedAction(ActionPayload):
    """
    Structured capability.

    Subclasses declare ``PRIMARY_TYPE`` and ``EIP712_FIELDS`` (ordered
    ``(solidity type, name)`` pairs, including ``hyperliquidChain``) and
    implement `eip712_values()` with every other field rendered as its
    canonical value. ``TIMESTAMP_FIELD`` names the attribute holding the
    embedded timestamp that doubles as the nonce; it is also its typed-data
    and wire name.
    """

    _CAPABILITY_ROOT: ClassVar[bool] = True
    _CAPABILITY: ClassVar[Optional[str]] = STRUCTURED

    PRIMARY_TYPE: ClassVar[str] = ""
    EIP712_FIELDS: ClassVar[Tuple[Tuple[str, str], ...]] = ()
    TIMESTAMP_FIELD: ClassVar[str] = "time"

    @classmethod
    def type_signature(cls) -> str:
        return encode.type_signature(cls.PRIMARY_TYPE, cls.EIP712_FIELDS)

    def eip712_values(self) -> Dict[str, Any]:
        raise NotImplementedError

    def embedded_timestamp(self) -> Optional[int]:
        return getattr(self, self.TIMESTAMP_FIELD)

    def with_timestamp(self, timestamp: int) -> "UserSignedAction":
        return dataclasses.replace(self, **{self.TIMESTAMP_FIELD: timestamp})

    def wire_fields(self) -> Dict[str, Any]:
        """Business fields as carried in the wire ``action`` object."""
        values = self.eip712_values()
        values.pop(encode.CHAIN_FIELD, None)
        return values

    @classmethod
    def from_wire_fields(cls, fields: Mapping[str, Any]) -> "UserSignedAction":
        raise NotImplementedError(f"{cls.__name__} cannot be decoded from the wire")


# --- Derived uniform contract -------------------------------------------------


@dataclass(frozen=True)
class NativeAction:
    payload: L1Action

    def __post_init__(self) -> None:
        if not isinstance(self.payload, L1Action):
            raise CapabilityConflict(
                message="NativeAction requires an L1Action payload",
                type_name=type(self.payload).__qualname__,
            )

    def action_type(self) -> str:
        return self.payload.ACTION_TYPE

    def is_native(self) -> bool:
        return True

    def embedded_timestamp(self) -> Optional[int]:
        return None

    def with_nonce(self, nonce: int) -> "NativeAction":
        return self

    def action_dict(self) -> Dict[str, Any]:
        fields = self.payload.action_fields()
        if "type" in fields:
            raise EncodingError(message="action_fields() must not contain 'type'", action_type=self.action_type())
        out: Dict[str, Any] = {"type": self.action_type()}
        out.update(fields)
        return out

    def serialize_payload(self, chain: Optional[ChainDescriptor] = None) -> Dict[str, Any]:
        return self.action_dict()

    def hashed_vault(self, meta: SigningMetadata) -> Optional[str]:
        if self.payload.EXCLUDE_VAULT_FROM_HASH:
            return None
        return meta.vault_address

    def encoded_bytes(self, meta: SigningMetadata) -> bytes:
        return encode.l1_action_bytes(self.action_dict(), meta.nonce, self.hashed_vault(meta), meta.expires_after)

    def connection_id(self, meta: SigningMetadata) -> bytes:
        return encode.l1_connection_id(self.action_dict(), meta.nonce, self.hashed_vault(meta), meta.expires_after)

    def signing_hash(self, meta: SigningMetadata) -> bytes:
        return encode.agent_signing_hash(self.connection_id(meta), meta.chain.native_source)

    def multisig_signing_hash(self, meta: SigningMetadata, multisig_user: str, outer_signer: str) -> bytes:
        envelope = encode.multisig_l1_envelope(self.action_dict(), multisig_user, outer_signer)
        cid = encode.l1_connection_id(envelope, meta.nonce, self.hashed_vault(meta), meta.expires_after)
        return encode.agent_signing_hash(cid, meta.chain.native_source)


@dataclass(frozen=True)
class StructuredAction:
    payload: UserSignedAction

    def __post_init__(self) -> None:
        if not isinstance(self.payload, UserSignedAction):
            raise CapabilityConflict(
                message="StructuredAction requires a UserSignedAction payload",
                type_name=type(self.payload).__qualname__,
            )

    def action_type(self) -> str:
        return self.payload.ACTION_TYPE

    def is_native(self) -> bool:
        return False

    def embedded_timestamp(self) -> Optional[int]:
        return self.payload.embedded_timestamp()

    def with_nonce(self, nonce: int) -> "StructuredAction":
        """
        Bind *nonce* as the embedded timestamp. A missing timestamp is filled
        in; a different one is a `NonceConflict`.
        """
        current = self.embedded_timestamp()
        if current is None:
            return StructuredAction(self.payload.with_timestamp(nonce))
        if current != nonce:
            raise NonceConflict(
                message="user-signed actions use their embedded timestamp as nonce",
                embedded=current,
                requested=nonce,
            )
        return self

    def serialize_payload(self, chain: Optional[ChainDescriptor] = None) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.action_type()}
        if chain is not None:
            out["signatureChainId"] = chain.signature_chain_id
            out[encode.CHAIN_FIELD] = chain.network_name
        out.update(self.payload.wire_fields())
        return out

    def signing_hash(self, meta: SigningMetadata) -> bytes:
        p = self.payload
        return encode.user_signed_hash(meta.chain, p.PRIMARY_TYPE, p.EIP712_FIELDS, p.eip712_values())

    def multisig_signing_hash(self, meta: SigningMetadata, multisig_user: str, outer_signer: str) -> bytes:
        p = self.payload
        return encode.multisig_user_signed_hash(
            meta.chain, p.PRIMARY_TYPE, p.EIP712_FIELDS, p.eip712_values(), multisig_user, outer_signer
        )


Action = Union[NativeAction, StructuredAction]


def action_of(value: Union[ActionPayload, NativeAction, StructuredAction]) -> Action:
    """Derive the uniform action for a payload carrying exactly one capability."""
    if isinstance(value, (NativeAction, StructuredAction)):
        return value
    if isinstance(value, L1Action):
        return NativeAction(value)
    if isinstance(value, UserSignedAction):
        return StructuredAction(value)
    raise CapabilityConflict(
        message="value is neither an L1Action nor a UserSignedAction",
        type_name=type(value).__qualname__,
    )


def resolve_action(tag: str, action: Mapping[str, Any]) -> Type[ActionPayload]:
    """Find the registered payload type for a wire ``type`` tag and action body."""
    candidates = {k[1]: cls for k, cls in _REGISTRY.items() if k[0] == tag}
    if not candidates:
        raise KeyError(f"unknown action type {tag!r}")
    for payload_key, cls in candidates.items():
        if payload_key is not None and payload_key in action:
            return cls
    if None in candidates:
        return candidates[None]
    raise KeyError(f"no {tag!r} variant matches keys {sorted(action)}")


def payload_from_wire(action: Mapping[str, Any]) -> ActionPayload:
    """Rebuild a payload value from a wire ``action`` object (which carries ``type``)."""
    tag = action.get("type")
    if not isinstance(tag, str):
        raise KeyError("action object has no 'type'")
    cls = resolve_action(tag, action)
    fields = {k: v for k, v in action.items() if k != "type"}
    if issubclass(cls, L1Action):
        return cls.from_action_fields(fields)
    fields.pop("signatureChainId", None)
    fields.pop(encode.CHAIN_FIELD, None)
    return cls.from_wire_fields(fields)  # type: ignore[attr-defined]


__all__ = [
    "NATIVE",
    "STRUCTURED",
    "ActionPayload",
    "L1Action",
    "UserSignedAction",
    "NativeAction",
    "StructuredAction",
    "Action",
    "action_of",
    "resolve_action",
    "payload_from_wire",
    "registered_types",
]
