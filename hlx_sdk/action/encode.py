"""
Canonical hash engine for exchange actions.

Two schemes, both ending in the EIP-712 ``0x19 0x01`` envelope:

Native (L1)
-----------
    bytes  = msgpack(action) || nonce:u64be || vault_flag [|| vault:20]
             [|| 0x00 || expires:u64be]
    connection_id = keccak(bytes)
    struct = keccak(typeHash("Agent(string source,bytes32 connectionId)")
                    || keccak(source) || connection_id)
    digest = keccak(0x19 0x01 || domainSep("Exchange", "1", 1337, 0x0) || struct)

``vault_flag`` is ``0x01`` followed by the raw address when a vault is
included, otherwise a lone ``0x00``. The expiry block is only present when an
expiry is set.

Structured (user-signed)
------------------------
    struct = keccak(abi(typeHash, word_1, ..., word_n))
    digest = keccak(0x19 0x01 || domainSep("HyperliquidSignTransaction", "1",
                                           network_id, 0x0) || struct)

``string``/``bytes`` fields contribute the keccak of their contents, the rest
are ABI words of the raw value.

All functions here are pure.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Tuple

from eth_abi import encode as abi_encode
from eth_abi.exceptions import EncodingError as AbiEncodingError

from ..chain import ChainDescriptor
from ..errors import EncodingError
from ..utils.bytes import address_to_bytes, ensure_bytes, u64_be
from ..utils.hash import keccak256, keccak256_text
from ..utils.packing import dumps as msgpack_dumps

Field = Tuple[str, str]  # (solidity type, field name)

ZERO_ADDRESS = "0x" + "00" * 20

EIP712_DOMAIN_TYPE = "EIP712Domain(string name,string version,uint256 chainId,address verifyingContract)"
AGENT_TYPE = "Agent(string source,bytes32 connectionId)"

AGENT_DOMAIN_NAME = "Exchange"
AGENT_DOMAIN_VERSION = "1"
AGENT_DOMAIN_CHAIN_ID = 1337

USER_SIGNED_DOMAIN_NAME = "HyperliquidSignTransaction"
USER_SIGNED_DOMAIN_VERSION = "1"

CHAIN_FIELD = "hyperliquidChain"
MULTISIG_FIELDS: Tuple[Field, ...] = (("address", "payloadMultiSigUser"), ("address", "outerSigner"))


# --- EIP-712 primitives -------------------------------------------------------


def eip712_domain_separator(
    name: str,
    version: str,
    chain_id: int,
    verifying_contract: str = ZERO_ADDRESS,
) -> bytes:
    return keccak256(
        abi_encode(
            ["bytes32", "bytes32", "bytes32", "uint256", "address"],
            [
                keccak256_text(EIP712_DOMAIN_TYPE),
                keccak256_text(name),
                keccak256_text(version),
                int(chain_id),
                address_to_bytes(verifying_contract),
            ],
        )
    )


def eip712_digest(domain_separator: bytes, struct_hash: bytes) -> bytes:
    """keccak(0x19 || 0x01 || domainSeparator || structHash)."""
    if len(domain_separator) != 32 or len(struct_hash) != 32:
        raise EncodingError(message="domain separator and struct hash must be 32 bytes")
    return keccak256(b"\x19\x01" + domain_separator + struct_hash)


AGENT_DOMAIN_SEPARATOR = eip712_domain_separator(AGENT_DOMAIN_NAME, AGENT_DOMAIN_VERSION, AGENT_DOMAIN_CHAIN_ID)


def user_signed_domain_separator(chain: ChainDescriptor) -> bytes:
    return eip712_domain_separator(USER_SIGNED_DOMAIN_NAME, USER_SIGNED_DOMAIN_VERSION, chain.network_id)


# --- Native scheme ------------------------------------------------------------


def l1_action_bytes(
    action: Any,
    nonce: int,
    vault_address: Optional[str] = None,
    expires_after: Optional[int] = None,
) -> bytes:
    """
    Exact byte string hashed into the connection id.

    *action* is the msgpack-encodable action value (a dict in declaration
    order, or the multisig 3-array). Pass ``vault_address=None`` for
    vault-exempt action types.
    """
    action_type = action.get("type") if isinstance(action, Mapping) else None
    try:
        out = bytearray(msgpack_dumps(action, action_type=action_type))
        out += u64_be(nonce)
        if vault_address is None:
            out += b"\x00"
        else:
            out += b"\x01" + address_to_bytes(vault_address)
        if expires_after is not None:
            out += b"\x00" + u64_be(expires_after)
    except (TypeError, ValueError) as e:
        raise EncodingError(message=str(e), action_type=action_type) from e
    return bytes(out)


def l1_connection_id(
    action: Any,
    nonce: int,
    vault_address: Optional[str] = None,
    expires_after: Optional[int] = None,
) -> bytes:
    return keccak256(l1_action_bytes(action, nonce, vault_address, expires_after))


def agent_struct_hash(connection_id: bytes, source: str) -> bytes:
    connection_id = ensure_bytes(connection_id)
    if len(connection_id) != 32:
        raise EncodingError(message=f"connection id must be 32 bytes, got {len(connection_id)}")
    return keccak256(
        abi_encode(
            ["bytes32", "bytes32", "bytes32"],
            [keccak256_text(AGENT_TYPE), keccak256_text(source), connection_id],
        )
    )


def agent_signing_hash(connection_id: bytes, source: str) -> bytes:
    """Wrap a connection id in the fixed Agent envelope."""
    return eip712_digest(AGENT_DOMAIN_SEPARATOR, agent_struct_hash(connection_id, source))


def multisig_l1_envelope(action: Mapping[str, Any], multisig_user: str, outer_signer: str) -> list:
    """The value hashed for a native action executed on behalf of a multisig user."""
    return [multisig_user.lower(), outer_signer.lower(), dict(action)]


# --- Structured scheme --------------------------------------------------------


def type_signature(primary_type: str, fields: Sequence[Field]) -> str:
    """``Primary(type1 name1,type2 name2,...)``"""
    return primary_type + "(" + ",".join(f"{t} {n}" for t, n in fields) + ")"


def multisig_fields(fields: Sequence[Field]) -> Tuple[Field, ...]:
    """Insert the multisig address fields right after ``hyperliquidChain``."""
    out = []
    inserted = False
    for f in fields:
        out.append(tuple(f))
        if f[1] == CHAIN_FIELD:
            out.extend(MULTISIG_FIELDS)
            inserted = True
    if not inserted:
        raise EncodingError(message=f"typed fields have no {CHAIN_FIELD!r} entry")
    return tuple(out)


def _encode_field(sol_type: str, name: str, value: Any) -> Tuple[str, Any]:
    if value is None:
        raise EncodingError(message=f"missing value for typed field {name!r}")
    if sol_type == "string":
        if not isinstance(value, str):
            raise EncodingError(message=f"field {name!r} must be rendered as text, got {type(value).__name__}")
        return "bytes32", keccak256_text(value)
    if sol_type == "bytes":
        return "bytes32", keccak256(ensure_bytes(value))
    if sol_type == "address":
        return "address", address_to_bytes(value)
    if sol_type == "bool":
        return "bool", bool(value)
    if sol_type == "bytes32":
        return "bytes32", ensure_bytes(value)
    if sol_type.startswith(("uint", "int")):
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(message=f"field {name!r} must be an int, got {type(value).__name__}")
        return sol_type, value
    raise EncodingError(message=f"unsupported typed field {sol_type} {name}")


def typed_struct_hash(signature: str, fields: Sequence[Field], values: Mapping[str, Any]) -> bytes:
    """keccak(abi_encode(typeHash, word_1, ..., word_n)) over *fields* in order."""
    abi_types = ["bytes32"]
    abi_values: list = [keccak256_text(signature)]
    try:
        for sol_type, name in fields:
            t, v = _encode_field(sol_type, name, values.get(name))
            abi_types.append(t)
            abi_values.append(v)
        return keccak256(abi_encode(abi_types, abi_values))
    except (AbiEncodingError, TypeError, ValueError) as e:
        raise EncodingError(message=str(e)) from e


def user_signed_hash(
    chain: ChainDescriptor,
    primary_type: str,
    fields: Sequence[Field],
    values: Mapping[str, Any],
) -> bytes:
    """
    Full digest of a user-signed action on *chain*.

    ``hyperliquidChain`` is always taken from the chain descriptor, whatever
    *values* carries for it.
    """
    merged = dict(values)
    merged[CHAIN_FIELD] = chain.network_name
    struct = typed_struct_hash(type_signature(primary_type, fields), fields, merged)
    return eip712_digest(user_signed_domain_separator(chain), struct)


def multisig_user_signed_hash(
    chain: ChainDescriptor,
    primary_type: str,
    fields: Sequence[Field],
    values: Mapping[str, Any],
    multisig_user: str,
    outer_signer: str,
) -> bytes:
    merged = dict(values)
    merged["payloadMultiSigUser"] = multisig_user.lower()
    merged["outerSigner"] = outer_signer.lower()
    return user_signed_hash(chain, primary_type, multisig_fields(fields), merged)


__all__ = [
    "Field",
    "ZERO_ADDRESS",
    "AGENT_TYPE",
    "AGENT_DOMAIN_SEPARATOR",
    "eip712_domain_separator",
    "eip712_digest",
    "user_signed_domain_separator",
    "l1_action_bytes",
    "l1_connection_id",
    "agent_struct_hash",
    "agent_signing_hash",
    "multisig_l1_envelope",
    "type_signature",
    "multisig_fields",
    "typed_struct_hash",
    "user_signed_hash",
    "multisig_user_signed_hash",
]
