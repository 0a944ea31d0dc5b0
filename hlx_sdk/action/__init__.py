"""
Action payloads, the hash engine and lifecycle objects.

Modules:
- meta      : SigningMetadata (nonce, vault, expiry, chain)
- encode    : native + structured hash engine
- base      : capability bases, Action sum type, registry
- types     : concrete payloads
- lifecycle : PreparedAction / SignedAction
"""

from .base import (  # noqa: F401
    Action,
    ActionPayload,
    L1Action,
    NativeAction,
    StructuredAction,
    UserSignedAction,
    action_of,
    payload_from_wire,
    resolve_action,
)
from .lifecycle import PreparedAction, SignedAction, prepare_action  # noqa: F401
from .meta import SigningMetadata  # noqa: F401
from .types import SetOpenInterestCaps, ToggleBigBlocks, UsdSend  # noqa: F401

__all__ = [
    "Action",
    "ActionPayload",
    "L1Action",
    "UserSignedAction",
    "NativeAction",
    "StructuredAction",
    "action_of",
    "resolve_action",
    "payload_from_wire",
    "SigningMetadata",
    "PreparedAction",
    "SignedAction",
    "prepare_action",
    "ToggleBigBlocks",
    "SetOpenInterestCaps",
    "UsdSend",
]
