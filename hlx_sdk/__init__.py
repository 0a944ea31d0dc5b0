"""
hlx-sdk: Python client for authenticated exchange actions.
Convenience exports for the most common APIs.
"""

from .version import __version__  # noqa: F401

# Core config & errors
from .config import SDKConfig  # noqa: F401
from .errors import (  # noqa: F401
    HlxSdkError,
    EncodingError,
    CapabilityConflict,
    SignatureError,
    TransportError,
    ChainMismatchError,
    NonceConflict,
    EnvelopeError,
    ExchangeApiError,
    InsufficientStakeError,
)

# Chains
from .chain import ChainDescriptor, Network, PRODUCTION, TEST, chain_for  # noqa: F401

# Actions
from .action import (  # noqa: F401
    Action,
    ActionPayload,
    L1Action,
    UserSignedAction,
    NativeAction,
    StructuredAction,
    action_of,
    SigningMetadata,
    PreparedAction,
    SignedAction,
    prepare_action,
    ToggleBigBlocks,
    SetOpenInterestCaps,
    UsdSend,
)

# Wallet
from .wallet.signer import Signature, Signer, LocalSigner, CallableSigner, recover_address  # noqa: F401

# Nonces
from .nonce import NonceManager  # noqa: F401

# Exchange
from .exchange import (  # noqa: F401
    ExchangeClient,
    AsyncExchangeClient,
    ExchangeResponse,
    ExchangeSuccess,
    ExchangeError,
    ExchangeRejected,
)

__all__ = [
    "__version__",
    # Core
    "SDKConfig",
    "HlxSdkError", "EncodingError", "CapabilityConflict", "SignatureError",
    "TransportError", "ChainMismatchError", "NonceConflict", "EnvelopeError",
    "ExchangeApiError", "InsufficientStakeError",
    # Chains
    "ChainDescriptor", "Network", "PRODUCTION", "TEST", "chain_for",
    # Actions
    "Action", "ActionPayload", "L1Action", "UserSignedAction",
    "NativeAction", "StructuredAction", "action_of",
    "SigningMetadata", "PreparedAction", "SignedAction", "prepare_action",
    "ToggleBigBlocks", "SetOpenInterestCaps", "UsdSend",
    # Wallet
    "Signature", "Signer", "LocalSigner", "CallableSigner", "recover_address",
    # Nonces
    "NonceManager",
    # Exchange
    "ExchangeClient", "AsyncExchangeClient",
    "ExchangeResponse", "ExchangeSuccess", "ExchangeError", "ExchangeRejected",
]
