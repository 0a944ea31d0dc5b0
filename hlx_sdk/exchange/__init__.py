from .client import AsyncExchangeClient, ExchangeClient  # noqa: F401
from .responses import ExchangeError, ExchangeRejected, ExchangeResponse, ExchangeSuccess  # noqa: F401

__all__ = [
    "ExchangeClient",
    "AsyncExchangeClient",
    "ExchangeResponse",
    "ExchangeSuccess",
    "ExchangeError",
    "ExchangeRejected",
]
