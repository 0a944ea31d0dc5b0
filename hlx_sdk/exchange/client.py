"""
Exchange client: prepare, sign and submit actions.

Example:
    from hlx_sdk import ExchangeClient, LocalSigner, ToggleBigBlocks

    with ExchangeClient(network="testnet", signer=LocalSigner(key)) as ex:
        resp = ex.execute(ToggleBigBlocks.enable())
        resp.raise_for_error()

Session defaults (chain, vault, expiry, default signer) are fixed at
construction and safe to share between threads; the nonce manager is the one
piece of shared mutable state and serializes itself.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

import httpx

from ..action.base import Action, ActionPayload, action_of
from ..action.lifecycle import PreparedAction, SignedAction
from ..action.meta import SigningMetadata
from ..chain import ChainDescriptor, Network, base_url_for, chain_for, parse_network
from ..config import SDKConfig
from ..errors import ChainMismatchError, EnvelopeError, NonceConflict, SignatureError
from ..nonce import NonceManager
from ..utils.bytes import ensure_u64, normalize_address
from ..wallet.signer import Signer
from .http import default_headers, exchange_url, post_exchange, post_exchange_async
from .responses import ExchangeResponse

log = logging.getLogger(__name__)

Payload = Union[ActionPayload, Action]


class _ExchangeBase:
    def __init__(
        self,
        *,
        network: Union[Network, str] = Network.MAINNET,
        base_url: Optional[str] = None,
        chain: Optional[ChainDescriptor] = None,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signer: Optional[Signer] = None,
        nonce_manager: Optional[NonceManager] = None,
    ) -> None:
        net = parse_network(network)
        self._chain = chain or chain_for(net)
        self._base_url = (base_url or base_url_for(net)).rstrip("/")
        self._vault_address = normalize_address(vault_address) if vault_address else None
        self._expires_after = ensure_u64(expires_after, "expires_after") if expires_after is not None else None
        self._signer = signer
        self._nonces = nonce_manager or NonceManager()

    # --- session defaults (read-only) -----------------------------------------

    @property
    def chain(self) -> ChainDescriptor:
        return self._chain

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def exchange_url(self) -> str:
        return exchange_url(self._base_url)

    @property
    def vault_address(self) -> Optional[str]:
        return self._vault_address

    @property
    def expires_after(self) -> Optional[int]:
        return self._expires_after

    @property
    def nonce_manager(self) -> NonceManager:
        return self._nonces

    # --- lifecycle ------------------------------------------------------------

    def prepare(self, payload: Payload, *, nonce: Optional[int] = None) -> PreparedAction:
        """
        Assemble metadata and compute the signing hash. No network I/O.

        Native actions take *nonce* or the next value from the nonce manager.
        User-signed actions use their embedded timestamp as nonce; an unset
        timestamp is filled from *nonce* (or the manager), and a *nonce* that
        disagrees with a set timestamp raises NonceConflict.
        """
        action = action_of(payload)
        if nonce is not None:
            ensure_u64(nonce, "nonce")

        if action.is_native():
            if nonce is None:
                n = self._nonces.next()
            else:
                n = nonce
                self._nonces.observe(nonce)
        else:
            embedded = action.embedded_timestamp()
            if embedded is None:
                n = nonce if nonce is not None else self._nonces.next()
            elif nonce is not None and nonce != embedded:
                raise NonceConflict(
                    message="explicit nonce differs from the action's embedded timestamp",
                    embedded=embedded,
                    requested=nonce,
                )
            else:
                n = embedded
            # Same nonce space as native actions from this signer.
            self._nonces.observe(n)
            action = action.with_nonce(n)

        meta = SigningMetadata(
            nonce=n,
            chain=self._chain,
            vault_address=self._vault_address,
            expires_after=self._expires_after,
        )
        prepared = PreparedAction(action=action, metadata=meta)
        log.debug(
            "prepared %s nonce=%d chain=%s hash=%s",
            action.action_type(),
            n,
            self._chain.name,
            prepared.signing_hash_hex,
        )
        return prepared

    def _resolve_signer(self, signer: Optional[Signer]) -> Signer:
        resolved = signer or self._signer
        if resolved is None:
            raise SignatureError(message="no signer given and no default signer configured")
        return resolved

    def _check_chain(self, signed: SignedAction) -> None:
        if signed.chain is None:
            raise EnvelopeError(
                message="envelope has no chain bound; decode it with SignedAction.from_wire(..., chain=...)",
                field="chain",
            )
        if signed.chain != self._chain:
            raise ChainMismatchError(expected=self._chain.name, got=signed.chain.name)


class ExchangeClient(_ExchangeBase):
    """Synchronous client over `httpx.Client`."""

    def __init__(
        self,
        *,
        network: Union[Network, str] = Network.MAINNET,
        base_url: Optional[str] = None,
        chain: Optional[ChainDescriptor] = None,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signer: Optional[Signer] = None,
        nonce_manager: Optional[NonceManager] = None,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        super().__init__(
            network=network,
            base_url=base_url,
            chain=chain,
            vault_address=vault_address,
            expires_after=expires_after,
            signer=signer,
            nonce_manager=nonce_manager,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout, headers=default_headers(headers))

    @classmethod
    def from_config(cls, config: Optional[SDKConfig] = None, **kwargs: Any) -> "ExchangeClient":
        config = config or SDKConfig.from_env()
        return cls(
            network=config.network,
            base_url=config.base_url,
            vault_address=config.vault_address,
            expires_after=config.expires_after,
            timeout=config.request_timeout,
            headers=config.http_headers(),
            **kwargs,
        )

    # --- context manager -------------------------------------------------

    def __enter__(self) -> "ExchangeClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.close()

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    # --- public API ------------------------------------------------------

    def sign(self, prepared: PreparedAction, signer: Optional[Signer] = None) -> SignedAction:
        return prepared.sign(self._resolve_signer(signer))

    def send(self, signed: SignedAction) -> ExchangeResponse:
        """Submit once. Terminal: the response is returned whatever it says."""
        self._check_chain(signed)
        resp = post_exchange(self._http, self.exchange_url, signed.to_wire())
        log.info("submitted %s nonce=%d -> %s", signed.action_type(), signed.nonce, type(resp).__name__)
        return resp

    def execute(self, payload: Payload, signer: Optional[Signer] = None, *, nonce: Optional[int] = None) -> ExchangeResponse:
        """prepare -> sign -> send."""
        return self.send(self.sign(self.prepare(payload, nonce=nonce), signer))


class AsyncExchangeClient(_ExchangeBase):
    """Asynchronous client over `httpx.AsyncClient`. Awaits async signers."""

    def __init__(
        self,
        *,
        network: Union[Network, str] = Network.MAINNET,
        base_url: Optional[str] = None,
        chain: Optional[ChainDescriptor] = None,
        vault_address: Optional[str] = None,
        expires_after: Optional[int] = None,
        signer: Optional[Signer] = None,
        nonce_manager: Optional[NonceManager] = None,
        timeout: float = 10.0,
        headers: Optional[Mapping[str, str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        super().__init__(
            network=network,
            base_url=base_url,
            chain=chain,
            vault_address=vault_address,
            expires_after=expires_after,
            signer=signer,
            nonce_manager=nonce_manager,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=timeout, headers=default_headers(headers))

    @classmethod
    def from_config(cls, config: Optional[SDKConfig] = None, **kwargs: Any) -> "AsyncExchangeClient":
        config = config or SDKConfig.from_env()
        return cls(
            network=config.network,
            base_url=config.base_url,
            vault_address=config.vault_address,
            expires_after=config.expires_after,
            timeout=config.request_timeout,
            headers=config.http_headers(),
            **kwargs,
        )

    async def __aenter__(self) -> "AsyncExchangeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def sign(self, prepared: PreparedAction, signer: Optional[Signer] = None) -> SignedAction:
        return await prepared.sign_async(self._resolve_signer(signer))

    async def send(self, signed: SignedAction) -> ExchangeResponse:
        self._check_chain(signed)
        resp = await post_exchange_async(self._http, self.exchange_url, signed.to_wire())
        log.info("submitted %s nonce=%d -> %s", signed.action_type(), signed.nonce, type(resp).__name__)
        return resp

    async def execute(
        self, payload: Payload, signer: Optional[Signer] = None, *, nonce: Optional[int] = None
    ) -> ExchangeResponse:
        signed = await self.sign(self.prepare(payload, nonce=nonce), signer)
        return await self.send(signed)


__all__ = ["ExchangeClient", "AsyncExchangeClient"]
