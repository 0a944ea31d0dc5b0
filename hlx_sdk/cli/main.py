"""
hlx_sdk.cli.main
================

`hlx`: hash, sign and submit exchange actions from the shell.

Examples
--------
    $ hlx version
    $ hlx --network testnet env
    $ hlx --network testnet hash '{"type":"evmUserModify","usingBigBlocks":true}' --nonce 5
    $ hlx --network testnet sign '{"type":"evmUserModify","usingBigBlocks":true}' > signed.json
    $ hlx --network testnet send signed.json
    $ hlx --network testnet toggle-big-blocks --enable
    $ hlx usd-send 0x0d1d9635d0640821d15e323ac8adadfa9c111414 1.5

Configuration
-------------
- Network      : `--network` or env `HLX_NETWORK` (mainnet | testnet | localhost)
- Endpoint     : `--base-url` or env `HLX_BASE_URL` (default: per network)
- HTTP Timeout : `--timeout` or env `HLX_TIMEOUT` seconds (default: 10.0)
- Signing key  : `--key` or env `HLX_PRIVATE_KEY`
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Optional

import typer

from ..action.base import NativeAction, action_of, payload_from_wire
from ..action.lifecycle import PreparedAction, SignedAction
from ..action.meta import SigningMetadata
from ..action.types import ToggleBigBlocks, UsdSend
from ..config import SDKConfig
from ..errors import HlxSdkError
from ..exchange.client import ExchangeClient
from ..exchange.responses import ExchangeResponse, ExchangeSuccess
from ..nonce import now_ms
from ..utils.bytes import to_hex
from ..version import __version__ as SDK_VERSION
from ..version import version as sdk_version
from ..wallet.signer import LocalSigner

log = logging.getLogger(__name__)

app = typer.Typer(
    name="hlx",
    help="Hash, sign and submit exchange actions.",
    no_args_is_help=True,
    add_completion=False,
)

__all__ = ["app", "main", "run"]


@dataclass
class Ctx:
    config: SDKConfig


def _print_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, ensure_ascii=False))


@app.callback()
def _root(
    ctx: typer.Context,
    network: Optional[str] = typer.Option(None, "--network", help="mainnet, testnet or localhost.", envvar="HLX_NETWORK"),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Exchange API base URL.", envvar="HLX_BASE_URL"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="HTTP timeout in seconds.", envvar="HLX_TIMEOUT"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and responses."),
) -> None:
    """Resolve the effective configuration for this process."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    overrides: dict = {}
    if network:
        overrides["network"] = network
    if base_url:
        overrides["base_url"] = base_url
    if timeout is not None:
        overrides["request_timeout"] = timeout
    try:
        config = SDKConfig.with_overrides(None, **overrides)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    ctx.obj = Ctx(config=config)


def _config(ctx: typer.Context) -> SDKConfig:
    c: Ctx = ctx.obj
    return c.config


def _signer(key: Optional[str]) -> LocalSigner:
    if not key:
        raise typer.BadParameter("a private key is required (--key or HLX_PRIVATE_KEY)")
    return LocalSigner(key)


def _load_action(text: str) -> Any:
    """Action JSON given inline, as a file path, or '-' for stdin."""
    if text == "-":
        text = sys.stdin.read()
    elif not text.lstrip().startswith("{") and Path(text).is_file():
        text = Path(text).read_text()
    try:
        obj = json.loads(text)
    except ValueError as e:
        raise typer.BadParameter(f"invalid JSON: {e}") from e
    try:
        return action_of(payload_from_wire(obj))
    except (KeyError, TypeError, ValueError) as e:
        raise typer.BadParameter(f"cannot decode action: {e}") from e


def _report(resp: ExchangeResponse) -> None:
    if isinstance(resp, ExchangeSuccess):
        _print_json({"ok": True, "status": resp.status_code, "body": resp.body})
        return
    _print_json({"ok": False, "status": resp.code, "rejected": resp.rejected, "message": resp.message})
    raise typer.Exit(code=1)


# --- Commands -----------------------------------------------------------------


@app.command("version")
def version() -> None:
    """Print the SDK CLI version."""
    typer.echo(f"hlx {sdk_version()}")


@app.command("env")
def env(ctx: typer.Context) -> None:
    """Show the effective configuration and signing chain."""
    cfg = _config(ctx)
    chain = cfg.chain
    _print_json(
        {
            **cfg.to_dict(),
            "chain": {
                "name": chain.name,
                "native_source": chain.native_source,
                "network_name": chain.network_name,
                "network_id": chain.network_id,
            },
            "sdk_version": SDK_VERSION,
        }
    )


@app.command("hash")
def hash_(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action JSON (inline, file path, or '-')."),
    nonce: Optional[int] = typer.Option(None, "--nonce", help="Nonce (default: now in ms, or the embedded time)."),
    vault: Optional[str] = typer.Option(None, "--vault", help="Vault address."),
    expires_after: Optional[int] = typer.Option(None, "--expires-after", help="Expiry timestamp (ms)."),
) -> None:
    """Print the signing hash of an action without signing it."""
    cfg = _config(ctx)
    act = _load_action(action)
    n = nonce if nonce is not None else (act.embedded_timestamp() or now_ms())
    meta = SigningMetadata(
        nonce=n,
        chain=cfg.chain,
        vault_address=vault or cfg.vault_address,
        expires_after=expires_after if expires_after is not None else cfg.expires_after,
    )
    prepared = PreparedAction(action=act, metadata=meta)
    out = {
        "type": prepared.action.action_type(),
        "scheme": "native" if prepared.action.is_native() else "structured",
        "nonce": n,
        "signing_hash": prepared.signing_hash_hex,
    }
    if isinstance(prepared.action, NativeAction):
        out["encoded"] = to_hex(prepared.action.encoded_bytes(meta))
        out["connection_id"] = to_hex(prepared.action.connection_id(meta))
    _print_json(out)


@app.command("sign")
def sign(
    ctx: typer.Context,
    action: str = typer.Argument(..., help="Action JSON (inline, file path, or '-')."),
    key: Optional[str] = typer.Option(None, "--key", help="Private key (hex).", envvar="HLX_PRIVATE_KEY"),
    nonce: Optional[int] = typer.Option(None, "--nonce", help="Nonce (default: now in ms, or the embedded time)."),
) -> None:
    """Sign an action and print the wire envelope."""
    cfg = _config(ctx)
    signer = _signer(key)
    with ExchangeClient.from_config(cfg, signer=signer) as ex:
        signed = ex.sign(ex.prepare(_load_action(action), nonce=nonce))
    _print_json(signed.to_wire())


@app.command("send")
def send(
    ctx: typer.Context,
    envelope: str = typer.Argument(..., help="Signed envelope JSON (inline, file path, or '-')."),
) -> None:
    """Submit an already signed envelope."""
    cfg = _config(ctx)
    if envelope == "-":
        envelope = sys.stdin.read()
    elif not envelope.lstrip().startswith("{") and Path(envelope).is_file():
        envelope = Path(envelope).read_text()
    signed = SignedAction.from_json(envelope, chain=cfg.chain)
    with ExchangeClient.from_config(cfg) as ex:
        _report(ex.send(signed))


@app.command("toggle-big-blocks")
def toggle_big_blocks(
    ctx: typer.Context,
    enable: bool = typer.Option(True, "--enable/--disable", help="Use big blocks for EVM transactions."),
    key: Optional[str] = typer.Option(None, "--key", help="Private key (hex).", envvar="HLX_PRIVATE_KEY"),
) -> None:
    """Switch EVM block mode for the signing account."""
    cfg = _config(ctx)
    with ExchangeClient.from_config(cfg, signer=_signer(key)) as ex:
        log.info("evmUserModify usingBigBlocks=%s on %s", enable, cfg.network.value)
        _report(ex.execute(ToggleBigBlocks(using_big_blocks=enable)))


@app.command("usd-send")
def usd_send(
    ctx: typer.Context,
    destination: str = typer.Argument(..., help="Recipient address (0x...)."),
    amount: str = typer.Argument(..., help="Amount in USD, e.g. 100.50"),
    key: Optional[str] = typer.Option(None, "--key", help="Private key (hex).", envvar="HLX_PRIVATE_KEY"),
    time_ms: Optional[int] = typer.Option(None, "--time", help="Embedded timestamp (default: now in ms)."),
) -> None:
    """Transfer USD to another address."""
    cfg = _config(ctx)
    try:
        value = Decimal(amount)
    except InvalidOperation as e:
        raise typer.BadParameter(f"invalid amount {amount!r}") from e
    with ExchangeClient.from_config(cfg, signer=_signer(key)) as ex:
        log.info("usdSend %s -> %s on %s", value, destination, cfg.network.value)
        _report(ex.execute(UsdSend(destination=destination, amount=value, time=time_ms)))


# --- Entrypoints --------------------------------------------------------------


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run the CLI. Returns an integer exit code.
    """
    try:
        # Without standalone mode, Exit raised inside a command comes back as the return value.
        rc = app(prog_name="hlx", standalone_mode=False, args=argv)
        return int(rc or 0)
    except typer.Exit as e:
        return int(e.exit_code)
    except typer.Abort:
        typer.echo("aborted", err=True)
        return 1
    except HlxSdkError as e:
        typer.echo(f"error: {e}", err=True)
        return 1
    except Exception as e:
        # Usage errors carry their own message and exit code.
        show = getattr(e, "show", None)
        if callable(show):
            show()
            return int(getattr(e, "exit_code", 1))
        typer.echo(f"error: {e}", err=True)
        return 1


def run(argv: Optional[list[str]] = None) -> int:
    """Alias for :func:`main`."""
    return main(argv)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
