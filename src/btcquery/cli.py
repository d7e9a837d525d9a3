"""
btcquery CLI - Inspect outputs, list UTXOs and dry-run coin selection.
"""

from __future__ import annotations

import asyncio
import sys

import typer
from loguru import logger

from btcquery.config import Settings, get_settings
from btcquery.errors import TxBuildError
from btcquery.models import NetworkType, Utxo
from btcquery.service.api import BtcAssetsApi
from btcquery.source import DataSource

app = typer.Typer(
    name="btcquery",
    help="Query BTC outputs and collect UTXOs through the BTC Assets API",
    add_completion=False,
)

URL_OPTION = typer.Option(None, "--url", help="Assets API URL (default from settings)")
TOKEN_OPTION = typer.Option(None, "--token", help="Assets API bearer token")
NETWORK_OPTION = typer.Option(None, "--network", "-n", help="Bitcoin network")
LOG_LEVEL_OPTION = typer.Option(None, "--log-level", "-l")


def setup_logging(level: str = "INFO") -> None:
    """Configure loguru logging."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def build_source(
    settings: Settings,
    url: str | None = None,
    token: str | None = None,
    network: NetworkType | None = None,
) -> DataSource:
    service = BtcAssetsApi(
        url=url or settings.assets_api_url,
        app=settings.assets_api_app,
        domain=settings.assets_api_domain,
        origin=settings.assets_api_origin,
        token=token or settings.assets_api_token,
        timeout=settings.request_timeout,
    )
    return DataSource(service, network or settings.network)


def parse_outpoint(value: str) -> tuple[str, int]:
    """Parse "txid:vout" into an outpoint tuple"""
    txid, sep, vout = value.rpartition(":")
    if not sep or not txid or not vout.isdigit():
        raise typer.BadParameter(f"expected txid:vout, got {value!r}")
    return txid, int(vout)


def format_utxo(utxo: Utxo) -> str:
    return f"  {utxo.txid}:{utxo.vout}  {utxo.value:>15,} sats  {utxo.address_type.value}"


def _run(coro) -> None:
    try:
        asyncio.run(coro)
    except TxBuildError as e:
        logger.error(str(e))
        raise typer.Exit(1) from e


@app.command()
def utxos(
    address: str = typer.Argument(..., help="BTC address"),
    min_satoshi: int | None = typer.Option(None, "--min-satoshi"),
    confirmed: bool = typer.Option(False, "--confirmed", help="Only confirmed UTXOs"),
    url: str | None = URL_OPTION,
    token: str | None = TOKEN_OPTION,
    network: NetworkType | None = NETWORK_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """List the UTXOs of an address, oldest first."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    async def _list() -> None:
        source = build_source(settings, url, token, network)
        try:
            rows = await source.get_utxos(
                address, min_satoshi=min_satoshi, only_confirmed=confirmed or None
            )
            total = sum(utxo.value for utxo in rows)
            print(f"\n{len(rows)} UTXOs, {total:,} sats ({total / 1e8:.8f} BTC)")
            for utxo in rows:
                print(format_utxo(utxo))
        finally:
            await source.close()

    _run(_list())


@app.command()
def output(
    txid: str = typer.Argument(..., help="Transaction id"),
    vout: int = typer.Argument(..., help="Output index"),
    confirmed: bool = typer.Option(False, "--confirmed", help="Require a confirmed transaction"),
    url: str | None = URL_OPTION,
    token: str | None = TOKEN_OPTION,
    network: NetworkType | None = NETWORK_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Show a single output and whether it is spendable."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    async def _show() -> None:
        source = build_source(settings, url, token, network)
        try:
            result = await source.get_output(txid, vout, require_confirmed=confirmed)
        finally:
            await source.close()

        if result is None:
            logger.error(f"Output {txid}:{vout} not found")
            raise typer.Exit(1)
        print(f"Output:  {result.txid}:{result.vout}")
        print(f"Value:   {result.value:,} sats")
        print(f"Script:  {result.script_pk}")
        if isinstance(result, Utxo):
            print(f"Address: {result.address} ({result.address_type.value})")
        else:
            print("Address: none (unspendable)")

    _run(_show())


@app.command()
def collect(
    address: str = typer.Argument(..., help="BTC address"),
    amount: int = typer.Argument(..., help="Target amount in sats"),
    exclude: list[str] = typer.Option([], "--exclude", "-x", help="Outpoint txid:vout to skip"),
    non_rgbpp: bool = typer.Option(False, "--non-rgbpp", help="Skip RGB++ bound UTXOs"),
    confirmed: bool = typer.Option(False, "--confirmed", help="Only confirmed UTXOs"),
    allow_insufficient: bool = typer.Option(False, "--allow-insufficient"),
    url: str | None = URL_OPTION,
    token: str | None = TOKEN_OPTION,
    network: NetworkType | None = NETWORK_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Dry-run coin selection for an address and a target amount."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)
    exclude_utxos = [parse_outpoint(value) for value in exclude]

    async def _collect() -> None:
        source = build_source(settings, url, token, network)
        try:
            result = await source.collect_satoshi(
                address,
                amount,
                allow_insufficient=allow_insufficient,
                only_non_rgbpp_utxos=non_rgbpp,
                only_confirmed_utxos=confirmed,
                exclude_utxos=exclude_utxos,
            )
        finally:
            await source.close()

        print(f"\nSelected {len(result.utxos)} UTXOs, {result.satoshi:,} sats")
        print(f"Exceed:  {result.exceed_satoshi:,} sats")
        for utxo in result.utxos:
            print(format_utxo(utxo))

    _run(_collect())


@app.command()
def paymaster(
    url: str | None = URL_OPTION,
    token: str | None = TOKEN_OPTION,
    log_level: str | None = LOG_LEVEL_OPTION,
) -> None:
    """Show the paymaster output configured on the Assets API."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)

    async def _show() -> None:
        source = build_source(settings, url, token)
        try:
            result = await source.get_paymaster_output()
        finally:
            await source.close()

        if result is None:
            print("No paymaster configured")
            return
        print(f"Paymaster: {result.address}  {result.value:,} sats")

    _run(_show())


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
