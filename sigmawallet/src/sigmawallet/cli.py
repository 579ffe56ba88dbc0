"""
Sigma Wallet CLI - Generate seeds, inspect derived mints and preview spend plans.
"""

from __future__ import annotations

import sys
from pathlib import Path

import typer
from loguru import logger

from sigmawallet.config import get_settings
from sigmawallet.storage.json_file import JsonFileStorage
from sigmawallet.wallet.denomination import (
    decimal_to_amount,
    decompose_amount,
    format_amount,
)
from sigmawallet.wallet.derivation import (
    derive_coin,
    generate_master_seed,
    master_seed_from_mnemonic,
)
from sigmawallet.wallet.errors import Err, InvalidDenominationError, StorageError
from sigmawallet.wallet.selector import select_coins
from sigmawallet.wallet.store import WalletMintStore

app = typer.Typer(
    name="sigma-wallet",
    help="Sigma mint wallet tools",
    add_completion=False,
)


def setup_logging(level: str | None = None) -> None:
    """Configure loguru logging, falling back to SIGMA_LOG_LEVEL."""
    if level is None:
        level = get_settings().log_level
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def _load_seed(seed: str | None, seed_file: Path | None, mnemonic: str | None = None) -> bytes:
    if mnemonic:
        if seed or seed_file:
            logger.error("Use either a mnemonic or a hex seed, not both")
            raise typer.Exit(1)
        return master_seed_from_mnemonic(mnemonic.strip())

    if seed_file:
        if not seed_file.exists():
            logger.error(f"Seed file not found: {seed_file}")
            raise typer.Exit(1)
        seed = seed_file.read_text().strip()

    if not seed:
        logger.error("Master seed required. Use --seed, --seed-file, --mnemonic or SIGMA_SEED")
        raise typer.Exit(1)

    try:
        return bytes.fromhex(seed)
    except ValueError:
        logger.error("Master seed must be hex encoded")
        raise typer.Exit(1)


def _open_store(data_dir: Path | None) -> WalletMintStore:
    if data_dir is None:
        data_dir = get_settings().wallet_dir
    try:
        return WalletMintStore.open(JsonFileStorage.in_directory(data_dir))
    except StorageError as e:
        logger.error(f"Failed to open wallet data: {e}")
        raise typer.Exit(1)


def _parse_amount(amount: str) -> int:
    try:
        return decimal_to_amount(amount)
    except InvalidDenominationError as e:
        logger.error(str(e))
        raise typer.Exit(1)


@app.command()
def generate_seed() -> None:
    """Generate a new random master seed."""
    setup_logging()
    seed = generate_master_seed()

    typer.echo("\n" + "=" * 80)
    typer.echo("GENERATED MASTER SEED - WRITE THIS DOWN AND KEEP IT SAFE!")
    typer.echo("=" * 80)
    typer.echo(f"\n{seed.hex()}\n")
    typer.echo("=" * 80)
    typer.echo("\nEvery mint in this wallet is derived from this seed.")
    typer.echo("Anyone with it can spend your coins.")
    typer.echo("=" * 80 + "\n")


@app.command()
def decompose(
    amount: str = typer.Argument(..., help="Amount in coins, e.g. 111.8"),
) -> None:
    """Split an amount into the fewest denominations."""
    setup_logging()
    value = _parse_amount(amount)
    try:
        denominations = decompose_amount(value)
    except InvalidDenominationError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    typer.echo(f"{format_amount(value)} = " + " + ".join(str(d) for d in denominations))


@app.command()
def derive(
    index: int = typer.Option(..., "--index", "-i", min=1, help="Derivation index"),
    seed: str = typer.Option(None, "--seed", envvar="SIGMA_SEED", help="Hex master seed"),
    seed_file: Path | None = typer.Option(None, "--seed-file", "-f", help="Path to seed file"),
    mnemonic: str | None = typer.Option(
        None, "--mnemonic", envvar="SIGMA_MNEMONIC", help="Mnemonic phrase instead of a hex seed"
    ),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """Show the public identity of the mint at an index (never its secrets)."""
    setup_logging(log_level)
    master_seed = _load_seed(seed, seed_file, mnemonic)

    try:
        coin = derive_coin(master_seed, index)
    except ValueError as e:
        logger.error(str(e))
        raise typer.Exit(1)

    typer.echo(f"Index:         {coin.index}")
    typer.echo(f"Public value:  {coin.public_value_hex}")
    typer.echo(f"Identity hash: {coin.identity_hash}")


@app.command()
def list_mints(
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Wallet data directory"),
    unused_only: bool = typer.Option(False, "--unused", "-u", help="Hide used mints"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """List the mint records stored in a wallet."""
    setup_logging(log_level)
    store = _open_store(data_dir)

    records = store.list_mints((lambda r: not r.used) if unused_only else None)
    if not records:
        typer.echo("\nNo mints in wallet.")
        return

    typer.echo(f"\nLast used index: {store.seed_state.last_used_index}")
    typer.echo(f"{'Index':>7}  {'Denom':>6}  {'Height':>7}  {'Group':>5}  Status")
    for r in records:
        height = r.creation_height if r.creation_height is not None else "-"
        group = r.group_id if r.group_id is not None else "-"
        status = f"used@{r.spend_height}" if r.used else "unused"
        typer.echo(f"{r.index:>7}  {str(r.denomination):>6}  {height:>7}  {group:>5}  {status}")
    typer.echo(f"\nUnused balance: {format_amount(store.balance())}")


@app.command()
def plan(
    amount: str = typer.Argument(..., help="Amount in coins to spend"),
    height: int = typer.Option(..., "--height", help="Current chain height"),
    data_dir: Path | None = typer.Option(None, "--data-dir", "-d", help="Wallet data directory"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Log level"),
) -> None:
    """Preview which mints a spend would use and what it would remint."""
    setup_logging(log_level)
    settings = get_settings()
    store = _open_store(data_dir)
    required = _parse_amount(amount)
    if required <= 0:
        logger.error("Amount must be positive")
        raise typer.Exit(1)

    spendable = store.spendable(height, settings.min_confirmations)
    selection = select_coins(required, spendable, settings.min_spendable_mints)
    if isinstance(selection, Err):
        logger.error(f"Cannot spend {format_amount(required)}: {selection.message}")
        raise typer.Exit(1)

    spend_plan = selection.value
    records = {r.index: r for r in spendable}
    typer.echo(f"\nSpend {format_amount(spend_plan.total_spent)} for {format_amount(required)}:")
    for index in spend_plan.to_spend:
        typer.echo(f"  mint {index:>7}  {records[index].denomination}")
    if spend_plan.to_mint:
        typer.echo(f"Remint {format_amount(spend_plan.change)}:")
        typer.echo("  " + " + ".join(str(d) for d in spend_plan.to_mint))
    else:
        typer.echo("No change.")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
