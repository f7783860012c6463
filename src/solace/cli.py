"""
Solace CLI

Command-line interface for building, sending and tracking Solana
transactions.

Commands:
  keygen    - Create a new ed25519 keypair file
  whoami    - Show the current keypair address
  info      - Show configuration
  derive    - Derive a program address from seeds
  balance   - Query an account balance
  status    - Query a signature's confirmation status
  airdrop   - Request devnet / testnet SOL
  transfer  - Send lamports and wait for confirmation
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .sigil.keys import generate_keypair, keypair_path, load_keypair, save_keypair
from .errors import ValidationError
from .pneuma.rpc import get_rpc_url


# ============ Constants ============

VERSION = "0.1.0"


# ============ Banner ============


def _print_banner() -> None:
    """Print the Solace CLI banner."""
    border = click.style("  ◆ ═══════════════════════════════════════ ◆", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()
    click.echo(
        click.style("          S O L A C E", fg="bright_white", bold=True)
        + click.style(f"          v{VERSION}", dim=True)
    )
    click.secho("        ─── Solana Transaction Engine ───", fg="cyan")
    click.echo()
    click.echo(border)
    click.echo()


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="solace")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Solace: Solana transaction engine."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if ctx.invoked_subcommand is None:
        _print_banner()
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .theurgy.derive import derive
from .theurgy.divine import airdrop, balance, status
from .theurgy.transfer import transfer

cli.add_command(derive)
cli.add_command(balance)
cli.add_command(status)
cli.add_command(airdrop)
cli.add_command(transfer)


# ============ Identity ============


@cli.command()
@click.option(
    "--outfile",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Keypair file to write (default: SOLACE_KEYPAIR or ~/.config/solana/id.json)",
)
@click.option("--force", is_flag=True, help="Overwrite an existing keypair file")
def keygen(outfile: Optional[Path], force: bool) -> None:
    """Create a new ed25519 keypair."""
    target = outfile or keypair_path()
    if target.exists() and not force:
        click.secho(f"ERROR: {target} already exists (use --force to overwrite)", fg="red")
        sys.exit(1)
    keypair, address = generate_keypair()
    path = save_keypair(keypair, target)
    click.echo(f"Address: {address}")
    click.echo(f"Saved:   {path}")


@cli.command()
def whoami() -> None:
    """Show current keypair address."""
    try:
        keypair = load_keypair()
        click.echo(f"Address: {keypair.address}")
    except (ValidationError, FileNotFoundError):
        click.echo("No keypair found.")
        click.echo("Run 'solace keygen' to create one.")
        sys.exit(1)


# ============ Info ============


@cli.command()
def info() -> None:
    """Show configuration."""
    _print_banner()

    click.secho("  Status ─────────────────────────────────", fg="cyan")
    click.echo()

    try:
        address = load_keypair().address
        click.echo(
            click.style("  Address:     ", dim=True)
            + click.style(address, fg="bright_white")
        )
    except (ValidationError, FileNotFoundError):
        click.echo(
            click.style("  Address:     ", dim=True)
            + click.style("not initialized", fg="yellow")
            + click.style("  (run: solace keygen)", dim=True)
        )
    click.echo(
        click.style("  Keypair:     ", dim=True)
        + click.style(str(keypair_path()), fg="bright_white")
    )
    click.echo(
        click.style("  RPC:         ", dim=True)
        + click.style(get_rpc_url(), fg="bright_white")
    )
    click.echo()

    click.secho("  Commands ───────────────────────────────", fg="cyan")
    click.echo()

    commands = [
        ("keygen  ", "Create a new keypair"),
        ("whoami  ", "Show current keypair address"),
        ("derive  ", "Derive a program address"),
        ("balance ", "Query an account balance"),
        ("status  ", "Query a signature status"),
        ("airdrop ", "Request test SOL"),
        ("transfer", "Send lamports and confirm"),
    ]
    for cmd, desc in commands:
        click.echo(
            click.style("  ", dim=True)
            + click.style(cmd, fg="bright_white", bold=True)
            + click.style("  ◇  ", fg="cyan")
            + click.style(desc, dim=True)
        )

    click.echo()


# ============ Entry Points ============


def main() -> None:
    """Solace CLI entry point."""
    # Ensure UTF-8 output on Windows (for Unicode box-drawing / symbols)
    if sys.platform == "win32":
        try:
            sys.stdout.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
            sys.stderr.reconfigure(encoding="utf-8")  # type: ignore[union-attr]
        except (AttributeError, OSError):
            pass  # Fallback: old Python or non-tty
    cli()


if __name__ == "__main__":
    main()
