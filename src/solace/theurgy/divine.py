"""
Theurgy Divine - Query on-chain state.

- balance: lamports held by an address (default: your keypair)
- status:  confirmation status of a signature
- airdrop: request test SOL and wait for it to confirm
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click

from ..errors import SolaceError
from ..pneuma import request
from ..pneuma.request import LAMPORTS_PER_SOL
from ..pneuma.rpc import RpcClient
from ..pneuma.tracker import ConfirmationTracker, SubmissionRecord
from ..sigil.keys import load_keypair, pubkey
from ..utils import b58decode, b58encode

rpc_option = click.option(
    "--rpc-url",
    envvar="SOLANA_RPC_URL",
    default=None,
    help="JSON-RPC endpoint (default: SOLANA_RPC_URL / SOLANA_CLUSTER / devnet)",
)


def _resolve_address(address: Optional[str]) -> bytes:
    if address:
        return pubkey(address)
    return load_keypair().public_key


@click.command()
@click.argument("address", required=False)
@rpc_option
def balance(address: Optional[str], rpc_url: Optional[str]) -> None:
    """Show the balance of ADDRESS (default: your keypair)."""

    async def run() -> int:
        async with RpcClient(rpc_url) as client:
            return await client.send(request.get_balance(_resolve_address(address)))

    try:
        lamports = asyncio.run(run())
    except (SolaceError, FileNotFoundError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    click.echo(f"{lamports / LAMPORTS_PER_SOL:.9f} SOL ({lamports} lamports)")


@click.command()
@click.argument("signature")
@rpc_option
def status(signature: str, rpc_url: Optional[str]) -> None:
    """Show the confirmation status of SIGNATURE."""

    async def run() -> Optional[dict]:
        async with RpcClient(rpc_url) as client:
            statuses = await client.send(
                request.get_signature_statuses(
                    [b58decode(signature)], search_transaction_history=True
                )
            )
            return statuses[0] if statuses else None

    try:
        result = asyncio.run(run())
    except (SolaceError, ValueError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    if result is None:
        click.echo("Status: not found")
        return
    click.echo(f"Status: {result.get('confirmationStatus') or 'unknown'}")
    click.echo(f"Slot:   {result.get('slot')}")
    if result.get("err") is not None:
        click.secho(f"Error:  {result['err']}", fg="red")


@click.command()
@click.argument("address", required=False)
@click.option("--sol", default=1.0, type=float, show_default=True, help="Amount of SOL")
@click.option("--timeout", default=60.0, type=float, show_default=True, help="Seconds to wait")
@rpc_option
def airdrop(address: Optional[str], sol: float, timeout: float, rpc_url: Optional[str]) -> None:
    """Request an airdrop to ADDRESS (default: your keypair)."""

    async def run() -> SubmissionRecord:
        async with RpcClient(rpc_url) as client:
            signature = await client.send(request.request_airdrop(_resolve_address(address), sol))
            record = SubmissionRecord(signature=signature, target_commitment="confirmed")
            return await ConfirmationTracker(client).track(record, timeout)

    try:
        record = asyncio.run(run())
    except (SolaceError, FileNotFoundError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    click.echo(f"Signature: {b58encode(record.signature)}")
    click.echo(f"Status:    {record.status.value}")
