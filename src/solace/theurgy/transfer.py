"""
Theurgy Transfer - Send lamports from your keypair.

Builds a System Program transfer (optionally preceded by a compute unit
price), signs it with the local keypair, submits it and waits for the
requested commitment.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Optional

import click

from ..codex.message import compile_message, describe
from ..errors import (
    BlockhashExpiredError,
    ConfirmationTimeoutError,
    ExecutionFailedError,
    SolaceError,
)
from ..pneuma.rpc import RpcClient
from ..pneuma.submit import build_and_send, estimate_fee, latest_blockhash
from ..pneuma.tracker import COMMITMENTS, SubmissionRecord
from ..programs import compute_budget, system
from ..sigil.keys import load_keypair
from .divine import rpc_option


@click.command()
@click.option("--to", "recipient", required=True, help="Recipient address (base58)")
@click.option("--lamports", required=True, type=int, help="Amount in lamports")
@click.option(
    "--commitment",
    type=click.Choice(COMMITMENTS),
    default="confirmed",
    show_default=True,
    help="Commitment to wait for",
)
@click.option("--timeout", default=60.0, type=float, show_default=True, help="Seconds to wait")
@click.option("--compute-unit-price", type=int, default=None, help="Priority fee (micro-lamports per CU)")
@click.option("--skip-preflight", is_flag=True, help="Skip the node's preflight simulation")
@click.option("--dry-run", is_flag=True, help="Compile and estimate the fee without sending")
@rpc_option
def transfer(
    recipient: str,
    lamports: int,
    commitment: str,
    timeout: float,
    compute_unit_price: Optional[int],
    skip_preflight: bool,
    dry_run: bool,
    rpc_url: Optional[str],
) -> None:
    """
    Transfer lamports and wait for confirmation.

    Signs with your local keypair, which also pays the fee.
    """
    click.echo("=== Solace Transfer ===")
    click.echo("")

    try:
        payer = load_keypair()
        instructions = []
        if compute_unit_price:
            instructions.append(compute_budget.set_compute_unit_price({"price": compute_unit_price}))
        instructions.append(
            system.transfer({"from": payer.public_key, "to": recipient, "lamports": lamports})
        )
    except (SolaceError, FileNotFoundError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    click.echo(f"  From:     {payer.address}")
    click.echo(f"  To:       {recipient}")
    click.echo(f"  Amount:   {lamports} lamports")
    click.echo("")

    async def preview() -> tuple[list[str], Optional[int]]:
        async with RpcClient(rpc_url) as client:
            blockhash, _ = await latest_blockhash(client, commitment)
            message = compile_message(payer.public_key, instructions, blockhash)
            return describe(message), await estimate_fee(client, message)

    async def send() -> SubmissionRecord:
        async with RpcClient(rpc_url) as client:
            return await build_and_send(
                client,
                instructions,
                payer,
                commitment=commitment,
                timeout=timeout,
                skip_preflight=skip_preflight,
            )

    if dry_run:
        try:
            lines, fee = asyncio.run(preview())
        except SolaceError as exc:
            click.secho(f"ERROR: {exc}", fg="red")
            sys.exit(1)
        for line in lines:
            click.echo(f"  {line}")
        click.echo(f"  Fee:      {fee if fee is not None else 'unknown'} lamports")
        return

    try:
        record = asyncio.run(send())
    except ExecutionFailedError as exc:
        click.secho(f"FAILED: Transaction executed with error: {exc.reason}", fg="red")
        click.echo(f"  TX: {exc.record.signature_b58}")
        sys.exit(1)
    except BlockhashExpiredError as exc:
        click.secho("EXPIRED: Blockhash expired; run the command again", fg="yellow")
        click.echo(f"  TX: {exc.record.signature_b58}")
        sys.exit(1)
    except ConfirmationTimeoutError as exc:
        click.secho(f"TIMEOUT: {exc}", fg="yellow")
        click.echo(f"  TX: {exc.record.signature_b58}")
        sys.exit(1)
    except SolaceError as exc:
        click.secho(f"Transaction failed: {exc}", fg="red")
        sys.exit(1)

    click.secho(f"SUCCESS: Transaction {record.status.value}!", fg="green")
    click.echo(f"  TX: {record.signature_b58}")
