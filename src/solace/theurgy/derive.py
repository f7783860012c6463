"""
Theurgy Derive - Compute a program-derived address offline.

Seeds are given one per ``--seed``; prefix with ``hex:`` or ``b58:`` for
binary seeds, anything else (optionally ``utf8:``) is UTF-8 text.
"""

from __future__ import annotations

import sys

import click

from ..errors import NoAddressFoundError, ValidationError
from ..sigil.keys import pubkey
from ..sigil.pda import derive_address
from ..utils import b58decode, b58encode


def parse_seed(raw: str) -> bytes:
    if raw.startswith("hex:"):
        return bytes.fromhex(raw[4:])
    if raw.startswith("b58:"):
        return b58decode(raw[4:])
    if raw.startswith("utf8:"):
        raw = raw[5:]
    return raw.encode("utf-8")


@click.command()
@click.option("--program", required=True, help="Owning program id (base58)")
@click.option("--seed", "seeds", multiple=True, help="Seed (hex:, b58:, or utf8: text)")
def derive(program: str, seeds: tuple[str, ...]) -> None:
    """Derive a program address and its bump seed."""
    try:
        program_id = pubkey(program)
        raw_seeds = [parse_seed(s) for s in seeds]
        address, bump = derive_address(raw_seeds, program_id)
    except (ValidationError, NoAddressFoundError, ValueError) as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)

    click.echo(f"Address: {b58encode(address)}")
    click.echo(f"Bump:    {bump}")
