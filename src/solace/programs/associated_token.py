"""
Associated Token Account Program.

An associated token account's address is derived from the owner's wallet
and the token mint, so each owner has exactly one per mint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..codex.instruction import AccountMeta, Instruction, encode_data
from ..errors import ValidationError
from ..sigil.keys import check_verifying_key
from ..sigil.pda import derive_address
from ..utils import b58decode
from . import system
from .sysvar import RENT, TOKEN_PROGRAM_ID
from .validation import key_option, set_field, validate_options

PROGRAM_ID = b58decode("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")

_CREATE = 0
_CREATE_IDEMPOTENT = 1


def _derive(mint: bytes, owner: bytes) -> bytes:
    address, _bump = derive_address([owner, TOKEN_PROGRAM_ID, mint], PROGRAM_ID)
    return address


def find_address(mint: bytes, owner: bytes) -> bytes:
    """
    Token account address for a wallet ``owner`` and ``mint``.

    Raises:
        ValidationError: ``owner`` is not on the curve (e.g. a PDA)
    """
    check_verifying_key(owner)
    return _derive(mint, owner)


@dataclass(frozen=True)
class CreateAccountParams:
    """
    ``payer`` funds creation; ``owner`` will own ``new``, the associated
    token account for ``mint``.
    """

    payer: Any
    owner: Any
    new: Any
    mint: Any

    def __post_init__(self) -> None:
        for name in ("payer", "owner", "new", "mint"):
            set_field(self, name, key_option(name, getattr(self, name)))


def _create(opts: Mapping[str, Any], mode: int) -> Instruction:
    params = validate_options(CreateAccountParams, opts)
    # Program-owned (off-curve) owners are allowed here
    if _derive(params.mint, params.owner) != params.new:
        raise ValidationError("Option 'new' is not the associated address for owner/mint")
    return Instruction(
        program=PROGRAM_ID,
        accounts=(
            AccountMeta(params.payer, signer=True, writable=True),
            AccountMeta(params.new, writable=True),
            AccountMeta(params.owner),
            AccountMeta(params.mint),
            AccountMeta(system.PROGRAM_ID),
            AccountMeta(TOKEN_PROGRAM_ID),
            AccountMeta(RENT),
        ),
        data=encode_data(mode),
    )


def create_account(opts: Mapping[str, Any]) -> Instruction:
    return _create(opts, _CREATE)


def create_account_idempotent(opts: Mapping[str, Any]) -> Instruction:
    """Like ``create_account`` but a no-op if the account already exists."""
    return _create(opts, _CREATE_IDEMPOTENT)
