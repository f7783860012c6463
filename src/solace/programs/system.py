"""
System Program instructions.

Instruction data is a little-endian u32 opcode followed by the opcode's
fixed-layout arguments.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Mapping

from ..codex.instruction import AccountMeta, Instruction, u32, u64
from ..errors import ValidationError
from ..sigil.pda import MAX_SEED_LENGTH, create_with_seed
from ..utils import b58decode
from .validation import int_option, key_option, set_field, validate_options

PROGRAM_ID = b58decode("11111111111111111111111111111111")


class SystemInstruction(enum.IntEnum):
    CREATE_ACCOUNT = 0
    ASSIGN = 1
    TRANSFER = 2
    CREATE_ACCOUNT_WITH_SEED = 3


def _opcode(op: SystemInstruction) -> bytes:
    return u32(op)


# ============ Transfer ============


@dataclass(frozen=True)
class TransferParams:
    """``from``: funding account (signs); ``to``: recipient; ``lamports``: amount."""

    from_: Any
    to: Any
    lamports: Any

    def __post_init__(self) -> None:
        set_field(self, "from_", key_option("from", self.from_))
        set_field(self, "to", key_option("to", self.to))
        set_field(self, "lamports", int_option("lamports", self.lamports))


def transfer(opts: Mapping[str, Any]) -> Instruction:
    params = validate_options(TransferParams, opts)
    return Instruction(
        program=PROGRAM_ID,
        accounts=(
            AccountMeta(params.from_, signer=True, writable=True),
            AccountMeta(params.to, writable=True),
        ),
        data=_opcode(SystemInstruction.TRANSFER) + u64(params.lamports),
    )


# ============ Create account ============


@dataclass(frozen=True)
class CreateAccountParams:
    """``from`` funds ``new``; both sign. ``program_id`` becomes the owner."""

    from_: Any
    new: Any
    lamports: Any
    space: Any
    program_id: Any

    def __post_init__(self) -> None:
        set_field(self, "from_", key_option("from", self.from_))
        set_field(self, "new", key_option("new", self.new))
        set_field(self, "lamports", int_option("lamports", self.lamports))
        set_field(self, "space", int_option("space", self.space))
        set_field(self, "program_id", key_option("program_id", self.program_id))


def create_account(opts: Mapping[str, Any]) -> Instruction:
    params = validate_options(CreateAccountParams, opts)
    return Instruction(
        program=PROGRAM_ID,
        accounts=(
            AccountMeta(params.from_, signer=True, writable=True),
            AccountMeta(params.new, signer=True, writable=True),
        ),
        data=(
            _opcode(SystemInstruction.CREATE_ACCOUNT)
            + u64(params.lamports)
            + u64(params.space)
            + params.program_id
        ),
    )


# ============ Assign ============


@dataclass(frozen=True)
class AssignParams:
    account: Any
    program_id: Any

    def __post_init__(self) -> None:
        set_field(self, "account", key_option("account", self.account))
        set_field(self, "program_id", key_option("program_id", self.program_id))


def assign(opts: Mapping[str, Any]) -> Instruction:
    params = validate_options(AssignParams, opts)
    return Instruction(
        program=PROGRAM_ID,
        accounts=(AccountMeta(params.account, signer=True, writable=True),),
        data=_opcode(SystemInstruction.ASSIGN) + params.program_id,
    )


# ============ Create account with seed ============


@dataclass(frozen=True)
class CreateAccountWithSeedParams:
    """
    ``new`` must equal ``create_with_seed(base, seed, program_id)``;
    ``base`` signs in place of ``new``.
    """

    from_: Any
    new: Any
    base: Any
    seed: Any
    lamports: Any
    space: Any
    program_id: Any

    def __post_init__(self) -> None:
        set_field(self, "from_", key_option("from", self.from_))
        set_field(self, "new", key_option("new", self.new))
        set_field(self, "base", key_option("base", self.base))
        set_field(self, "program_id", key_option("program_id", self.program_id))
        set_field(self, "lamports", int_option("lamports", self.lamports))
        set_field(self, "space", int_option("space", self.space))
        if not isinstance(self.seed, str) or len(self.seed.encode("utf-8")) > MAX_SEED_LENGTH:
            raise ValidationError(f"Option 'seed' must be a string of at most {MAX_SEED_LENGTH} bytes")
        if create_with_seed(self.base, self.seed, self.program_id) != self.new:
            raise ValidationError("Option 'new' does not match base/seed/program_id")


def create_account_with_seed(opts: Mapping[str, Any]) -> Instruction:
    params = validate_options(CreateAccountWithSeedParams, opts)
    seed = params.seed.encode("utf-8")
    accounts = [
        AccountMeta(params.from_, signer=True, writable=True),
        AccountMeta(params.new, writable=True),
    ]
    if params.base != params.from_:
        accounts.append(AccountMeta(params.base, signer=True))
    return Instruction(
        program=PROGRAM_ID,
        accounts=tuple(accounts),
        data=(
            _opcode(SystemInstruction.CREATE_ACCOUNT_WITH_SEED)
            + params.base
            + u64(len(seed))
            + seed
            + u64(params.lamports)
            + u64(params.space)
            + params.program_id
        ),
    )
