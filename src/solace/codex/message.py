"""
Message compiler.

Turns a fee payer, a list of instructions and a recent blockhash into the
ledger's canonical message. The account ordering below is part of the wire
contract, not an implementation detail:

1. payer first (signer + writable), then every instruction account in
   order, then every program id (readonly, non-signer)
2. duplicates merged, signer / writable OR-ed
3. stable partition into writable signers, readonly signers, writable
   non-signers, readonly non-signers
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from ..errors import CompileError, EmptyInstructionsError, TooManyAccountsError
from ..sigil.keys import KEY_LENGTH, check_key
from ..utils import b58encode
from .instruction import AccountMeta, Instruction
from .shortvec import decode_array, decode_length, encode_array, encode_length

# Account indices are single bytes
MAX_ACCOUNTS = 256
BLOCKHASH_LENGTH = 32


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int

    def to_bytes(self) -> bytes:
        return bytes(
            [
                self.num_required_signatures,
                self.num_readonly_signed_accounts,
                self.num_readonly_unsigned_accounts,
            ]
        )


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    accounts: tuple[int, ...]
    data: bytes

    def to_bytes(self) -> bytes:
        return (
            bytes([self.program_id_index])
            + encode_length(len(self.accounts))
            + bytes(self.accounts)
            + encode_length(len(self.data))
            + self.data
        )


@dataclass(frozen=True)
class CompiledMessage:
    header: MessageHeader
    account_keys: tuple[bytes, ...]
    recent_blockhash: bytes
    instructions: tuple[CompiledInstruction, ...]

    @property
    def signers(self) -> tuple[bytes, ...]:
        return self.account_keys[: self.header.num_required_signatures]

    @property
    def payer(self) -> bytes:
        return self.account_keys[0]

    def is_signer(self, index: int) -> bool:
        return index < self.header.num_required_signatures

    def is_writable(self, index: int) -> bool:
        h = self.header
        if index < h.num_required_signatures:
            return index < h.num_required_signatures - h.num_readonly_signed_accounts
        return index < len(self.account_keys) - h.num_readonly_unsigned_accounts

    def to_bytes(self) -> bytes:
        return (
            self.header.to_bytes()
            + encode_array(self.account_keys)
            + self.recent_blockhash
            + encode_array(ix.to_bytes() for ix in self.instructions)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "CompiledMessage":
        message, end = cls._parse(data, 0)
        if end != len(data):
            raise ValueError(f"{len(data) - end} trailing bytes after message")
        return message

    @classmethod
    def _parse(cls, data: bytes, offset: int) -> tuple["CompiledMessage", int]:
        if len(data) < offset + 3:
            raise ValueError("Truncated message header")
        header = MessageHeader(data[offset], data[offset + 1], data[offset + 2])
        keys, offset = decode_array(data, KEY_LENGTH, offset + 3)
        blockhash = data[offset:offset + BLOCKHASH_LENGTH]
        if len(blockhash) != BLOCKHASH_LENGTH:
            raise ValueError("Truncated recent blockhash")
        offset += BLOCKHASH_LENGTH

        count, used = decode_length(data, offset)
        offset += used
        instructions = []
        for _ in range(count):
            if offset >= len(data):
                raise ValueError("Truncated instruction")
            program_id_index = data[offset]
            indices, offset = decode_array(data, 1, offset + 1)
            payload, offset = decode_array(data, 1, offset)
            instructions.append(
                CompiledInstruction(
                    program_id_index=program_id_index,
                    accounts=tuple(i[0] for i in indices),
                    data=b"".join(payload),
                )
            )
        return cls(header, tuple(keys), blockhash, tuple(instructions)), offset


def _collect_accounts(payer: bytes, instructions: Sequence[Instruction]) -> list[AccountMeta]:
    """Merge every account reference by key, preserving first-seen order."""
    merged: dict[bytes, AccountMeta] = {payer: AccountMeta(payer, signer=True, writable=True)}

    def add(meta: AccountMeta) -> None:
        seen = merged.get(meta.key)
        if seen is None:
            merged[meta.key] = meta
        else:
            merged[meta.key] = AccountMeta(
                meta.key,
                signer=seen.signer or meta.signer,
                writable=seen.writable or meta.writable,
            )

    for ix in instructions:
        for meta in ix.accounts:
            add(meta)
    for ix in instructions:
        add(AccountMeta(ix.program))
    return list(merged.values())


def _zone(meta: AccountMeta) -> int:
    if meta.signer:
        return 0 if meta.writable else 1
    return 2 if meta.writable else 3


def compile_message(
    payer: bytes,
    instructions: Sequence[Instruction],
    recent_blockhash: bytes,
) -> CompiledMessage:
    """
    Compile instructions into a signable message.

    Args:
        payer: Fee payer address; always index 0, signer and writable
        instructions: Instructions in execution order
        recent_blockhash: 32-byte blockhash the message is valid against

    Returns:
        CompiledMessage with four-zone account ordering

    Raises:
        EmptyInstructionsError: No instructions given
        TooManyAccountsError: More unique accounts than fit a one-byte index
        CompileError: Malformed payer or blockhash
    """
    if not instructions:
        raise EmptyInstructionsError("A message needs at least one instruction")
    try:
        check_key(payer)
    except ValueError as exc:
        raise CompileError(f"Invalid fee payer: {exc}") from exc
    if len(recent_blockhash) != BLOCKHASH_LENGTH:
        raise CompileError(f"Recent blockhash must be {BLOCKHASH_LENGTH} bytes")

    # sorted() is stable, so first-seen order survives inside each zone
    metas = sorted(_collect_accounts(payer, instructions), key=_zone)
    if len(metas) > MAX_ACCOUNTS:
        raise TooManyAccountsError(
            f"Message references {len(metas)} accounts; at most {MAX_ACCOUNTS} are allowed"
        )

    zones = [0, 0, 0, 0]
    for meta in metas:
        zones[_zone(meta)] += 1
    header = MessageHeader(
        num_required_signatures=zones[0] + zones[1],
        num_readonly_signed_accounts=zones[1],
        num_readonly_unsigned_accounts=zones[3],
    )

    keys = tuple(meta.key for meta in metas)
    index = {key: i for i, key in enumerate(keys)}
    compiled = tuple(
        CompiledInstruction(
            program_id_index=index[ix.program],
            accounts=tuple(index[meta.key] for meta in ix.accounts),
            data=ix.data,
        )
        for ix in instructions
    )
    return CompiledMessage(header, keys, bytes(recent_blockhash), compiled)


def describe(message: CompiledMessage) -> list[str]:
    """One line per account: base58 key plus signer / writable flags."""
    lines = []
    for i, key in enumerate(message.account_keys):
        flags = ("s" if message.is_signer(i) else "-") + ("w" if message.is_writable(i) else "-")
        lines.append(f"{i:>3} {flags} {b58encode(key)}")
    return lines
