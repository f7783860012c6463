from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..sigil.keys import check_key
from ..utils import b58encode


@dataclass(frozen=True)
class AccountMeta:
    """An account an instruction touches, with its access flags."""

    key: bytes
    signer: bool = False
    writable: bool = False

    def __post_init__(self) -> None:
        check_key(self.key)

    def __repr__(self) -> str:
        flags = ("s" if self.signer else "-") + ("w" if self.writable else "-")
        return f"AccountMeta({b58encode(self.key)}, {flags})"


@dataclass(frozen=True)
class Instruction:
    """A program invocation: program id, ordered account list, opaque data."""

    program: bytes
    accounts: tuple[AccountMeta, ...] = ()
    data: bytes = b""

    def __post_init__(self) -> None:
        check_key(self.program)
        # Accept any iterable of metas but store an immutable tuple
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data))


# ============ Data encoding ============


def u8(value: int) -> bytes:
    return value.to_bytes(1, "little")


def u32(value: int) -> bytes:
    return value.to_bytes(4, "little")


def u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def encode_data(*parts: Union[int, bytes]) -> bytes:
    """Concatenate instruction data; bare ints are single bytes."""
    out = bytearray()
    for part in parts:
        out += u8(part) if isinstance(part, int) else part
    return bytes(out)


__all__ = [
    "AccountMeta",
    "Instruction",
    "encode_data",
    "u8",
    "u32",
    "u64",
]
