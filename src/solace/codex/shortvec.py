"""
Compact array ("short-vec") length prefixes.

Each byte carries 7 bits of the length, least significant group first;
the high bit says another byte follows. 0-127 take one byte, up to 16383
two, up to 0xFFFF three.
"""

from __future__ import annotations

from typing import Iterable

MAX_LENGTH = 0xFFFF


def encode_length(length: int) -> bytes:
    if length < 0 or length > MAX_LENGTH:
        raise ValueError(f"short-vec length out of range: {length}")
    out = bytearray()
    remaining = length
    while True:
        byte = remaining & 0x7F
        remaining >>= 7
        if remaining:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_length(data: bytes, offset: int = 0) -> tuple[int, int]:
    """
    Decode a short-vec prefix at ``offset``.

    Returns:
        Tuple of (length, number of bytes consumed)
    """
    length = 0
    for i in range(3):
        if offset + i >= len(data):
            raise ValueError("Truncated short-vec length")
        byte = data[offset + i]
        length |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            if i > 0 and byte == 0:
                raise ValueError("Non-canonical short-vec length")
            if length > MAX_LENGTH:
                raise ValueError(f"short-vec length out of range: {length}")
            return length, i + 1
    raise ValueError("short-vec length longer than 3 bytes")


def encode_array(items: Iterable[bytes]) -> bytes:
    """Length-prefix a sequence of already-encoded elements."""
    items = list(items)
    return encode_length(len(items)) + b"".join(items)


def decode_array(data: bytes, item_size: int, offset: int = 0) -> tuple[list[bytes], int]:
    """Decode a prefixed array of fixed-size elements; returns (items, new offset)."""
    count, used = decode_length(data, offset)
    offset += used
    end = offset + count * item_size
    if end > len(data):
        raise ValueError("Truncated short-vec array")
    items = [data[i:i + item_size] for i in range(offset, end, item_size)]
    return items, end
