"""Well-known addresses: sysvars and the SPL token program."""

from __future__ import annotations

from ..utils import b58decode

RENT = b58decode("SysvarRent111111111111111111111111111111111")
CLOCK = b58decode("SysvarC1ock11111111111111111111111111111111")
RECENT_BLOCKHASHES = b58decode("SysvarRecentB1ockHashes11111111111111111111")
INSTRUCTIONS = b58decode("Sysvar1nstructions1111111111111111111111111")

TOKEN_PROGRAM_ID = b58decode("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
