"""
Codex - The ledger's binary wire format.

Instruction model, short-vec length prefixes, message compilation and
transaction signing / serialization. Everything here is pure and safe to
call from any number of concurrent callers.
"""
