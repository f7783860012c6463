"""
Sigil - Key material for Solace.

ed25519 keypairs, base58 addresses, the curve-membership test, and
program-derived address derivation.
"""
