"""
Program-derived addresses.

A PDA is SHA-256(seeds || program || "ProgramDerivedAddress") chosen so it
does NOT lie on the ed25519 curve, which means no private key can ever sign
for it; only the owning program can. ``derive_address`` walks the bump
seed down from 255 and returns the first off-curve candidate.

Everything here is pure: no randomness, no I/O.
"""

from __future__ import annotations

from typing import Sequence, Union

from ..errors import IllegalOwnerError, InvalidSeedsError, NoAddressFoundError, OnCurveError
from ..utils import sha256
from .keys import check_key, is_on_curve

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEED_LENGTH = 32
MAX_SEEDS = 16

Seed = Union[bytes, str]


def _normalize_seeds(seeds: Sequence[Seed]) -> list[bytes]:
    if isinstance(seeds, (bytes, str)):
        raise InvalidSeedsError("Seeds must be a sequence of byte strings")
    if len(seeds) > MAX_SEEDS:
        raise InvalidSeedsError(f"At most {MAX_SEEDS} seeds are allowed, got {len(seeds)}")
    normalized = []
    for seed in seeds:
        raw = seed.encode("utf-8") if isinstance(seed, str) else bytes(seed)
        if len(raw) > MAX_SEED_LENGTH:
            raise InvalidSeedsError(
                f"Seed exceeds {MAX_SEED_LENGTH} bytes: {len(raw)} bytes"
            )
        normalized.append(raw)
    return normalized


def create_program_address(seeds: Sequence[Seed], program: bytes) -> bytes:
    """
    Hash ``seeds`` and ``program`` into an address, requiring it be off-curve.

    Raises:
        InvalidSeedsError: Too many seeds or a seed longer than 32 bytes
        OnCurveError: The hash is a valid ed25519 point
    """
    check_key(program)
    raw = _normalize_seeds(seeds)
    address = sha256(*raw, program, PDA_MARKER)
    if is_on_curve(address):
        raise OnCurveError("Derived address lies on the ed25519 curve")
    return address


def derive_address(seeds: Sequence[Seed], program: bytes) -> tuple[bytes, int]:
    """
    Find the canonical PDA for ``seeds`` under ``program``.

    Returns:
        Tuple of (address, bump) where bump is the seed byte appended to
        ``seeds`` that produced the first off-curve hash.

    Raises:
        InvalidSeedsError: Seed validation failed (the bump counts toward
            the 16-seed limit)
        NoAddressFoundError: All 256 bump candidates were on-curve
    """
    check_key(program)
    raw = _normalize_seeds(seeds)
    if len(raw) >= MAX_SEEDS:
        raise InvalidSeedsError(
            f"At most {MAX_SEEDS - 1} seeds are allowed alongside the bump seed"
        )
    for bump in range(255, -1, -1):
        candidate = sha256(*raw, bytes([bump]), program, PDA_MARKER)
        if not is_on_curve(candidate):
            return candidate, bump
    raise NoAddressFoundError("No off-curve address found for the given seeds")


find_program_address = derive_address


def create_with_seed(base: bytes, seed: Seed, program: bytes) -> bytes:
    """
    Derive an address from a base key, a text seed and an owner program.

    Unlike PDAs, these addresses are not checked against the curve; the
    ``base`` key signs for them.
    """
    check_key(base)
    check_key(program)
    raw = seed.encode("utf-8") if isinstance(seed, str) else bytes(seed)
    if len(raw) > MAX_SEED_LENGTH:
        raise InvalidSeedsError(f"Seed exceeds {MAX_SEED_LENGTH} bytes: {len(raw)} bytes")
    if program.endswith(PDA_MARKER):
        raise IllegalOwnerError("Owner program id ends with the PDA marker")
    return sha256(base, raw, program)


def is_program_derived(address: bytes) -> bool:
    """True when ``address`` cannot be a verifying key (off the curve)."""
    check_key(address)
    return not is_on_curve(address)
