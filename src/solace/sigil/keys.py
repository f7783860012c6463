"""
Ed25519 Key Management for Solace.

This module handles the ed25519 keys used for:
- Transaction signing (fee payer and any additional signers)
- Telling verifying keys (on-curve) apart from program-derived addresses

Keypairs are stored in the Solana CLI format: a JSON array of 64 bytes
(32-byte seed followed by the 32-byte public key). The default location is
~/.config/solana/id.json, overridable with SOLACE_KEYPAIR in the
environment or in ~/.solace/.env.
"""

from __future__ import annotations

import json
import os
import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from dotenv import load_dotenv

from ..errors import ValidationError
from ..utils import b58decode, b58encode


# Default config directory
SOLACE_DIR = Path.home() / ".solace"
SOLACE_ENV = SOLACE_DIR / ".env"
DEFAULT_KEYPAIR_PATH = Path.home() / ".config" / "solana" / "id.json"

KEY_LENGTH = 32
SIGNATURE_LENGTH = 64

# ed25519 field prime and twisted Edwards curve constant d = -121665/121666
_P = 2**255 - 19
_D = (-121665 * pow(121666, _P - 2, _P)) % _P


# ============ Addresses ============


def pubkey(value: Union[str, bytes]) -> bytes:
    """
    Normalize an address given as base58 text or raw bytes.

    Raises:
        ValidationError: If the value does not decode to 32 bytes
    """
    if isinstance(value, str):
        try:
            raw = b58decode(value)
        except ValueError as exc:
            raise ValidationError(f"Invalid base58 address: {value!r}") from exc
    elif isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    else:
        raise ValidationError(f"Address must be str or bytes, got {type(value).__name__}")
    check_key(raw)
    return raw


def check_key(value: object) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != KEY_LENGTH:
        raise ValidationError(f"Address must be {KEY_LENGTH} bytes")
    return bytes(value)


def is_on_curve(key: bytes) -> bool:
    """Whether ``key`` decompresses to a point on the ed25519 curve.

    The sign bit is ignored and y is reduced modulo p, matching the
    decompression the ledger uses. The point exists iff
    (y^2 - 1) / (d*y^2 + 1) is a square modulo p.
    """
    y = int.from_bytes(key, "little") & ((1 << 255) - 1)
    y %= _P
    yy = y * y % _P
    u = (yy - 1) % _P
    v = (_D * yy + 1) % _P
    if v == 0:
        return u == 0
    x2 = u * pow(v, _P - 2, _P) % _P
    if x2 == 0:
        return True
    return pow(x2, (_P - 1) // 2, _P) == 1


def check_verifying_key(key: bytes) -> bytes:
    """Reject addresses that cannot be an ed25519 verifying key (e.g. PDAs)."""
    check_key(key)
    if not is_on_curve(key):
        raise ValidationError(f"{b58encode(key)} is not a valid verifying key")
    return key


def check_pda(key: bytes) -> bytes:
    check_key(key)
    if is_on_curve(key):
        raise ValidationError(f"{b58encode(key)} lies on the curve and cannot be a program address")
    return key


# ============ Keypairs ============


@dataclass(frozen=True)
class Keypair:
    """An ed25519 signing key and its 32-byte public address."""

    seed: bytes = field(repr=False)
    public_key: bytes

    @classmethod
    def generate(cls) -> "Keypair":
        return cls.from_seed(secrets.token_bytes(KEY_LENGTH))

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        if len(seed) != KEY_LENGTH:
            raise ValidationError(f"Keypair seed must be {KEY_LENGTH} bytes")
        private = ed25519.Ed25519PrivateKey.from_private_bytes(seed)
        public = private.public_key().public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )
        return cls(seed=bytes(seed), public_key=public)

    @classmethod
    def from_secret_key(cls, secret: bytes) -> "Keypair":
        """Load the 64-byte (seed + public key) form used by the Solana CLI."""
        if len(secret) != 2 * KEY_LENGTH:
            raise ValidationError("Secret key must be 64 bytes (seed + public key)")
        keypair = cls.from_seed(secret[:KEY_LENGTH])
        if keypair.public_key != secret[KEY_LENGTH:]:
            raise ValidationError("Secret key public half does not match its seed")
        return keypair

    @property
    def address(self) -> str:
        return b58encode(self.public_key)

    @property
    def secret_key(self) -> bytes:
        return self.seed + self.public_key

    def sign(self, message: bytes) -> bytes:
        private = ed25519.Ed25519PrivateKey.from_private_bytes(self.seed)
        return private.sign(message)

    def to_json(self) -> str:
        return json.dumps(list(self.secret_key))


def verify_signature(public_key: bytes, signature: bytes, message: bytes) -> bool:
    try:
        ed25519.Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
    except (InvalidSignature, ValueError):
        return False
    return True


def generate_keypair() -> tuple[Keypair, str]:
    """
    Generate a new ed25519 keypair.

    Returns:
        Tuple of (keypair, base58 address)
    """
    keypair = Keypair.generate()
    return keypair, keypair.address


def save_keypair(keypair: Keypair, path: Optional[Path] = None) -> Path:
    """
    Save a keypair as a Solana CLI JSON file.

    Args:
        keypair: Keypair to persist
        path: Target file (default: ~/.config/solana/id.json)

    Returns:
        Path to the saved file
    """
    path = path or DEFAULT_KEYPAIR_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(keypair.to_json() + "\n", encoding="utf-8")

    # Set secure permissions on Unix
    if os.name != "nt":
        path.chmod(0o600)

    return path


def keypair_path(env_path: Optional[Path] = None) -> Path:
    """Resolve the keypair file from SOLACE_KEYPAIR (env or .env) or the default."""
    env_path = env_path or SOLACE_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)
    configured = os.environ.get("SOLACE_KEYPAIR")
    return Path(configured).expanduser() if configured else DEFAULT_KEYPAIR_PATH


def load_keypair(path: Optional[Path] = None) -> Keypair:
    """
    Load a keypair from a Solana CLI JSON file.

    Args:
        path: Keypair file (default: resolved by ``keypair_path``)

    Raises:
        FileNotFoundError: If the keypair file doesn't exist
        ValidationError: If the file is not a 64-byte JSON array
    """
    path = path or keypair_path()
    if not path.exists():
        raise FileNotFoundError(
            f"Keypair not found at {path}. Run 'solace keygen' or set SOLACE_KEYPAIR."
        )
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        secret = bytes(raw)
    except (json.JSONDecodeError, TypeError, ValueError) as exc:
        raise ValidationError(f"Keypair file {path} is not a JSON byte array") from exc
    return Keypair.from_secret_key(secret)
