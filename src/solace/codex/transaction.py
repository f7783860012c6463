"""
Transaction signing and wire format.

A transaction is a short-vec of 64-byte ed25519 signatures followed by the
compiled message bytes. Signatures cover exactly ``message.to_bytes()``;
one slot per signer, in signer-zone order, all-zero until signed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ..errors import MissingSignerError, TransactionTooLargeError
from ..sigil.keys import SIGNATURE_LENGTH, Keypair, verify_signature
from ..utils import b58encode, b64encode
from .message import CompiledMessage
from .shortvec import decode_array, encode_array

logger = logging.getLogger(__name__)

# Maximum transaction size accepted by the network (IPv6 MTU minus headers)
PACKET_DATA_SIZE = 1232
EMPTY_SIGNATURE = bytes(SIGNATURE_LENGTH)


@dataclass
class Transaction:
    message: CompiledMessage
    signatures: list[bytes] = field(default_factory=list)

    @classmethod
    def unsigned(cls, message: CompiledMessage) -> "Transaction":
        return cls(message, [EMPTY_SIGNATURE] * message.header.num_required_signatures)

    @property
    def is_signed(self) -> bool:
        return len(self.signatures) == self.message.header.num_required_signatures and all(
            sig != EMPTY_SIGNATURE for sig in self.signatures
        )

    @property
    def signature(self) -> Optional[bytes]:
        """The identifying (fee payer) signature, once signed."""
        if not self.signatures or self.signatures[0] == EMPTY_SIGNATURE:
            return None
        return self.signatures[0]

    def verify(self) -> bool:
        """Check every signature slot against its signer key."""
        if not self.is_signed:
            return False
        payload = self.message.to_bytes()
        return all(
            verify_signature(key, sig, payload)
            for key, sig in zip(self.message.signers, self.signatures)
        )

    def to_bytes(self) -> bytes:
        raw = encode_array(self.signatures) + self.message.to_bytes()
        if len(raw) > PACKET_DATA_SIZE:
            raise TransactionTooLargeError(
                f"Transaction is {len(raw)} bytes; the limit is {PACKET_DATA_SIZE}"
            )
        return raw

    def to_base64(self) -> str:
        return b64encode(self.to_bytes())

    @classmethod
    def from_bytes(cls, data: bytes) -> "Transaction":
        signatures, offset = decode_array(data, SIGNATURE_LENGTH)
        message = CompiledMessage.from_bytes(data[offset:])
        if len(signatures) != message.header.num_required_signatures:
            raise ValueError(
                f"Transaction has {len(signatures)} signatures but the message "
                f"requires {message.header.num_required_signatures}"
            )
        return cls(message, signatures)


def sign(message: CompiledMessage, keypairs: Iterable[Keypair]) -> Transaction:
    """
    Sign ``message`` with every required signer.

    Keypairs are matched to signer slots by public key, not by position.
    Keypairs that do not sign this message are ignored.

    Raises:
        MissingSignerError: A signer-zone address has no keypair
    """
    by_key = {kp.public_key: kp for kp in keypairs}
    payload = message.to_bytes()

    signatures = []
    for key in message.signers:
        keypair = by_key.pop(key, None)
        if keypair is None:
            raise MissingSignerError(key)
        signatures.append(keypair.sign(payload))

    for key in by_key:
        logger.debug("Ignoring keypair %s: not a signer of this message", b58encode(key))

    return Transaction(message, signatures)
