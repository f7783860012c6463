"""
Transaction Submission - Build, sign, send and confirm transactions.

Composes the compiler, the signer, the RPC client and the confirmation
tracker. Every attempt fetches a fresh blockhash and recompiles, so a
signature is never reused across blockhashes.

Failures are typed so the caller can choose the remedy:

- ``SubmissionNotSentError``: never reached the network (fix input / retry)
- ``SubmissionRejectedError``: the node refused it (e.g. preflight failed)
- ``ExecutionFailedError``: executed on the ledger and failed
- ``BlockhashExpiredError``: recompile, re-sign and resubmit
- ``ConfirmationTimeoutError``: caller deadline elapsed
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from ..codex.instruction import Instruction
from ..codex.message import CompiledMessage, compile_message
from ..codex.transaction import Transaction, sign
from ..errors import (
    BlockhashExpiredError,
    CompileError,
    ExecutionFailedError,
    RpcError,
    SignError,
    SubmissionNotSentError,
    SubmissionRejectedError,
    TransportError,
    ValidationError,
)
from ..sigil.keys import Keypair
from . import request
from .rpc import RpcClient
from .tracker import COMMITMENTS, ConfirmationTracker, PollPolicy, SubmissionRecord, SubmissionStatus

logger = logging.getLogger(__name__)


async def latest_blockhash(client: RpcClient, commitment: str = "confirmed") -> tuple[bytes, int]:
    """
    Fetch a recent blockhash.

    Returns:
        Tuple of (blockhash bytes, last valid block height)
    """
    result = await client.send(request.get_latest_blockhash(commitment=commitment))
    return result["blockhash"], result["lastValidBlockHeight"]


async def estimate_fee(client: RpcClient, message: CompiledMessage) -> Optional[int]:
    """Lamports the network will charge for ``message``; None if its blockhash is unknown."""
    return await client.send(request.get_fee_for_message(message))


def build_transaction(
    instructions: Sequence[Instruction],
    payer: Keypair,
    signers: Iterable[Keypair],
    recent_blockhash: bytes,
) -> Transaction:
    """
    Compile and sign in one step.

    Args:
        instructions: Instructions in execution order
        payer: Fee payer; also signs
        signers: Any additional signers
        recent_blockhash: Blockhash to compile against

    Returns:
        Fully signed Transaction
    """
    message = compile_message(payer.public_key, instructions, recent_blockhash)
    return sign(message, [payer, *signers])


async def send_transaction(
    client: RpcClient,
    tx: Transaction,
    *,
    skip_preflight: bool = False,
    preflight_commitment: Optional[str] = None,
    max_retries: Optional[int] = None,
) -> bytes:
    """
    Send a signed transaction.

    Returns:
        The transaction signature reported by the node

    Raises:
        SubmissionNotSentError: Transport failure or oversized transaction
        SubmissionRejectedError: The node returned an RPC error
    """
    try:
        req = request.send_transaction(
            tx,
            skip_preflight=skip_preflight,
            preflight_commitment=preflight_commitment,
            max_retries=max_retries,
        )
        signature = await client.send(req)
    except CompileError as exc:
        raise SubmissionNotSentError(str(exc)) from exc
    except TransportError as exc:
        raise SubmissionNotSentError(str(exc)) from exc
    except RpcError as exc:
        raise SubmissionRejectedError(exc) from exc

    if signature != tx.signature:
        logger.warning("Node reported signature differs from the locally computed one")
    return signature


async def build_and_send(
    client: RpcClient,
    instructions: Sequence[Instruction],
    payer: Keypair,
    signers: Iterable[Keypair] = (),
    commitment: str = "confirmed",
    timeout: float = 60.0,
    *,
    skip_preflight: bool = False,
    max_retries: Optional[int] = None,
    policy: Optional[PollPolicy] = None,
) -> SubmissionRecord:
    """
    Build, sign, send and confirm a transaction.

    Args:
        client: RPC client
        instructions: Instructions in execution order
        payer: Fee payer keypair
        signers: Additional signer keypairs
        commitment: Target commitment (processed, confirmed or finalized)
        timeout: Seconds to wait for the target commitment
        skip_preflight: Skip the node's simulation before forwarding
        max_retries: Node-side rebroadcast limit
        policy: Status polling policy

    Returns:
        SubmissionRecord that reached ``commitment`` (or finalized)

    Raises:
        SubmissionNotSentError, SubmissionRejectedError,
        ExecutionFailedError, BlockhashExpiredError,
        ConfirmationTimeoutError
        TransportError / RpcError: Status polling kept failing after the
            transaction was accepted
    """
    if commitment not in COMMITMENTS:
        raise ValidationError(f"Unknown commitment {commitment!r}")
    signers = list(signers)
    try:
        blockhash, last_valid = await latest_blockhash(client, commitment)
        tx = build_transaction(instructions, payer, signers, blockhash)
    except (CompileError, SignError, TransportError, RpcError) as exc:
        raise SubmissionNotSentError(str(exc)) from exc

    signature = await send_transaction(
        client,
        tx,
        skip_preflight=skip_preflight,
        preflight_commitment=commitment,
        max_retries=max_retries,
    )
    record = SubmissionRecord(
        signature=signature,
        target_commitment=commitment,
        last_valid_block_height=last_valid,
    )
    logger.info("Submitted %s (valid until block %d)", record.signature_b58, last_valid)

    tracker = ConfirmationTracker(client, policy)
    await tracker.track(record, timeout)

    if record.status is SubmissionStatus.FAILED:
        raise ExecutionFailedError(record)
    if record.status is SubmissionStatus.EXPIRED:
        raise BlockhashExpiredError(record)
    return record
