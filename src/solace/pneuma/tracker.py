"""
Confirmation Tracker - follow a submitted signature to a terminal state.

State machine per signature::

    PENDING -> PROCESSED -> CONFIRMED -> FINALIZED
    PENDING | PROCESSED | CONFIRMED -> FAILED   (status reports an error)
    PENDING -> EXPIRED                          (blockhash no longer valid,
                                                 no status ever observed)

Transitions happen only when a status response arrives. The one exception
is EXPIRED, driven by the block height passing the blockhash's
last-valid height. A caller deadline is reported as
``ConfirmationTimeoutError``, never as EXPIRED.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional, Sequence

from ..errors import ConfirmationTimeoutError, RpcError, TransportError
from ..utils import b58encode
from . import request
from .rpc import RpcClient

logger = logging.getLogger(__name__)


class SubmissionStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = {SubmissionStatus.FINALIZED, SubmissionStatus.FAILED, SubmissionStatus.EXPIRED}

# Ordering of the commitment ladder; a status never moves down it
_RANK = {
    SubmissionStatus.PENDING: 0,
    SubmissionStatus.PROCESSED: 1,
    SubmissionStatus.CONFIRMED: 2,
    SubmissionStatus.FINALIZED: 3,
}

COMMITMENTS = ("processed", "confirmed", "finalized")


@dataclass
class PollPolicy:
    """
    How status polling is paced.

    ``interval`` grows by ``backoff`` after every poll up to
    ``max_interval``; ``backoff=1.0`` polls at a fixed rate.
    ``max_poll_errors`` bounds consecutive failed polls (transport or RPC
    errors); ``None`` keeps retrying until the caller's deadline.
    """

    interval: float = 0.5
    backoff: float = 1.5
    max_interval: float = 5.0
    poll_timeout: float = 10.0
    max_poll_errors: Optional[int] = 10

    def delays(self) -> Iterator[float]:
        delay = self.interval
        while True:
            yield delay
            delay = min(delay * self.backoff, self.max_interval)


@dataclass
class SubmissionRecord:
    signature: bytes
    target_commitment: str = "confirmed"
    last_valid_block_height: Optional[int] = None
    submitted_at: float = field(default_factory=time.monotonic)
    status: SubmissionStatus = SubmissionStatus.PENDING
    error: Any = None
    slot: Optional[int] = None

    def __post_init__(self) -> None:
        if self.target_commitment not in COMMITMENTS:
            raise ValueError(
                f"Unknown commitment {self.target_commitment!r}; "
                f"expected one of {', '.join(COMMITMENTS)}"
            )

    @property
    def signature_b58(self) -> str:
        return b58encode(self.signature)

    @property
    def done(self) -> bool:
        """Terminal, or the target commitment has been reached."""
        if self.status.terminal:
            return True
        return _RANK[self.status] >= _RANK[SubmissionStatus(self.target_commitment)]

    def apply_status(self, status: Optional[dict], block_height: Optional[int] = None) -> bool:
        """
        Fold one ``getSignatureStatuses`` entry into the record.

        Args:
            status: The status entry for this signature, or None if unseen
            block_height: Current block height, when known

        Returns:
            True if the record's status changed
        """
        if self.status.terminal:
            return False

        if status is None:
            if (
                self.status is SubmissionStatus.PENDING
                and block_height is not None
                and self.last_valid_block_height is not None
                and block_height > self.last_valid_block_height
            ):
                self.status = SubmissionStatus.EXPIRED
                return True
            return False

        self.slot = status.get("slot", self.slot)
        if status.get("err") is not None:
            self.status = SubmissionStatus.FAILED
            self.error = status["err"]
            return True

        reported = status.get("confirmationStatus")
        if reported is None:
            # Older nodes: confirmations == None means rooted (finalized)
            reported = "finalized" if status.get("confirmations") is None else "confirmed"
        try:
            new = SubmissionStatus(reported)
        except ValueError:
            logger.warning("Unknown confirmationStatus %r for %s", reported, self.signature_b58)
            return False
        if new not in _RANK or _RANK[new] <= _RANK[self.status]:
            return False
        self.status = new
        return True


class ConfirmationTracker:
    """Poll signature statuses until each record is done."""

    def __init__(self, client: RpcClient, policy: Optional[PollPolicy] = None) -> None:
        self.client = client
        self.policy = policy or PollPolicy()

    async def poll_once(self, record: SubmissionRecord) -> bool:
        """
        Issue one status query (batched with a block height query when the
        record can expire) and apply it.

        Raises:
            TransportError: The batch could not be delivered
            RpcError: The status query itself failed
            TimeoutError: No answer within ``policy.poll_timeout``
        """
        requests = [request.get_signature_statuses([record.signature])]
        if record.last_valid_block_height is not None:
            requests.append(request.get_block_height(commitment="confirmed"))

        async with asyncio.timeout(self.policy.poll_timeout):
            results = await self.client.send_batch(requests)
        statuses = results[0]
        if isinstance(statuses, RpcError):
            raise statuses

        block_height = None
        if len(results) > 1:
            if isinstance(results[1], RpcError):
                logger.debug("getBlockHeight failed: %s", results[1])
            else:
                block_height = results[1]

        status = statuses[0] if statuses else None
        previous = record.status
        changed = record.apply_status(status, block_height)
        if changed:
            logger.info(
                "Signature %s: %s -> %s", record.signature_b58, previous.value, record.status.value
            )
        return changed

    async def _run(self, record: SubmissionRecord) -> SubmissionRecord:
        errors = 0
        delays = self.policy.delays()
        try:
            while True:
                try:
                    await self.poll_once(record)
                    errors = 0
                except (TransportError, RpcError, TimeoutError) as exc:
                    errors += 1
                    limit = self.policy.max_poll_errors
                    logger.warning(
                        "Status poll for %s failed (%d%s): %s",
                        record.signature_b58,
                        errors,
                        f"/{limit}" if limit is not None else "",
                        exc or type(exc).__name__,
                    )
                    if limit is not None and errors >= limit:
                        if isinstance(exc, TimeoutError):
                            raise TransportError(
                                f"Status poll timed out after {self.policy.poll_timeout}s"
                            ) from exc
                        raise
                if record.done:
                    return record
                await asyncio.sleep(next(delays))
        finally:
            logger.debug("Stopped tracking %s at %s", record.signature_b58, record.status.value)

    async def track(self, record: SubmissionRecord, timeout: float) -> SubmissionRecord:
        """
        Poll until ``record`` is terminal or reaches its target commitment.

        Returns:
            The record; callers check ``record.status`` for FAILED / EXPIRED

        Raises:
            ConfirmationTimeoutError: ``timeout`` seconds elapsed first
            TransportError / RpcError: More consecutive poll failures than
                the policy allows
        """
        try:
            async with asyncio.timeout(timeout):
                return await self._run(record)
        except TimeoutError:
            raise ConfirmationTimeoutError(record, timeout) from None

    async def track_many(
        self, records: Sequence[SubmissionRecord], timeout: float
    ) -> list[Any]:
        """Track independent records concurrently; failures are returned, not raised."""
        return await asyncio.gather(
            *(self.track(record, timeout) for record in records), return_exceptions=True
        )
