"""
Solace error taxonomy.

Every failure the engine can produce is a ``SolaceError`` subclass, so
callers can tell apart "bad input", "never reached the network",
"network rejected", "executed but failed" and "timed out" and pick the
right remediation (fix input, retry, refresh blockhash, give up).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from .utils import b58encode

if TYPE_CHECKING:
    from .pneuma.tracker import SubmissionRecord


class SolaceError(Exception):
    pass


# ============ Local input errors ============


class ValidationError(SolaceError, ValueError):
    pass


class InvalidSeedsError(ValidationError):
    pass


class OnCurveError(ValidationError):
    pass


class IllegalOwnerError(ValidationError):
    pass


class NoAddressFoundError(SolaceError):
    pass


# ============ Compile / sign ============


class CompileError(SolaceError):
    pass


class EmptyInstructionsError(CompileError):
    pass


class TooManyAccountsError(CompileError):
    pass


class TransactionTooLargeError(CompileError):
    pass


class SignError(SolaceError):
    pass


class MissingSignerError(SignError):
    def __init__(self, address: bytes) -> None:
        self.address = address
        super().__init__(f"No keypair supplied for signer {b58encode(address)}")


# ============ Network ============


class TransportError(SolaceError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RpcError(SolaceError):
    def __init__(self, code: Optional[int], message: str, data: Any = None) -> None:
        super().__init__(f"RPC error {code}: {message}")
        self.code = code
        self.message = message
        self.data = data

    @classmethod
    def from_payload(cls, payload: Any) -> "RpcError":
        if isinstance(payload, dict):
            return cls(payload.get("code"), str(payload.get("message", "")), payload.get("data"))
        return cls(None, str(payload))


# ============ Submission outcomes ============


class SubmissionError(SolaceError):
    pass


class SubmissionNotSentError(SubmissionError):
    pass


class SubmissionRejectedError(SubmissionError):
    def __init__(self, rpc_error: RpcError) -> None:
        super().__init__(f"Transaction rejected: {rpc_error.message}")
        self.rpc_error = rpc_error


class ExecutionFailedError(SubmissionError):
    def __init__(self, record: "SubmissionRecord") -> None:
        super().__init__(f"Transaction failed: {record.error}")
        self.record = record
        self.reason = record.error


class BlockhashExpiredError(SubmissionError):
    def __init__(self, record: "SubmissionRecord") -> None:
        super().__init__("Blockhash expired before the transaction was observed")
        self.record = record


class ConfirmationTimeoutError(SubmissionError):
    def __init__(self, record: "SubmissionRecord", timeout: float) -> None:
        super().__init__(
            f"Transaction not confirmed within {timeout}s "
            f"(last status: {record.status.value})"
        )
        self.record = record
        self.timeout = timeout
