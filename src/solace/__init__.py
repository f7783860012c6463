__all__ = [
    # Keys
    "Keypair",
    "generate_keypair",
    "load_keypair",
    "save_keypair",
    "pubkey",
    "is_on_curve",
    # Derivation
    "derive_address",
    "find_program_address",
    "create_program_address",
    "create_with_seed",
    # Wire format
    "AccountMeta",
    "Instruction",
    "CompiledMessage",
    "compile_message",
    "Transaction",
    "sign",
    # RPC
    "RpcClient",
    "ConfirmationTracker",
    "PollPolicy",
    "SubmissionRecord",
    "SubmissionStatus",
    "build_and_send",
    "estimate_fee",
    # Errors
    "SolaceError",
    "ValidationError",
    "NoAddressFoundError",
    "CompileError",
    "EmptyInstructionsError",
    "TooManyAccountsError",
    "SignError",
    "MissingSignerError",
    "TransportError",
    "RpcError",
    "SubmissionError",
    "SubmissionNotSentError",
    "SubmissionRejectedError",
    "ExecutionFailedError",
    "BlockhashExpiredError",
    "ConfirmationTimeoutError",
]

from .errors import (
    BlockhashExpiredError,
    CompileError,
    ConfirmationTimeoutError,
    EmptyInstructionsError,
    ExecutionFailedError,
    MissingSignerError,
    NoAddressFoundError,
    RpcError,
    SignError,
    SolaceError,
    SubmissionError,
    SubmissionNotSentError,
    SubmissionRejectedError,
    TooManyAccountsError,
    TransportError,
    ValidationError,
)
from .sigil.keys import Keypair, generate_keypair, is_on_curve, load_keypair, pubkey, save_keypair
from .sigil.pda import create_program_address, create_with_seed, derive_address, find_program_address
from .codex.instruction import AccountMeta, Instruction
from .codex.message import CompiledMessage, compile_message
from .codex.transaction import Transaction, sign
from .pneuma.rpc import RpcClient
from .pneuma.tracker import ConfirmationTracker, PollPolicy, SubmissionRecord, SubmissionStatus
from .pneuma.submit import build_and_send, estimate_fee
