"""
JSON-RPC request builders.

A request is a ``(method, params)`` tuple; ``encode`` / ``encode_batch``
turn them into JSON-RPC 2.0 envelopes. Method names and parameter shapes
follow the documented Solana JSON-RPC API verbatim.

Option keys are written in snake_case and camelized on the wire; 32-byte
keys and 64-byte signatures passed as ``bytes`` are base58-encoded.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..codex.message import CompiledMessage
from ..codex.transaction import Transaction
from ..sigil.keys import KEY_LENGTH, SIGNATURE_LENGTH
from ..utils import b58encode, b64encode, camelize

Request = tuple[str, list[Any]]

LAMPORTS_PER_SOL = 1_000_000_000


# ============ Envelope ============


def _check_params(params: list[Any]) -> list[Any]:
    # Empty option maps are dropped; nodes reject some of them
    return [p for p in params if not (isinstance(p, dict) and not p)]


def _to_json_rpc(request: Request, request_id: int) -> dict[str, Any]:
    method, params = request
    payload: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    params = _check_params(params)
    if params:
        payload["params"] = params
    return payload


def encode(request: Request) -> dict[str, Any]:
    """Encode a single request with id 0."""
    return _to_json_rpc(request, 0)


def encode_batch(requests: Sequence[Request]) -> list[dict[str, Any]]:
    """Encode a batch; each request's id is its position in the list."""
    return [_to_json_rpc(request, i) for i, request in enumerate(requests)]


def _encode_value(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)) and len(value) in (KEY_LENGTH, SIGNATURE_LENGTH):
        return b58encode(bytes(value))
    return value


def encode_opts(
    opts: Optional[Mapping[str, Any]] = None,
    defaults: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    encoded = dict(defaults or {})
    for key, value in (opts or {}).items():
        if value is None:
            continue
        encoded[camelize(key)] = _encode_value(value)
    return encoded


# ============ Methods ============


def get_account_info(account: bytes, **opts: Any) -> Request:
    return ("getAccountInfo", [b58encode(account), encode_opts(opts, {"encoding": "base64"})])


def get_multiple_accounts(accounts: Sequence[bytes], **opts: Any) -> Request:
    return (
        "getMultipleAccounts",
        [[b58encode(a) for a in accounts], encode_opts(opts, {"encoding": "base64"})],
    )


def get_balance(account: bytes, **opts: Any) -> Request:
    return ("getBalance", [b58encode(account), encode_opts(opts)])


def get_token_account_balance(account: bytes, **opts: Any) -> Request:
    return ("getTokenAccountBalance", [b58encode(account), encode_opts(opts)])


def get_block(slot: int, **opts: Any) -> Request:
    return ("getBlock", [slot, encode_opts(opts)])


def get_block_height(**opts: Any) -> Request:
    return ("getBlockHeight", [encode_opts(opts)])


def get_slot(**opts: Any) -> Request:
    return ("getSlot", [encode_opts(opts)])


def get_latest_blockhash(**opts: Any) -> Request:
    return ("getLatestBlockhash", [encode_opts(opts)])


def get_fee_for_message(message: CompiledMessage, **opts: Any) -> Request:
    return ("getFeeForMessage", [b64encode(message.to_bytes()), encode_opts(opts)])


def get_minimum_balance_for_rent_exemption(length: int, **opts: Any) -> Request:
    return ("getMinimumBalanceForRentExemption", [length, encode_opts(opts)])


def send_transaction(tx: Transaction, **opts: Any) -> Request:
    """
    Submit a signed transaction.

    ``commitment`` is sent as ``preflightCommitment``; the payload is
    always base64.
    """
    if "commitment" in opts:
        opts["preflight_commitment"] = opts.pop("commitment")
    return ("sendTransaction", [tx.to_base64(), encode_opts(opts, {"encoding": "base64"})])


def request_airdrop(account: bytes, sol: float, **opts: Any) -> Request:
    lamports = round(sol * LAMPORTS_PER_SOL)
    return ("requestAirdrop", [b58encode(account), lamports, encode_opts(opts)])


def get_signatures_for_address(account: bytes, **opts: Any) -> Request:
    return ("getSignaturesForAddress", [b58encode(account), encode_opts(opts)])


def get_signature_statuses(signatures: Sequence[bytes], **opts: Any) -> Request:
    """
    Returns the statuses of a list of signatures.

    Unless ``search_transaction_history`` is set, only the recent status
    cache is searched.
    """
    return ("getSignatureStatuses", [[b58encode(s) for s in signatures], encode_opts(opts)])


def get_transaction(signature: bytes, **opts: Any) -> Request:
    return ("getTransaction", [b58encode(signature), encode_opts(opts)])


def get_token_supply(mint: bytes, **opts: Any) -> Request:
    return ("getTokenSupply", [b58encode(mint), encode_opts(opts)])


def get_token_largest_accounts(mint: bytes, **opts: Any) -> Request:
    return ("getTokenLargestAccounts", [b58encode(mint), encode_opts(opts)])


def get_first_available_block() -> Request:
    return ("getFirstAvailableBlock", [])
