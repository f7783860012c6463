"""
Method-aware JSON-RPC response decoding.

Context-wrapped results (``{"context": ..., "value": ...}``) are unwrapped,
then fields the node sends as text are turned back into bytes: keys,
blockhashes and signatures are base58; account data blobs are base64.
Methods without a registered decoder pass their result through untouched.
"""

from __future__ import annotations

from typing import Any, Callable, Sequence, Union

from ..errors import RpcError
from ..utils import b58decode, b64decode
from .request import Request


def _decode_account(account: Any) -> Any:
    if not isinstance(account, dict):
        return account
    account = dict(account)
    if isinstance(account.get("owner"), str):
        account["owner"] = b58decode(account["owner"])
    data = account.get("data")
    if isinstance(data, list) and len(data) == 2 and data[1] == "base64":
        account["data"] = b64decode(data[0])
    return account


def _decode_multiple_accounts(result: Any) -> Any:
    if not isinstance(result, list):
        return result
    return [_decode_account(account) for account in result]


def _decode_signature_list(result: Any) -> Any:
    if not isinstance(result, list):
        return result
    return [
        {**entry, "signature": b58decode(entry["signature"])} if isinstance(entry, dict) else entry
        for entry in result
    ]


def _decode_blockhash(result: Any) -> Any:
    if not isinstance(result, dict):
        return result
    return {**result, "blockhash": b58decode(result["blockhash"])}


def _decode_transaction(result: Any) -> Any:
    if not isinstance(result, dict) or not isinstance(result.get("transaction"), dict):
        return result
    tx = dict(result["transaction"])
    message = dict(tx.get("message", {}))
    if "accountKeys" in message:
        message["accountKeys"] = [
            b58decode(k) if isinstance(k, str) else k for k in message["accountKeys"]
        ]
    if "recentBlockhash" in message:
        message["recentBlockhash"] = b58decode(message["recentBlockhash"])
    tx["message"] = message
    if "signatures" in tx:
        tx["signatures"] = [b58decode(s) for s in tx["signatures"]]
    return {**result, "transaction": tx}


def _decode_b58(result: Any) -> Any:
    return b58decode(result) if isinstance(result, str) else result


DECODERS: dict[str, Callable[[Any], Any]] = {
    "sendTransaction": _decode_b58,
    "requestAirdrop": _decode_b58,
    "getLatestBlockhash": _decode_blockhash,
    "getSignaturesForAddress": _decode_signature_list,
    "getTransaction": _decode_transaction,
    "getAccountInfo": _decode_account,
    "getMultipleAccounts": _decode_multiple_accounts,
}


def _extract_result(response: Any) -> Any:
    if not isinstance(response, dict):
        raise RpcError(None, f"Malformed JSON-RPC response: {response!r}")
    if "error" in response:
        raise RpcError.from_payload(response["error"])
    result = response.get("result")
    if isinstance(result, dict) and "value" in result and "context" in result:
        return result["value"]
    return result


def decode_result(method: str, result: Any) -> Any:
    decoder = DECODERS.get(method)
    return decoder(result) if decoder else result


def decode_response(method: str, response: Any) -> Any:
    """
    Decode one JSON-RPC response for ``method``.

    Raises:
        RpcError: The response carries an error object
    """
    return decode_result(method, _extract_result(response))


def decode_batch(requests: Sequence[Request], body: Any) -> list[Union[Any, RpcError]]:
    """
    Pair batch responses back with their requests.

    Responses are matched on ``id`` (the request's position), so the order
    the transport returns them in does not matter. A failed call shows up
    as an ``RpcError`` instance at its position; siblings still decode.
    """
    if not isinstance(body, list):
        # Some nodes answer a whole batch with a single error object
        error = RpcError.from_payload(body.get("error") if isinstance(body, dict) else body)
        return [error for _ in requests]

    by_id = {resp.get("id"): resp for resp in body if isinstance(resp, dict)}
    results: list[Union[Any, RpcError]] = []
    for i, (method, _params) in enumerate(requests):
        response = by_id.get(i)
        if response is None:
            results.append(RpcError(None, f"No response for request {i} ({method})"))
            continue
        try:
            results.append(decode_response(method, response))
        except RpcError as exc:
            results.append(exc)
    return results
