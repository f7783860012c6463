"""Tests for JSON-RPC request encoding and response decoding."""

from __future__ import annotations

import pytest

from solace.errors import RpcError
from solace.pneuma import request as req
from solace.pneuma.decode import decode_batch, decode_response
from solace.utils import b58encode, b64encode

KEY = bytes(range(32))
SIG = bytes(range(64))


def _ok(request_id: int, result: object) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def _err(request_id: int, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


class TestEncode:
    def test_single_request(self) -> None:
        assert req.encode(req.get_balance(KEY)) == {
            "jsonrpc": "2.0",
            "id": 0,
            "method": "getBalance",
            "params": [b58encode(KEY)],
        }

    def test_params_omitted_when_empty(self) -> None:
        assert req.encode(req.get_first_available_block()) == {
            "jsonrpc": "2.0",
            "id": 0,
            "method": "getFirstAvailableBlock",
        }
        assert "params" not in req.encode(req.get_block_height())

    def test_batch_ids_are_positions(self) -> None:
        batch = req.encode_batch([req.get_slot(), req.get_block_height(), req.get_balance(KEY)])
        assert [call["id"] for call in batch] == [0, 1, 2]
        assert [call["method"] for call in batch] == ["getSlot", "getBlockHeight", "getBalance"]


class TestOptions:
    def test_camelized_and_none_skipped(self) -> None:
        _, params = req.get_signature_statuses(
            [SIG], search_transaction_history=True, min_context_slot=None
        )
        assert params == [[b58encode(SIG)], {"searchTransactionHistory": True}]

    def test_key_values_are_base58(self) -> None:
        _, params = req.get_signatures_for_address(KEY, before=SIG, limit=10)
        assert params[1] == {"before": b58encode(SIG), "limit": 10}

    def test_account_info_defaults_to_base64(self) -> None:
        _, params = req.get_account_info(KEY)
        assert params[1] == {"encoding": "base64"}
        _, params = req.get_account_info(KEY, encoding="jsonParsed")
        assert params[1] == {"encoding": "jsonParsed"}

    def test_send_transaction_preflight_commitment(self) -> None:
        class FakeTx:
            def to_base64(self) -> str:
                return "AAAA"

        method, params = req.send_transaction(FakeTx(), commitment="finalized", skip_preflight=True)  # type: ignore[arg-type]
        assert method == "sendTransaction"
        assert params == [
            "AAAA",
            {"encoding": "base64", "preflightCommitment": "finalized", "skipPreflight": True},
        ]

    def test_request_airdrop_lamports(self) -> None:
        assert req.encode(req.request_airdrop(KEY, 1.5))["params"] == [b58encode(KEY), 1_500_000_000]

    @pytest.mark.parametrize(
        "sol, lamports",
        [(1.001, 1_001_000_000), (1.003, 1_003_000_000), (0.000000001, 1), (4.999, 4_999_000_000)],
    )
    def test_request_airdrop_rounds_to_nearest_lamport(self, sol: float, lamports: int) -> None:
        _, params = req.request_airdrop(KEY, sol)
        assert params[1] == lamports


class TestDecodeResponse:
    def test_context_unwrapped(self) -> None:
        response = _ok(0, {"context": {"slot": 7}, "value": 42})
        assert decode_response("getBalance", response) == 42

    def test_error_raises(self) -> None:
        with pytest.raises(RpcError) as exc_info:
            decode_response("getBalance", _err(0, -32602, "Invalid param"))
        assert exc_info.value.code == -32602
        assert exc_info.value.message == "Invalid param"

    def test_signature_decoded(self) -> None:
        assert decode_response("sendTransaction", _ok(0, b58encode(SIG))) == SIG

    def test_blockhash_decoded(self) -> None:
        value = {"blockhash": b58encode(KEY), "lastValidBlockHeight": 9}
        result = decode_response("getLatestBlockhash", _ok(0, {"context": {"slot": 1}, "value": value}))
        assert result == {"blockhash": KEY, "lastValidBlockHeight": 9}

    def test_account_decoded(self) -> None:
        account = {
            "owner": b58encode(KEY),
            "data": [b64encode(b"hello"), "base64"],
            "lamports": 5,
            "executable": False,
        }
        result = decode_response("getAccountInfo", _ok(0, {"context": {"slot": 1}, "value": account}))
        assert result["owner"] == KEY
        assert result["data"] == b"hello"
        assert result["lamports"] == 5

    def test_missing_account(self) -> None:
        assert decode_response("getAccountInfo", _ok(0, {"context": {"slot": 1}, "value": None})) is None

    def test_multiple_accounts(self) -> None:
        accounts = [None, {"owner": b58encode(KEY), "data": [b64encode(b"x"), "base64"]}]
        result = decode_response(
            "getMultipleAccounts", _ok(0, {"context": {"slot": 1}, "value": accounts})
        )
        assert result == [None, {"owner": KEY, "data": b"x"}]

    def test_signature_list(self) -> None:
        entries = [{"signature": b58encode(SIG), "slot": 3, "err": None}]
        assert decode_response("getSignaturesForAddress", _ok(0, entries)) == [
            {"signature": SIG, "slot": 3, "err": None}
        ]

    def test_transaction(self) -> None:
        result = {
            "slot": 4,
            "transaction": {
                "signatures": [b58encode(SIG)],
                "message": {"accountKeys": [b58encode(KEY)], "recentBlockhash": b58encode(KEY)},
            },
        }
        decoded = decode_response("getTransaction", _ok(0, result))
        assert decoded["transaction"]["signatures"] == [SIG]
        assert decoded["transaction"]["message"]["accountKeys"] == [KEY]
        assert decoded["transaction"]["message"]["recentBlockhash"] == KEY

    def test_unknown_method_passes_through(self) -> None:
        assert decode_response("getVersion", _ok(0, {"solana-core": "1.18"})) == {"solana-core": "1.18"}


class TestDecodeBatch:
    """Responses are paired with requests by id, not by arrival order."""

    REQUESTS = [req.get_slot(), req.get_block_height(), req.get_balance(KEY)]

    def test_reordered_responses(self) -> None:
        body = [
            _ok(2, {"context": {"slot": 1}, "value": 500}),
            _ok(0, 11),
            _ok(1, 22),
        ]
        assert decode_batch(self.REQUESTS, body) == [11, 22, 500]

    def test_error_isolated_to_its_call(self) -> None:
        body = [_ok(0, 11), _err(1, -32005, "Node is behind"), _ok(2, 3)]
        results = decode_batch(self.REQUESTS, body)
        assert results[0] == 11
        assert isinstance(results[1], RpcError)
        assert results[1].code == -32005
        assert results[2] == 3

    def test_missing_response(self) -> None:
        results = decode_batch(self.REQUESTS, [_ok(0, 11), _ok(2, 3)])
        assert isinstance(results[1], RpcError)
        assert results[2] == 3

    def test_whole_batch_error(self) -> None:
        body = {"jsonrpc": "2.0", "id": None, "error": {"code": -32600, "message": "Invalid request"}}
        results = decode_batch(self.REQUESTS, body)
        assert len(results) == 3
        assert all(isinstance(r, RpcError) and r.code == -32600 for r in results)
