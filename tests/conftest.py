"""Shared fixtures: a scripted JSON-RPC node served through httpx.MockTransport."""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx
import pytest

from solace.codex.transaction import Transaction
from solace.pneuma.rpc import RpcClient
from solace.utils import b58encode, b64decode


class FakeNode:
    """
    Minimal stand-in for a Solana RPC node.

    ``statuses`` is consumed one entry per getSignatureStatuses call; the
    last entry repeats once the queue is down to one.
    """

    def __init__(self) -> None:
        self.blockhash = bytes(range(32))
        self.last_valid_block_height = 1000
        self.block_height = 900
        self.statuses: list[Optional[dict[str, Any]]] = []
        self.send_error: Optional[dict[str, Any]] = None
        self.calls: list[str] = []
        self.sent: list[Transaction] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        if isinstance(body, list):
            # Answer batches in reverse to exercise id-based pairing
            return httpx.Response(200, json=[self._answer(call) for call in reversed(body)])
        return httpx.Response(200, json=self._answer(body))

    def _next_status(self) -> Optional[dict[str, Any]]:
        if not self.statuses:
            return None
        if len(self.statuses) > 1:
            return self.statuses.pop(0)
        return self.statuses[0]

    def _answer(self, call: dict[str, Any]) -> dict[str, Any]:
        method = call["method"]
        params = call.get("params", [])
        self.calls.append(method)

        if method == "getLatestBlockhash":
            result: Any = {
                "context": {"slot": 1},
                "value": {
                    "blockhash": b58encode(self.blockhash),
                    "lastValidBlockHeight": self.last_valid_block_height,
                },
            }
        elif method == "sendTransaction":
            if self.send_error is not None:
                return {"jsonrpc": "2.0", "id": call["id"], "error": self.send_error}
            tx = Transaction.from_bytes(b64decode(params[0]))
            self.sent.append(tx)
            result = b58encode(tx.signatures[0])
        elif method == "getSignatureStatuses":
            result = {"context": {"slot": 5}, "value": [self._next_status()]}
        elif method == "getBlockHeight":
            result = self.block_height
        elif method == "getFeeForMessage":
            result = {"context": {"slot": 1}, "value": 5000}
        elif method == "getBalance":
            result = {"context": {"slot": 1}, "value": 1_500_000_000}
        else:
            return {
                "jsonrpc": "2.0",
                "id": call["id"],
                "error": {"code": -32601, "message": "Method not found"},
            }
        return {"jsonrpc": "2.0", "id": call["id"], "result": result}

    def client(self) -> RpcClient:
        return RpcClient("http://fake-node", transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def fake_node() -> FakeNode:
    return FakeNode()
