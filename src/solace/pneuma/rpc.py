"""
JSON-RPC Client for Solana clusters.

Thin async wrapper around httpx: encodes requests with ``request``,
decodes results with ``decode``. Connection pooling and keep-alive are
httpx's job; one ``RpcClient`` owns one ``httpx.AsyncClient``.

Transport failures are raised as ``TransportError`` and never retried
here; the caller (or the confirmation tracker, for status polls) decides.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence, Union

import httpx
from dotenv import load_dotenv

from ..errors import RpcError, TransportError
from ..sigil.keys import SOLACE_ENV
from .decode import decode_batch, decode_response
from .request import Request, encode, encode_batch

logger = logging.getLogger(__name__)

CLUSTER_URLS = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "localnet": "http://127.0.0.1:8899",
}

# Default RPC endpoint (devnet)
DEFAULT_RPC_URL = CLUSTER_URLS["devnet"]
DEFAULT_TIMEOUT = 30.0


def cluster_url(name: str) -> str:
    try:
        return CLUSTER_URLS[name]
    except KeyError:
        raise ValueError(
            f"Unknown cluster {name!r}; expected one of {', '.join(CLUSTER_URLS)}"
        ) from None


def get_rpc_url(env_path: Optional[Path] = None) -> str:
    """Get the RPC URL from SOLANA_RPC_URL, SOLANA_CLUSTER, or the default."""
    env_path = env_path or SOLACE_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)
    url = os.environ.get("SOLANA_RPC_URL")
    if url:
        return url
    cluster = os.environ.get("SOLANA_CLUSTER")
    if cluster:
        return cluster_url(cluster)
    return DEFAULT_RPC_URL


class RpcClient:
    """
    Async JSON-RPC client.

    Use as an async context manager so the underlying connection pool is
    always closed::

        async with RpcClient() as client:
            height = await client.send(request.get_block_height())
    """

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.url = url or get_rpc_url()
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _post(self, payload: Union[dict, list]) -> Any:
        try:
            response = await self._http.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            raise TransportError(f"RPC transport failure: {exc}") from exc

        if not response.is_success:
            raise TransportError(
                f"RPC endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise TransportError("RPC endpoint returned invalid JSON") from exc

    async def send(self, request: Request) -> Any:
        """
        Send one request and return its decoded result.

        Raises:
            TransportError: Connection, timeout or non-2xx HTTP failure
            RpcError: The node returned a JSON-RPC error
        """
        method = request[0]
        logger.debug("RPC %s -> %s", method, self.url)
        body = await self._post(encode(request))
        return decode_response(method, body)

    async def send_batch(self, requests: Sequence[Request]) -> list[Union[Any, RpcError]]:
        """
        Send requests as one JSON-RPC batch.

        Returns:
            One entry per request, in request order; failed calls are
            ``RpcError`` instances rather than raised.

        Raises:
            TransportError: The batch as a whole could not be delivered
        """
        if not requests:
            return []
        logger.debug("RPC batch [%s] -> %s", ", ".join(r[0] for r in requests), self.url)
        body = await self._post(encode_batch(requests))
        return decode_batch(requests, body)
