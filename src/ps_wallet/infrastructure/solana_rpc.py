"""Minimal Solana JSON-RPC client (getBalance only).

POST {rpc_url}
  {"jsonrpc": "2.0", "id": 1, "method": "getBalance",
   "params": ["<address>", {"commitment": "confirmed"}]}
-> {"jsonrpc": "2.0", "result": {"context": {...}, "value": 1500000000}, "id": 1}
"""

import logging

import httpx

from src.ps_common.errors import UpstreamError

logger = logging.getLogger(__name__)


class SolanaRpcClient:
    def __init__(
        self,
        client: httpx.AsyncClient,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout_seconds: float = 5.0,
    ) -> None:
        self._client = client
        self._url = rpc_url
        self._commitment = commitment
        self._timeout = timeout_seconds
        self._next_id = 0

    async def get_balance(self, address: str) -> int:
        self._next_id += 1
        body = {
            "jsonrpc": "2.0",
            "id": self._next_id,
            "method": "getBalance",
            "params": [address, {"commitment": self._commitment}],
        }
        try:
            resp = await self._client.post(self._url, json=body, timeout=self._timeout)
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as exc:
            raise UpstreamError("solana rpc", f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise UpstreamError("solana rpc", "response is not JSON") from exc

        if not isinstance(payload, dict):
            raise UpstreamError("solana rpc", "unexpected response shape")
        if "error" in payload:
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise UpstreamError("solana rpc", f"getBalance failed: {message}")

        result = payload.get("result")
        value = result.get("value") if isinstance(result, dict) else None
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise UpstreamError("solana rpc", f"unexpected getBalance result: {result!r}")
        return value
