"""
Minimal Solana JSON-RPC client over aiohttp.

Covers the two calls the monitor needs: getTransaction (jsonParsed,
v0 transactions) and getAccountInfo (base64). Calls are serialized and
spaced by a minimum interval to stay under public endpoint rate limits.
"""
import asyncio
import base64
import logging
import time

import aiohttp

from raydium.errors import RpcError

logger = logging.getLogger("ray_rpc")


class SolanaRpcClient:
    """Rate-limited JSON-RPC client. Errors surface as RpcError."""

    def __init__(
        self,
        http_url: str,
        commitment: str = "confirmed",
        min_interval: float = 0.1,
        timeout: float = 30,
    ):
        self.http_url = http_url
        self.commitment = commitment
        self.min_interval = min_interval
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None
        self._lock = asyncio.Lock()
        self._last_call: float = 0.0
        self._next_id = 0

    async def _ensure_session(self):
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def call(self, method: str, params: list):
        """Send one JSON-RPC request and return its `result`."""
        await self._ensure_session()

        async with self._lock:
            wait = self.min_interval - (time.time() - self._last_call)
            if wait > 0:
                await asyncio.sleep(wait)

            self._next_id += 1
            try:
                async with self._session.post(
                    self.http_url,
                    json={
                        "jsonrpc": "2.0",
                        "id": self._next_id,
                        "method": method,
                        "params": params,
                    },
                ) as resp:
                    self._last_call = time.time()
                    if resp.status != 200:
                        raise RpcError(f"{method}: HTTP {resp.status}")
                    data = await resp.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                raise RpcError(f"{method}: {e}") from e

        if "error" in data:
            error = data["error"] or {}
            logger.debug(f"{method} error: {error}")
            raise RpcError(f"{method}: {error.get('message', error)}")
        return data.get("result")

    async def get_transaction(self, signature: str) -> dict:
        """Fetch a transaction with jsonParsed encoding."""
        result = await self.call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "maxSupportedTransactionVersion": 0,
                    "commitment": self.commitment,
                },
            ],
        )
        if result is None:
            raise RpcError(f"transaction {signature[:16]}... not found")
        return result

    async def get_account_data(self, address: str) -> bytes | None:
        """Raw account bytes, or None when the account does not exist."""
        result = await self.call(
            "getAccountInfo",
            [address, {"encoding": "base64", "commitment": self.commitment}],
        )
        value = (result or {}).get("value")
        if value is None:
            return None
        data = value.get("data")
        if not isinstance(data, list) or not data:
            raise RpcError(f"unexpected account data for {address[:8]}...")
        try:
            return base64.b64decode(data[0])
        except ValueError as e:
            raise RpcError(f"bad base64 account data for {address[:8]}...") from e
