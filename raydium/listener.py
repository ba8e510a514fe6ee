"""
Raydium AMM V4 pool creation listener.

Detects new pools via WebSocket logsSubscribe on the AMM program.
Flow:
  1. Subscribe to logs mentioning the AMM program
  2. For each notification, skip failed txs and look for the
     `initialize2` marker in the log lines
  3. Fetch the full tx via getTransaction(jsonParsed)
  4. Locate the AMM instruction, decode initialize2, resolve both mints
  5. Emit a PoolReport

Notifications are processed one at a time, in arrival order: the next
message is not read until the current report is emitted or dropped.
Per-event failures are logged and skipped. A failed subscription or a
closed socket raises SubscriptionClosed.
"""
import asyncio
import json
import logging

import aiohttp

from raydium.constants import POOL_INIT_MARKER, RAYDIUM_AMM_V4
from raydium.errors import MonitorError, SubscriptionClosed
from raydium.models import LogNotification
from raydium.services import log_pool_report, process_pool_init

logger = logging.getLogger("ray_listener")


class RaydiumListener:
    """
    Live pool-creation feed for one program.

    `on_report` is an optional async callable receiving each PoolReport.
    """

    def __init__(
        self,
        wss_url: str,
        rpc,
        resolver,
        program_id: str = RAYDIUM_AMM_V4,
        marker: str = POOL_INIT_MARKER,
        commitment: str = "confirmed",
        on_report=None,
    ):
        self.wss_url = wss_url
        self.rpc = rpc
        self.resolver = resolver
        self.program_id = program_id
        self.marker = marker
        self.commitment = commitment
        self.on_report = on_report
        self._session: aiohttp.ClientSession | None = None
        self._running = False
        # Stats
        self.notifications: int = 0
        self.pools_detected: int = 0
        self.pools_failed: int = 0

    async def run(self):
        """Subscribe and process notifications until stopped or the channel fails."""
        self._running = True
        self._session = aiohttp.ClientSession()
        logger.info(f"Starting Raydium listener ({self.program_id[:8]}...)")
        try:
            await self._connect_and_listen()
        finally:
            self._running = False
            if self._session and not self._session.closed:
                await self._session.close()

    async def stop(self):
        self._running = False
        if self._session and not self._session.closed:
            await self._session.close()

    def subscribe_request(self) -> dict:
        return {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "logsSubscribe",
            "params": [
                {"mentions": [self.program_id]},
                {"commitment": self.commitment},
            ],
        }

    async def _connect_and_listen(self):
        logger.info("Connecting to Solana WebSocket...")
        try:
            async with self._session.ws_connect(
                self.wss_url,
                heartbeat=30,
                max_msg_size=0,  # no limit
            ) as ws:
                await ws.send_json(self.subscribe_request())
                await self._confirm_subscription(ws)

                async for msg in ws:
                    if not self._running:
                        return
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        await self.handle_message(msg.data)
                    elif msg.type in (
                        aiohttp.WSMsgType.CLOSED,
                        aiohttp.WSMsgType.ERROR,
                    ):
                        break
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            if not self._running:
                return
            raise SubscriptionClosed(f"Solana WebSocket error: {e}") from e

        if self._running:
            raise SubscriptionClosed("Solana WebSocket closed")

    async def _confirm_subscription(self, ws):
        try:
            resp = await ws.receive_json(timeout=10)
        except (TypeError, ValueError) as e:
            # non-text frame or invalid JSON
            raise SubscriptionClosed(f"logsSubscribe failed: {e}") from e
        sub_id = resp.get("result") if isinstance(resp, dict) else None
        if sub_id is None:
            error = resp.get("error", resp) if isinstance(resp, dict) else resp
            raise SubscriptionClosed(f"logsSubscribe failed: {error}")
        logger.info(f"Raydium subscription active (id={sub_id})")

    async def handle_message(self, text: str):
        try:
            notification = LogNotification.from_rpc(json.loads(text))
        except (AttributeError, TypeError, ValueError) as e:
            logger.debug(f"Message parse error: {e}")
            return
        if notification is not None:
            await self.handle_notification(notification)

    async def handle_notification(self, notification: LogNotification):
        """Run the pool pipeline for one notification. Never raises MonitorError."""
        self.notifications += 1
        if notification.err is not None:
            return
        if not notification.mentions(self.marker):
            return

        signature = notification.signature
        logger.info(f"[pool-init] processing {signature[:16]}...")
        try:
            report = await process_pool_init(
                self.rpc, self.resolver, signature, self.program_id
            )
        except MonitorError as e:
            self.pools_failed += 1
            logger.warning(
                f"[skip] sig={signature} stage={e.stage} "
                f"{type(e).__name__}: {e}"
            )
            return
        except Exception:
            self.pools_failed += 1
            logger.exception(f"[skip] sig={signature} stage=unexpected")
            return

        self.pools_detected += 1
        log_pool_report(report)
        if self.on_report is not None:
            try:
                await self.on_report(report)
            except Exception:
                logger.exception(f"[sink] report callback failed for {signature[:16]}...")
