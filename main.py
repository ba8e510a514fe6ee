"""
Raydium AMM V4 Monitor — Main Orchestrator.

Live feed of new Raydium pools, plus one-shot lookups for a single
transaction or mint.

Usage:
    python main.py                   # live pool-creation feed (reads .env)
    python main.py pool <signature>  # pool report for one initialize2 tx
    python main.py swap <signature>  # swap report for one swap tx
    python main.py token <mint>      # token metadata + decimals
"""
import asyncio
import json
import logging
import signal as signal_module
import sys

import config
from raydium.errors import MonitorError, SubscriptionClosed
from raydium.listener import RaydiumListener
from raydium.rpc import SolanaRpcClient
from raydium.services import log_pool_report, process_pool_init
from raydium.state import TokenInfoCache
from raydium.swap_analyzer import analyze_swap
from raydium.token_info import TokenResolver

# ── Logging ──
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s | %(name)-14s | %(levelname)-5s | %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("main")
logging.getLogger("asyncio").setLevel(logging.WARNING)
logging.getLogger("aiohttp").setLevel(logging.WARNING)


def build_rpc() -> SolanaRpcClient:
    return SolanaRpcClient(
        config.SOL_RPC_HTTP,
        commitment=config.RPC_COMMITMENT,
        min_interval=config.RPC_MIN_INTERVAL_S,
        timeout=config.RPC_TIMEOUT_S,
    )


def build_resolver(rpc) -> TokenResolver:
    cache = None
    if config.TOKEN_CACHE_TTL_S > 0:
        cache = TokenInfoCache(
            max_age=config.TOKEN_CACHE_TTL_S, max_size=config.TOKEN_CACHE_MAX
        )
    return TokenResolver(rpc, cache=cache)


async def listen() -> int:
    rpc = build_rpc()
    resolver = build_resolver(rpc)
    listener = RaydiumListener(
        config.SOL_RPC_WSS,
        rpc,
        resolver,
        program_id=config.RAYDIUM_PROGRAM_ID,
        marker=config.POOL_INIT_MARKER,
        commitment=config.RPC_COMMITMENT,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal_module.SIGINT, signal_module.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.create_task(_shutdown(listener)))

    try:
        await listener.run()
    except SubscriptionClosed as e:
        logger.error(f"Subscription terminated: {e}")
        return 1
    finally:
        await rpc.close()
        logger.info(
            f"[stats] notifications={listener.notifications} "
            f"pools={listener.pools_detected} failed={listener.pools_failed}"
        )
        if resolver.cache is not None:
            logger.info(f"[stats] token cache {resolver.cache.stats()}")
    return 0


async def _shutdown(listener: RaydiumListener):
    logger.info("Shutting down...")
    await listener.stop()


async def one_shot(mode: str, arg: str) -> int:
    async with build_rpc() as rpc:
        resolver = build_resolver(rpc)
        try:
            if mode == "pool":
                log_pool_report(
                    await process_pool_init(rpc, resolver, arg, config.RAYDIUM_PROGRAM_ID)
                )
            elif mode == "swap":
                report = await analyze_swap(rpc, resolver, arg, config.RAYDIUM_PROGRAM_ID)
                if report is None:
                    logger.info("Not a recognized swap")
            elif mode == "token":
                info = await resolver.resolve(arg)
                logger.info(json.dumps(info.to_dict(), indent=2, ensure_ascii=False))
        except MonitorError as e:
            logger.error(f"{mode} failed at stage={e.stage}: {type(e).__name__}: {e}")
            return 1
    return 0


def main(argv: list[str]) -> int:
    if not argv or argv[0] == "listen":
        return asyncio.run(listen())
    if argv[0] in ("pool", "swap", "token") and len(argv) == 2:
        return asyncio.run(one_shot(argv[0], argv[1]))
    print(__doc__)
    return 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
