"""
Pool creation reporting.

Fetch the `initialize2` transaction, locate the AMM instruction, decode
its payload, resolve both token legs and build a PoolReport:

    accounts[4]  → AMM (pool) address
    accounts[8]  → coin mint, paired with init_coin_amount
    accounts[9]  → pc mint,   paired with init_pc_amount
    accounts[17] → pool creator
"""
import json
import logging

from raydium.constants import (
    RAYDIUM_AMM_V4,
    RAYDIUM_IX_AMM,
    RAYDIUM_IX_COIN_MINT,
    RAYDIUM_IX_PC_MINT,
    RAYDIUM_IX_USER_WALLET,
)
from raydium.decoder import decode_pool_init
from raydium.errors import MalformedPayload
from raydium.extractor import locate
from raydium.models import (
    ExtractedInstruction,
    PoolInitData,
    PoolLeg,
    PoolReport,
    TokenInfo,
    TransactionRecord,
)
from raydium.swap_analyzer import normalize_amount

logger = logging.getLogger("ray_pool")


def build_pool_report(
    signature: str,
    accounts: list[str],
    decoded: PoolInitData,
    coin: TokenInfo,
    pc: TokenInfo,
) -> PoolReport:
    return PoolReport(
        signature=signature,
        amm=accounts[RAYDIUM_IX_AMM],
        owner=accounts[RAYDIUM_IX_USER_WALLET] if len(accounts) > RAYDIUM_IX_USER_WALLET else "",
        open_time=decoded.open_time,
        coin=PoolLeg(
            mint=coin.mint,
            name=coin.name,
            symbol=coin.symbol,
            amount=normalize_amount(decoded.init_coin_amount, coin.decimals),
            decimals=coin.decimals,
        ),
        pc=PoolLeg(
            mint=pc.mint,
            name=pc.name,
            symbol=pc.symbol,
            amount=normalize_amount(decoded.init_pc_amount, pc.decimals),
            decimals=pc.decimals,
        ),
    )


def _pool_accounts(extracted: ExtractedInstruction) -> list[str]:
    accounts = extracted.accounts
    if not extracted.has_payload:
        raise MalformedPayload("pool instruction carried no data")
    if len(accounts) <= RAYDIUM_IX_PC_MINT:
        raise MalformedPayload(
            f"initialize2 has {len(accounts)} accounts, need > {RAYDIUM_IX_PC_MINT}"
        )
    return accounts


async def process_pool_init(
    rpc, resolver, signature: str, program_id: str = RAYDIUM_AMM_V4
) -> PoolReport:
    """Full pool-creation pipeline for one signature."""
    tx = TransactionRecord.from_rpc(await rpc.get_transaction(signature))
    extracted, _inner = locate(tx, program_id)
    accounts = _pool_accounts(extracted)
    decoded = decode_pool_init(extracted.data)

    coin_mint = accounts[RAYDIUM_IX_COIN_MINT]
    pc_mint = accounts[RAYDIUM_IX_PC_MINT]
    logger.debug(f"Resolving coin {coin_mint[:8]}... / pc {pc_mint[:8]}...")
    coin = await resolver.resolve(coin_mint)
    pc = await resolver.resolve(pc_mint)

    return build_pool_report(signature, accounts, decoded, coin, pc)


def log_pool_report(report: PoolReport):
    logger.info(
        f"[pool] {report.coin.symbol}/{report.pc.symbol} amm={report.amm[:8]}.. "
        f"coin={report.coin.amount:g} pc={report.pc.amount:g} "
        f"owner={report.owner[:8]}.. {report.solscan_url}"
    )
    logger.info(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
