"""
Swap economics for Raydium AMM V4 swaps.

Direction comes from which user token accounts still hold a mint after
the transaction:
  - source account resolves      → sell (token debited for SOL)
  - only destination resolves    → buy  (temporary WSOL source was closed)
  - neither                      → not a recognized swap

The settled amount is read from the second inner instruction of the
swap (the pool → user transfer). That position is a heuristic: nothing
checks the CPI at index 1 is the settlement transfer rather than a fee
or some other call.
"""
import json
import logging

from raydium.constants import (
    NATIVE_DECIMALS,
    NATIVE_SYMBOL,
    RAYDIUM_AMM_V4,
    SWAP_IX_USER_OWNER,
    SWAP_SETTLEMENT_INNER_INDEX,
)
from raydium.decoder import decode_swap_data
from raydium.errors import SlippageError
from raydium.extractor import locate, process_instruction
from raydium.models import (
    InnerInstructionSet,
    ParsedMessage,
    SwapData,
    SwapReport,
    TokenInfo,
    TransactionRecord,
)

logger = logging.getLogger("ray_swap")

BUY = "buy"
SELL = "sell"


def normalize_amount(raw: int, decimals: int) -> float:
    return raw / 10 ** decimals


def calculate_slippage(actual: float, expected: float) -> float:
    """Percentage deviation of `actual` from `expected`."""
    if expected == 0:
        raise SlippageError("expected amount is zero")
    return (actual - expected) / expected * 100.0


def classify_direction(source_mint: str | None, destination_mint: str | None) -> str | None:
    if source_mint is not None:
        return SELL
    if destination_mint is not None:
        return BUY
    return None


def get_actual_amount(
    inner: InnerInstructionSet | None,
    decimals: int,
    account_keys: list[str] | None = None,
) -> float:
    """Settled amount from the swap's inner instructions, normalized."""
    if inner is None:
        return 0.0
    if len(inner.instructions) <= SWAP_SETTLEMENT_INNER_INDEX:
        logger.debug(
            f"inner group {inner.index} has {len(inner.instructions)} instructions, "
            f"no settlement leg"
        )
        return 0.0
    settlement = process_instruction(
        inner.instructions[SWAP_SETTLEMENT_INNER_INDEX], None, account_keys
    )
    if settlement is None or settlement.amount is None:
        return 0.0
    return normalize_amount(settlement.amount, decimals)


def build_swap_report(
    signature: str,
    accounts: list[str],
    decoded: SwapData,
    inner: InnerInstructionSet | None,
    source: TokenInfo | None,
    destination: TokenInfo | None,
    account_keys: list[str] | None = None,
) -> SwapReport | None:
    """Combine decoded swap fields with token info. None if not a swap."""
    direction = classify_direction(
        source.mint if source else None,
        destination.mint if destination else None,
    )
    if direction is None:
        return None

    owner = accounts[SWAP_IX_USER_OWNER] if len(accounts) > SWAP_IX_USER_OWNER else ""

    if direction == BUY:
        source_symbol = NATIVE_SYMBOL
        source_decimals = NATIVE_DECIMALS
    else:
        source_symbol = source.symbol
        source_decimals = source.decimals

    # A sell's WSOL destination is usually closed in the same tx
    if destination is not None:
        destination_symbol = destination.symbol
        destination_decimals = destination.decimals
    else:
        destination_symbol = NATIVE_SYMBOL
        destination_decimals = NATIVE_DECIMALS

    expected = normalize_amount(decoded.minimum_amount_out, destination_decimals)
    actual = get_actual_amount(inner, destination_decimals, account_keys)

    return SwapReport(
        direction=direction,
        signature=signature,
        owner=owner,
        source_symbol=source_symbol,
        destination_symbol=destination_symbol,
        amount_in=normalize_amount(decoded.amount_in, source_decimals),
        expected_amount=expected,
        actual_amount=actual,
        slippage_pct=calculate_slippage(actual, expected),
    )


async def analyze_swap(
    rpc, resolver, signature: str, program_id: str = RAYDIUM_AMM_V4
) -> SwapReport | None:
    """Fetch → extract → decode → resolve → calculate for one swap tx."""
    tx = TransactionRecord.from_rpc(await rpc.get_transaction(signature))
    extracted, inner = locate(tx, program_id)

    if not extracted.has_payload:
        logger.debug(f"[skip] {signature[:16]}... no instruction payload")
        return None

    decoded = decode_swap_data(extracted.data)
    source_mint, destination_mint = await resolver.get_token_mints(extracted.accounts)
    if classify_direction(source_mint, destination_mint) is None:
        logger.debug(f"[skip] {signature[:16]}... no resolvable token accounts")
        return None

    source = await resolver.resolve(source_mint) if source_mint else None
    destination = await resolver.resolve(destination_mint) if destination_mint else None

    account_keys = tx.message.account_keys if isinstance(tx.message, ParsedMessage) else None
    report = build_swap_report(
        signature, extracted.accounts, decoded, inner, source, destination, account_keys
    )
    if report is not None:
        log_swap_report(report)
    return report


def log_swap_report(report: SwapReport):
    logger.info(
        f"[swap] {report.direction} {report.amount_in:g} {report.source_symbol} → "
        f"{report.actual_amount:g} {report.destination_symbol} "
        f"(min {report.expected_amount:g}) slippage={report.slippage_pct:.2f}% "
        f"owner={report.owner[:8]}.."
    )
    logger.debug(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
