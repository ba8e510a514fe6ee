"""
Locate the target program's instruction inside a transaction record.

Handles the three instruction encodings a jsonParsed getTransaction can
return (compiled, fully parsed, partially decoded) plus the flat
account-key message of the plain json encoding. Outer instructions are
correlated with their inner (CPI) instructions by outer index.

Compiled instructions are matched by the key at their programIdIndex,
like the other kinds are matched by programId. Without that check a
leading compute-budget instruction would be taken for the AMM one.

Only the first matching instruction is used. A transaction that batches
several AMM instructions is only partially observed.
"""
import logging

from raydium.errors import (
    NoMatchingInstruction,
    ProgramIdNotFound,
    UnsupportedTransactionFormat,
)
from raydium.models import (
    ExtractedInstruction,
    InnerInstructionSet,
    InstructionEnvelope,
    InstructionKind,
    ParsedMessage,
    RawMessage,
    TransactionRecord,
)

logger = logging.getLogger("ray_extractor")


def _from_parsed(
    ix: InstructionEnvelope, target_program_id: str | None, account_keys: list[str]
) -> ExtractedInstruction | None:
    if target_program_id and ix.program_id and ix.program_id != target_program_id:
        return None
    amount = ix.parsed_amount
    if amount is None:
        return None
    logger.debug(f"parsed amount: {amount}")
    return ExtractedInstruction(amount=amount)


def _from_compiled(
    ix: InstructionEnvelope, target_program_id: str | None, account_keys: list[str]
) -> ExtractedInstruction | None:
    if target_program_id and ix.program_id_index is not None:
        if _key_at(account_keys, ix.program_id_index) != target_program_id:
            return None
    accounts = [_key_at(account_keys, i) for i in ix.accounts]
    return ExtractedInstruction(accounts=accounts, data=ix.data)


def _from_partially_decoded(
    ix: InstructionEnvelope, target_program_id: str | None, account_keys: list[str]
) -> ExtractedInstruction | None:
    if ix.program_id != target_program_id:
        return None
    return ExtractedInstruction(accounts=list(ix.accounts), data=ix.data)


_HANDLERS = {
    InstructionKind.PARSED: _from_parsed,
    InstructionKind.COMPILED: _from_compiled,
    InstructionKind.PARTIALLY_DECODED: _from_partially_decoded,
}


def _key_at(account_keys: list[str], index) -> str:
    if isinstance(index, int) and 0 <= index < len(account_keys):
        return account_keys[index]
    raise UnsupportedTransactionFormat(
        f"account index {index} outside key table of {len(account_keys)}"
    )


def process_instruction(
    ix: InstructionEnvelope,
    target_program_id: str | None,
    account_keys: list[str] | None = None,
) -> ExtractedInstruction | None:
    """
    Extract one instruction if it is addressed to `target_program_id`.

    A falsy target matches any program, which is how inner settlement
    transfers are read. Returns None when the instruction does not match.
    """
    handler = _HANDLERS.get(ix.kind)
    if handler is None:
        raise UnsupportedTransactionFormat(f"unknown instruction kind: {ix.kind}")
    return handler(ix, target_program_id, account_keys or [])


def index_inner_instructions(
    groups: list[InnerInstructionSet],
) -> dict[int, InnerInstructionSet]:
    """Outer index -> inner group. First group wins on duplicate indices."""
    by_index: dict[int, InnerInstructionSet] = {}
    for group in groups:
        by_index.setdefault(group.index, group)
    return by_index


def locate(
    tx: TransactionRecord, target_program_id: str
) -> tuple[ExtractedInstruction, InnerInstructionSet | None]:
    """Find the first instruction addressed to `target_program_id`."""
    message = tx.message

    if isinstance(message, RawMessage):
        # Degraded mode: no per-instruction structure, return every key
        if target_program_id not in message.account_keys:
            logger.debug("target program id not in account keys")
            raise ProgramIdNotFound(target_program_id)
        position = message.account_keys.index(target_program_id)
        logger.debug(f"target program at account index {position}")
        return ExtractedInstruction(accounts=list(message.account_keys)), None

    if not isinstance(message, ParsedMessage):
        raise UnsupportedTransactionFormat(f"encoding: {tx.encoding}")

    inner_by_index = index_inner_instructions(tx.inner_instructions)

    for index, ix in enumerate(message.instructions):
        extracted = process_instruction(ix, target_program_id, message.account_keys)
        if extracted is None:
            continue
        logger.debug(f"matched instruction {index} ({ix.kind.value})")
        inner = inner_by_index.get(index)
        if inner is None:
            logger.debug(f"no inner instructions for instruction {index}")
        return extracted, inner

    raise NoMatchingInstruction(target_program_id)
