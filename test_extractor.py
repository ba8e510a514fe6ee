"""
Tests for instruction extraction across transaction encodings.
Run: python3 test_extractor.py  (or pytest)
"""
import sys

import pytest

# Ensure project root is on path
sys.path.insert(0, ".")

from raydium.constants import RAYDIUM_AMM_V4, TOKEN_PROGRAM
from raydium.errors import (
    NoMatchingInstruction,
    ProgramIdNotFound,
    UnsupportedTransactionFormat,
)
from raydium.extractor import index_inner_instructions, locate, process_instruction
from raydium.models import (
    InnerInstructionSet,
    InstructionEnvelope,
    InstructionKind,
    ParsedMessage,
    RawMessage,
    TransactionRecord,
)

COMPUTE_BUDGET = "ComputeBudget111111111111111111111111111111"
SIGNER = "DeployerWallet33333333333333333333333333333"


def make_parsed_tx(instructions, inner=None, keys=None) -> dict:
    """A getTransaction(jsonParsed) result."""
    keys = keys or [SIGNER, RAYDIUM_AMM_V4, TOKEN_PROGRAM]
    return {
        "slot": 250_000_000,
        "blockTime": 1_717_000_000,
        "version": 0,
        "meta": {"err": None, "innerInstructions": inner or []},
        "transaction": {
            "signatures": ["5sig"],
            "message": {
                "accountKeys": [
                    {"pubkey": k, "signer": i == 0, "writable": True, "source": "transaction"}
                    for i, k in enumerate(keys)
                ],
                "instructions": instructions,
            },
        },
    }


def amm_ix(accounts=None, data="3xy") -> dict:
    return {
        "programId": RAYDIUM_AMM_V4,
        "accounts": accounts or [f"acc{i}" for i in range(18)],
        "data": data,
        "stackHeight": None,
    }


def transfer_ix(amount: str, program_id: str = TOKEN_PROGRAM) -> dict:
    return {
        "program": "spl-token",
        "programId": program_id,
        "parsed": {
            "type": "transfer",
            "info": {"amount": amount, "authority": "auth", "source": "s", "destination": "d"},
        },
        "stackHeight": 2,
    }


# ══════════════════════════════════════════════════════════════
#  RAW (flat account keys)
# ══════════════════════════════════════════════════════════════


def test_raw_message_returns_all_keys():
    tx = TransactionRecord.from_rpc({
        "meta": {"err": None},
        "transaction": {
            "signatures": ["5sig"],
            "message": {
                "accountKeys": [SIGNER, RAYDIUM_AMM_V4, TOKEN_PROGRAM],
                "instructions": [{"programIdIndex": 1, "accounts": [0], "data": "3"}],
            },
        },
    })
    assert isinstance(tx.message, RawMessage)
    extracted, inner = locate(tx, RAYDIUM_AMM_V4)
    assert extracted.accounts == [SIGNER, RAYDIUM_AMM_V4, TOKEN_PROGRAM]
    assert extracted.data is None
    assert inner is None


def test_raw_message_without_program():
    tx = TransactionRecord(encoding="json", message=RawMessage([SIGNER, TOKEN_PROGRAM]))
    with pytest.raises(ProgramIdNotFound):
        locate(tx, RAYDIUM_AMM_V4)


def test_binary_encoding_unsupported():
    tx = TransactionRecord.from_rpc({
        "meta": {"err": None},
        "transaction": ["AQAB...", "base64"],
    })
    assert tx.encoding == "binary"
    with pytest.raises(UnsupportedTransactionFormat):
        locate(tx, RAYDIUM_AMM_V4)


# ══════════════════════════════════════════════════════════════
#  PARTIALLY DECODED
# ══════════════════════════════════════════════════════════════


def test_partially_decoded_match_with_inner():
    accounts = [f"a{i}" for i in range(18)]
    inner = [
        {"index": 0, "instructions": [transfer_ix("1")]},
        {"index": 2, "instructions": [transfer_ix("5"), transfer_ix("2000000000")]},
    ]
    tx = TransactionRecord.from_rpc(
        make_parsed_tx(
            [
                {"programId": COMPUTE_BUDGET, "accounts": [], "data": "3DTZbgwsozUF"},
                {"programId": COMPUTE_BUDGET, "accounts": [], "data": "Fj2Eoy"},
                amm_ix(accounts, data="payload"),
            ],
            inner=inner,
        )
    )
    extracted, group = locate(tx, RAYDIUM_AMM_V4)
    assert extracted.accounts == accounts
    assert extracted.data == "payload"
    assert extracted.amount is None
    assert group is not None and group.index == 2
    assert group.instructions[1].parsed_amount == 2_000_000_000


def test_missing_inner_group_is_not_an_error():
    tx = TransactionRecord.from_rpc(
        make_parsed_tx([amm_ix()], inner=[{"index": 5, "instructions": []}])
    )
    extracted, group = locate(tx, RAYDIUM_AMM_V4)
    assert extracted.data == "3xy"
    assert group is None


def test_no_matching_instruction():
    tx = TransactionRecord.from_rpc(
        make_parsed_tx([{"programId": COMPUTE_BUDGET, "accounts": [], "data": "Fj2Eoy"}])
    )
    with pytest.raises(NoMatchingInstruction):
        locate(tx, RAYDIUM_AMM_V4)


def test_empty_instruction_list():
    tx = TransactionRecord(encoding="jsonParsed", message=ParsedMessage([SIGNER], []))
    with pytest.raises(NoMatchingInstruction):
        locate(tx, RAYDIUM_AMM_V4)


def test_first_match_wins():
    tx = TransactionRecord.from_rpc(
        make_parsed_tx([amm_ix(data="first"), amm_ix(data="second")])
    )
    extracted, _ = locate(tx, RAYDIUM_AMM_V4)
    assert extracted.data == "first"


# ══════════════════════════════════════════════════════════════
#  FULLY PARSED
# ══════════════════════════════════════════════════════════════


def test_parsed_amount_short_circuits():
    tx = TransactionRecord.from_rpc(make_parsed_tx([transfer_ix("123456")]))
    extracted, _ = locate(tx, TOKEN_PROGRAM)
    assert extracted.amount == 123_456
    assert extracted.data is None


def test_parsed_instruction_of_other_program_skipped():
    tx = TransactionRecord.from_rpc(make_parsed_tx([transfer_ix("99"), amm_ix()]))
    extracted, _ = locate(tx, RAYDIUM_AMM_V4)
    assert extracted.amount is None
    assert extracted.data == "3xy"


def test_parsed_without_amount_does_not_match():
    ix = InstructionEnvelope.from_rpc({
        "program": "spl-token",
        "programId": TOKEN_PROGRAM,
        "parsed": {"type": "syncNative", "info": {"account": "wsol"}},
    })
    assert process_instruction(ix, None) is None


def test_parsed_non_numeric_amount():
    ix = InstructionEnvelope.from_rpc(transfer_ix("lots"))
    assert ix.parsed_amount is None
    assert process_instruction(ix, None) is None


def test_transfer_checked_amount():
    ix = InstructionEnvelope.from_rpc({
        "programId": TOKEN_PROGRAM,
        "parsed": {"type": "transferChecked", "info": {"tokenAmount": {"amount": "77", "decimals": 6}}},
    })
    assert process_instruction(ix, None).amount == 77


# ══════════════════════════════════════════════════════════════
#  COMPILED
# ══════════════════════════════════════════════════════════════


def test_compiled_accounts_resolved_through_key_table():
    keys = [SIGNER, COMPUTE_BUDGET, RAYDIUM_AMM_V4, "pool", "vault"]
    message = ParsedMessage(
        keys,
        [
            InstructionEnvelope(InstructionKind.COMPILED, program_id_index=1, accounts=[], data="x"),
            InstructionEnvelope(
                InstructionKind.COMPILED, program_id_index=2, accounts=[3, 4, 0], data="amm"
            ),
        ],
    )
    tx = TransactionRecord(encoding="jsonParsed", message=message)
    extracted, _ = locate(tx, RAYDIUM_AMM_V4)
    assert extracted.accounts == ["pool", "vault", SIGNER]
    assert extracted.data == "amm"


def test_compiled_index_out_of_range():
    message = ParsedMessage(
        [SIGNER, RAYDIUM_AMM_V4],
        [InstructionEnvelope(InstructionKind.COMPILED, program_id_index=1, accounts=[9], data="x")],
    )
    with pytest.raises(UnsupportedTransactionFormat):
        locate(TransactionRecord(encoding="jsonParsed", message=message), RAYDIUM_AMM_V4)


def test_unknown_instruction_kind():
    message = ParsedMessage([SIGNER], [InstructionEnvelope.from_rpc({"stackHeight": None})])
    assert message.instructions[0].kind is InstructionKind.UNKNOWN
    with pytest.raises(UnsupportedTransactionFormat):
        locate(TransactionRecord(encoding="jsonParsed", message=message), RAYDIUM_AMM_V4)


# ══════════════════════════════════════════════════════════════
#  RECORD PARSING
# ══════════════════════════════════════════════════════════════


def test_from_rpc_fields():
    tx = TransactionRecord.from_rpc(make_parsed_tx([amm_ix()], inner=[{"index": 0, "instructions": [transfer_ix("1")]}]))
    assert tx.encoding == "jsonParsed"
    assert tx.succeeded
    assert tx.slot == 250_000_000
    assert tx.block_time == 1_717_000_000
    assert tx.signatures == ["5sig"]
    assert tx.message.account_keys == [SIGNER, RAYDIUM_AMM_V4, TOKEN_PROGRAM]
    assert tx.message.instructions[0].kind is InstructionKind.PARTIALLY_DECODED
    assert tx.inner_instructions[0].instructions[0].kind is InstructionKind.PARSED


def test_inner_index_duplicates_keep_first():
    groups = [InnerInstructionSet(1, []), InnerInstructionSet(1, [InstructionEnvelope(InstructionKind.UNKNOWN)])]
    assert index_inner_instructions(groups)[1] is groups[0]


# ══════════════════════════════════════════════════════════════
#  RUN ALL TESTS
# ══════════════════════════════════════════════════════════════

if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-q"]))
