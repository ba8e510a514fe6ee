"""
Data model for the Raydium monitor.

Transaction records are built from getTransaction JSON-RPC results.
Instructions are kept as a tagged union (InstructionEnvelope.kind) so the
extractor can dispatch on the tag instead of probing dict keys.
"""
import struct
from dataclasses import dataclass, field
from enum import Enum


class InstructionKind(str, Enum):
    COMPILED = "compiled"                    # programIdIndex + account indices
    PARSED = "parsed"                        # fully resolved by the RPC node
    PARTIALLY_DECODED = "partiallyDecoded"   # programId + accounts + base58 data
    UNKNOWN = "unknown"


@dataclass
class InstructionEnvelope:
    """One instruction before type-specific decoding."""

    kind: InstructionKind
    program_id: str | None = None
    program_id_index: int | None = None
    accounts: list = field(default_factory=list)   # str keys, or int indices when compiled
    data: str | None = None                         # base58
    parsed: dict | str | None = None

    @classmethod
    def from_rpc(cls, ix: dict) -> "InstructionEnvelope":
        if "parsed" in ix:
            return cls(
                kind=InstructionKind.PARSED,
                program_id=ix.get("programId"),
                parsed=ix.get("parsed"),
            )
        if "programIdIndex" in ix:
            return cls(
                kind=InstructionKind.COMPILED,
                program_id_index=ix.get("programIdIndex"),
                accounts=list(ix.get("accounts", [])),
                data=ix.get("data"),
            )
        if "programId" in ix and "data" in ix:
            return cls(
                kind=InstructionKind.PARTIALLY_DECODED,
                program_id=ix.get("programId"),
                accounts=list(ix.get("accounts", [])),
                data=ix.get("data"),
            )
        return cls(kind=InstructionKind.UNKNOWN, program_id=ix.get("programId"))

    @property
    def parsed_amount(self) -> int | None:
        """`parsed.info.amount` as an unsigned integer, if present."""
        if not isinstance(self.parsed, dict):
            return None
        info = self.parsed.get("info")
        if not isinstance(info, dict):
            return None
        raw = info.get("amount")
        if raw is None and isinstance(info.get("tokenAmount"), dict):
            raw = info["tokenAmount"].get("amount")  # transferChecked
        if isinstance(raw, bool) or raw is None:
            return None
        try:
            amount = int(raw)
        except (TypeError, ValueError):
            return None
        return amount if amount >= 0 else None


@dataclass
class InnerInstructionSet:
    """CPI instructions emitted by the outer instruction at `index`."""

    index: int
    instructions: list[InstructionEnvelope] = field(default_factory=list)

    @classmethod
    def from_rpc(cls, group: dict) -> "InnerInstructionSet":
        return cls(
            index=int(group.get("index", -1)),
            instructions=[
                InstructionEnvelope.from_rpc(ix)
                for ix in group.get("instructions", []) or []
            ],
        )


@dataclass
class RawMessage:
    """Message that only exposes a flat account key list."""

    account_keys: list[str]


@dataclass
class ParsedMessage:
    account_keys: list[str]
    instructions: list[InstructionEnvelope] = field(default_factory=list)


@dataclass
class TransactionRecord:
    """One confirmed transaction as returned by getTransaction."""

    encoding: str                                    # "json" | "jsonParsed" | "binary"
    message: RawMessage | ParsedMessage | None
    inner_instructions: list[InnerInstructionSet] = field(default_factory=list)
    err: object = None
    signatures: list[str] = field(default_factory=list)
    slot: int | None = None
    block_time: int | None = None
    version: object = None

    @property
    def succeeded(self) -> bool:
        return self.err is None

    @classmethod
    def from_rpc(cls, result: dict) -> "TransactionRecord":
        meta = result.get("meta") or {}
        inner = [
            InnerInstructionSet.from_rpc(group)
            for group in meta.get("innerInstructions") or []
        ]
        common = dict(
            inner_instructions=inner,
            err=meta.get("err"),
            slot=result.get("slot"),
            block_time=result.get("blockTime"),
            version=result.get("version"),
        )

        tx = result.get("transaction")
        # base58/base64 encodings come back as [data, encoding]
        if not isinstance(tx, dict):
            return cls(encoding="binary", message=None, **common)

        message = tx.get("message") or {}
        keys = message.get("accountKeys", []) or []
        signatures = list(tx.get("signatures", []))

        if keys and all(isinstance(k, dict) for k in keys):
            account_keys = [k.get("pubkey", "") for k in keys]
            instructions = [
                InstructionEnvelope.from_rpc(ix)
                for ix in message.get("instructions", []) or []
            ]
            return cls(
                encoding="jsonParsed",
                message=ParsedMessage(account_keys, instructions),
                signatures=signatures,
                **common,
            )

        return cls(
            encoding="json",
            message=RawMessage([str(k) for k in keys]),
            signatures=signatures,
            **common,
        )


@dataclass
class ExtractedInstruction:
    """Normalized result of locating the target-program instruction."""

    accounts: list[str] = field(default_factory=list)
    data: str | None = None      # base58 payload
    amount: int | None = None    # pre-parsed amount (fully parsed ixs)

    @property
    def has_payload(self) -> bool:
        return self.data is not None


# ═══════════════════════════════════════════════════════════════
#  DECODED PAYLOADS
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PoolInitData:
    """Raydium `initialize2` instruction data."""

    discriminator: int
    nonce: int
    open_time: int
    init_pc_amount: int
    init_coin_amount: int

    FORMAT = "<BBQQQ"

    def encode(self) -> bytes:
        return struct.pack(
            self.FORMAT,
            self.discriminator,
            self.nonce,
            self.open_time,
            self.init_pc_amount,
            self.init_coin_amount,
        )


@dataclass(frozen=True)
class SwapData:
    """Raydium `swapBaseIn` instruction data."""

    discriminator: int
    amount_in: int
    minimum_amount_out: int

    FORMAT = "<BQQ"

    def encode(self) -> bytes:
        return struct.pack(
            self.FORMAT, self.discriminator, self.amount_in, self.minimum_amount_out
        )


# ═══════════════════════════════════════════════════════════════
#  TOKENS & REPORTS
# ═══════════════════════════════════════════════════════════════


@dataclass
class TokenInfo:
    """Metadata + decimals for one mint. Strings are already null-trimmed."""

    mint: str
    name: str
    symbol: str
    decimals: int
    uri: str = ""
    update_authority: str = ""
    supply: int = 0

    def to_dict(self) -> dict:
        return {
            "mint": self.mint,
            "name": self.name,
            "symbol": self.symbol,
            "decimals": self.decimals,
            "uri": self.uri,
            "update_authority": self.update_authority,
            "supply": self.supply,
        }


@dataclass
class SwapReport:
    direction: str               # "buy" | "sell"
    signature: str
    owner: str
    source_symbol: str
    destination_symbol: str
    amount_in: float             # normalized by source decimals
    expected_amount: float       # minimum_amount_out, normalized
    actual_amount: float         # settled amount, normalized
    slippage_pct: float

    def to_dict(self) -> dict:
        return {
            "direction": self.direction,
            "signature": self.signature,
            "owner": self.owner,
            "source": self.source_symbol,
            "destination": self.destination_symbol,
            "amount_in": self.amount_in,
            "expected_amount": self.expected_amount,
            "actual_amount": self.actual_amount,
            "slippage_pct": round(self.slippage_pct, 2),
        }


@dataclass
class PoolLeg:
    mint: str
    name: str
    symbol: str
    amount: float
    decimals: int

    def to_dict(self) -> dict:
        return {
            "token": self.name,
            "symbol": self.symbol,
            "mint": self.mint,
            "amount": self.amount,
            "decimals": self.decimals,
        }


@dataclass
class PoolReport:
    signature: str
    amm: str
    owner: str
    open_time: int
    coin: PoolLeg
    pc: PoolLeg

    @property
    def solscan_url(self) -> str:
        return f"https://solscan.io/tx/{self.signature}"

    def to_dict(self) -> dict:
        return {
            "signature": self.signature,
            "url": self.solscan_url,
            "amm": self.amm,
            "owner": self.owner,
            "open_time": self.open_time,
            "tokens": [self.coin.to_dict(), self.pc.to_dict()],
        }


@dataclass
class LogNotification:
    signature: str
    logs: list[str] = field(default_factory=list)
    err: object = None
    slot: int | None = None

    def mentions(self, marker: str) -> bool:
        return any(marker in line for line in self.logs)

    @classmethod
    def from_rpc(cls, data) -> "LogNotification | None":
        """
        Build from a `logsNotification` message.

        Returns None for any other message, and for a notification without a
        signature. Non-string log lines are dropped.
        """
        if not isinstance(data, dict) or data.get("method") != "logsNotification":
            return None
        params = data.get("params") or {}
        result = (params.get("result") or {}) if isinstance(params, dict) else {}
        value = (result.get("value") or {}) if isinstance(result, dict) else {}
        if not isinstance(value, dict):
            return None
        signature = value.get("signature")
        if not isinstance(signature, str) or not signature:
            return None
        logs = value.get("logs") or []
        if not isinstance(logs, list):
            logs = []
        context = result.get("context") or {}
        return cls(
            signature=signature,
            logs=[line for line in logs if isinstance(line, str)],
            err=value.get("err"),
            slot=context.get("slot") if isinstance(context, dict) else None,
        )
