"""
Shared test fakes: on-chain account builders and an in-memory RPC.
"""
import struct
import sys

import base58
import pytest

# Ensure project root is on path
sys.path.insert(0, ".")

from raydium.errors import RpcError
from raydium.token_info import derive_metadata_address

RAY_MINT = "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R"
UPDATE_AUTHORITY = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


def key_bytes(address: str) -> bytes:
    return base58.b58decode(address)


def padded_string(text: str, width: int) -> bytes:
    raw = text.encode().ljust(width, b"\0")
    return struct.pack("<I", len(raw)) + raw


def make_metadata(mint: str, name: str, symbol: str, uri: str = "https://arweave.net/x") -> bytes:
    """MetadataV1 account bytes with on-chain style null padding."""
    return (
        bytes([4])
        + key_bytes(UPDATE_AUTHORITY)
        + key_bytes(mint)
        + padded_string(name, 32)
        + padded_string(symbol, 10)
        + padded_string(uri, 200)
        + struct.pack("<H", 25)
        + bytes([1, 1, 0])  # primary_sale_happened, is_mutable, edition_nonce: None
    )


def make_mint(decimals: int, supply: int = 555_000_000_000_000) -> bytes:
    raw = bytearray(82)
    raw[36:44] = struct.pack("<Q", supply)
    raw[44] = decimals
    raw[45] = 1
    return bytes(raw)


def make_token_account(mint: str, amount: int = 0) -> bytes:
    raw = bytearray(165)
    raw[0:32] = key_bytes(mint)
    raw[32:64] = key_bytes(UPDATE_AUTHORITY)
    raw[64:72] = struct.pack("<Q", amount)
    raw[108] = 1
    return bytes(raw)


def token_accounts(mint: str, name: str, symbol: str, decimals: int) -> dict:
    """Metadata PDA + mint account for one token."""
    return {
        derive_metadata_address(mint): make_metadata(mint, name, symbol),
        mint: make_mint(decimals),
    }


class FakeRpc:
    """In-memory getAccountInfo / getTransaction. Records account lookups."""

    def __init__(self, accounts: dict | None = None, transactions: dict | None = None):
        self.accounts = accounts or {}
        self.transactions = transactions or {}
        self.calls: list[str] = []

    async def get_account_data(self, address: str) -> bytes | None:
        self.calls.append(address)
        return self.accounts.get(address)

    async def get_transaction(self, signature: str) -> dict:
        if signature not in self.transactions:
            raise RpcError(f"transaction {signature} not found")
        return self.transactions[signature]


@pytest.fixture
def ray_rpc() -> FakeRpc:
    """RPC that knows the RAY metadata and mint (6 decimals)."""
    return FakeRpc(token_accounts(RAY_MINT, "Raydium", "RAY", 6))
