"""
Token metadata + decimals resolution.

For a mint:
  1. Derive the Metaplex metadata PDA (seeds: "metadata", program, mint)
  2. Fetch and decode the metadata account  → name / symbol / uri
  3. Fetch and decode the mint account       → decimals / supply

Account bytes come from any object with an async
`get_account_data(address) -> bytes | None` (SolanaRpcClient in production).
"""
import logging
import struct

import base58
from solders.pubkey import Pubkey

from raydium.constants import (
    ACCOUNT_TYPE_MINT,
    ACCOUNT_TYPE_TOKEN,
    EXTENSION_ACCOUNT_TYPE_OFFSET,
    METADATA_KEY_V1,
    METADATA_NAME_OFFSET,
    METADATA_PROGRAM,
    METADATA_SEED,
    MINT_DECIMALS_OFFSET,
    MINT_INITIALIZED_OFFSET,
    MINT_LEN,
    MINT_SUPPLY_OFFSET,
    PUBKEY_LEN,
    SWAP_IX_USER_DESTINATION,
    SWAP_IX_USER_SOURCE,
    TOKEN_ACCOUNT_LEN,
    TOKEN_ACCOUNT_STATE_OFFSET,
)
from raydium.decoder import read_pubkey, read_string, read_u16, trim_padding
from raydium.errors import MalformedPayload, MetadataNotFound, MintDecodeError
from raydium.models import TokenInfo
from raydium.state import TokenInfoCache

logger = logging.getLogger("ray_token")

METADATA_PROGRAM_ID = Pubkey.from_string(METADATA_PROGRAM)


def derive_metadata_address(mint: str) -> str:
    """Metaplex metadata PDA for `mint`. Pure and deterministic."""
    try:
        raw = base58.b58decode(mint)
    except ValueError as e:
        raise MetadataNotFound(f"invalid mint address {mint!r}") from e
    if len(raw) != PUBKEY_LEN:
        raise MetadataNotFound(f"invalid mint address {mint!r}")
    mint_key = Pubkey.from_bytes(raw)
    pda, _bump = Pubkey.find_program_address(
        [METADATA_SEED, bytes(METADATA_PROGRAM_ID), bytes(mint_key)],
        METADATA_PROGRAM_ID,
    )
    return str(pda)


def parse_metadata(raw: bytes) -> dict:
    """Decode a MetadataV1 account (fields up to seller_fee_basis_points)."""
    if not raw or raw[0] != METADATA_KEY_V1:
        key = raw[0] if raw else None
        raise MetadataNotFound(f"not a MetadataV1 account (key={key})")
    try:
        update_authority, offset = read_pubkey(raw, 1)
        mint, _ = read_pubkey(raw, offset)
        name, offset = read_string(raw, METADATA_NAME_OFFSET)
        symbol, offset = read_string(raw, offset)
        uri, offset = read_string(raw, offset)
        seller_fee, offset = read_u16(raw, offset)
    except MalformedPayload as e:
        raise MetadataNotFound(f"metadata decode failed: {e}") from e
    return {
        "update_authority": update_authority,
        "mint": mint,
        "name": trim_padding(name),
        "symbol": trim_padding(symbol),
        "uri": trim_padding(uri),
        "seller_fee_basis_points": seller_fee,
    }


def _account_type_ok(raw: bytes, base_len: int, account_type: int) -> bool:
    if len(raw) == base_len:
        return True
    # Token-2022 with extensions: base layout + padding + account type byte
    return (
        len(raw) > EXTENSION_ACCOUNT_TYPE_OFFSET
        and raw[EXTENSION_ACCOUNT_TYPE_OFFSET] == account_type
    )


def parse_mint(raw: bytes) -> dict:
    """Decode an SPL mint account → {decimals, supply}."""
    if raw is None or not _account_type_ok(raw, MINT_LEN, ACCOUNT_TYPE_MINT):
        size = len(raw) if raw is not None else 0
        raise MintDecodeError(f"not a mint account ({size} bytes)")
    if raw[MINT_INITIALIZED_OFFSET] != 1:
        raise MintDecodeError("mint is not initialized")
    supply = struct.unpack_from("<Q", raw, MINT_SUPPLY_OFFSET)[0]
    return {"decimals": raw[MINT_DECIMALS_OFFSET], "supply": supply}


def parse_token_account_mint(raw: bytes | None) -> str | None:
    """Mint of an SPL token account, or None if `raw` is not one."""
    if raw is None or not _account_type_ok(raw, TOKEN_ACCOUNT_LEN, ACCOUNT_TYPE_TOKEN):
        return None
    if raw[TOKEN_ACCOUNT_STATE_OFFSET] == 0:
        return None
    mint, _ = read_pubkey(raw, 0)
    return mint


class TokenResolver:
    """Resolves mints to TokenInfo through two dependent account lookups."""

    def __init__(self, rpc, cache: TokenInfoCache | None = None):
        self.rpc = rpc
        self.cache = cache

    async def resolve(self, mint: str) -> TokenInfo:
        if self.cache is not None:
            cached = self.cache.get(mint)
            if cached is not None:
                return cached

        logger.debug(f"Resolving token {mint[:8]}...")
        metadata_address = derive_metadata_address(mint)
        metadata_raw = await self.rpc.get_account_data(metadata_address)
        if metadata_raw is None:
            raise MetadataNotFound(
                f"no metadata account {metadata_address[:8]}... for {mint[:8]}..."
            )
        metadata = parse_metadata(metadata_raw)

        mint_raw = await self.rpc.get_account_data(mint)
        if mint_raw is None:
            raise MintDecodeError(f"mint account {mint[:8]}... not found")
        mint_info = parse_mint(mint_raw)

        info = TokenInfo(
            mint=mint,
            name=metadata["name"],
            symbol=metadata["symbol"],
            decimals=mint_info["decimals"],
            uri=metadata["uri"],
            update_authority=metadata["update_authority"],
            supply=mint_info["supply"],
        )
        if self.cache is not None:
            self.cache.put(info)
        logger.debug(
            f"Resolved {mint[:8]}... → {info.symbol} ({info.decimals} decimals)"
        )
        return info

    async def get_token_mints(self, accounts: list[str]) -> tuple[str | None, str | None]:
        """
        Mints held by the swap's user source / destination token accounts.

        A closed or non-token account yields None for that side (e.g. the
        temporary WSOL account of a buy is closed in the same transaction).
        """
        if len(accounts) <= SWAP_IX_USER_DESTINATION:
            raise MalformedPayload(
                f"swap instruction has {len(accounts)} accounts, "
                f"need > {SWAP_IX_USER_DESTINATION}"
            )
        source_raw = await self.rpc.get_account_data(accounts[SWAP_IX_USER_SOURCE])
        destination_raw = await self.rpc.get_account_data(
            accounts[SWAP_IX_USER_DESTINATION]
        )
        return (
            parse_token_account_mint(source_raw),
            parse_token_account_mint(destination_raw),
        )
