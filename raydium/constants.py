"""
Solana program IDs, instruction discriminators and account layouts
used by the Raydium AMM V4 monitor.
"""

# ═══════════════════════════════════════════════════════════════
#  SOLANA TOKEN ADDRESSES
# ═══════════════════════════════════════════════════════════════

# Wrapped SOL (SPL token)
WSOL = "So11111111111111111111111111111111111111112"
NATIVE_SYMBOL = "SOL"
NATIVE_DECIMALS = 9  # lamports per SOL = 10^9

# SPL Token Programs
TOKEN_PROGRAM = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

# Metaplex Token Metadata program (owner of the metadata PDAs)
METADATA_PROGRAM = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
METADATA_SEED = b"metadata"

# ═══════════════════════════════════════════════════════════════
#  DEX PROGRAM IDS
# ═══════════════════════════════════════════════════════════════

# Raydium Liquidity Pool V4
RAYDIUM_AMM_V4 = "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"

# Log line emitted by the AMM when a pool is created
POOL_INIT_MARKER = "initialize2"

# ═══════════════════════════════════════════════════════════════
#  INSTRUCTION DISCRIMINATORS (first byte of instruction data)
# ═══════════════════════════════════════════════════════════════

IX_INITIALIZE2 = 1
IX_SWAP_BASE_IN = 9

# ═══════════════════════════════════════════════════════════════
#  RAYDIUM INITIALIZE2 — INSTRUCTION ACCOUNT INDICES
#
#  Indices into the accounts array of the AMM instruction.
# ═══════════════════════════════════════════════════════════════

RAYDIUM_IX_AMM = 4          # Pool / AMM address
RAYDIUM_IX_COIN_MINT = 8    # Token mint (the new token)
RAYDIUM_IX_PC_MINT = 9      # Quote mint (usually WSOL)
RAYDIUM_IX_USER_WALLET = 17 # Deployer wallet (last account)

# ═══════════════════════════════════════════════════════════════
#  RAYDIUM SWAP — INSTRUCTION ACCOUNT INDICES
# ═══════════════════════════════════════════════════════════════

SWAP_IX_USER_SOURCE = 15       # user token account debited
SWAP_IX_USER_DESTINATION = 16  # user token account credited
SWAP_IX_USER_OWNER = 17        # signer

# Inner instruction carrying the settled output amount
SWAP_SETTLEMENT_INNER_INDEX = 1

# ═══════════════════════════════════════════════════════════════
#  SPL ACCOUNT LAYOUTS
#
#  Mint (82 bytes):
#    0-35    : mint_authority (COption<Pubkey>)
#    36-43   : supply (u64)
#    44      : decimals (u8)
#    45      : is_initialized (bool)
#    46-81   : freeze_authority (COption<Pubkey>)
#
#  Token account (165 bytes):
#    0-31    : mint (Pubkey)
#    32-63   : owner (Pubkey)
#    64-71   : amount (u64)
#    108     : state (u8, 0 = uninitialized)
#
#  Token-2022 accounts with extensions are longer; byte 165 then
#  holds the account type (1 = mint, 2 = token account).
# ═══════════════════════════════════════════════════════════════

MINT_LEN = 82
MINT_SUPPLY_OFFSET = 36
MINT_DECIMALS_OFFSET = 44
MINT_INITIALIZED_OFFSET = 45

TOKEN_ACCOUNT_LEN = 165
TOKEN_ACCOUNT_STATE_OFFSET = 108

EXTENSION_ACCOUNT_TYPE_OFFSET = 165
ACCOUNT_TYPE_MINT = 1
ACCOUNT_TYPE_TOKEN = 2

# ═══════════════════════════════════════════════════════════════
#  METAPLEX METADATA V1 LAYOUT
#
#    0       : key (u8) = 4 for MetadataV1
#    1-32    : update_authority (Pubkey)
#    33-64   : mint (Pubkey)
#    65..    : name (u32 len + bytes, padded to 32 with \0)
#              symbol (u32 len + bytes, padded to 10)
#              uri (u32 len + bytes, padded to 200)
#              seller_fee_basis_points (u16)
# ═══════════════════════════════════════════════════════════════

METADATA_KEY_V1 = 4
METADATA_NAME_OFFSET = 65

PUBKEY_LEN = 32
