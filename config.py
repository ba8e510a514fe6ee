"""
Configuration loader — reads .env and exposes all settings.
"""
import os
from dotenv import load_dotenv

load_dotenv()


# ── Solana RPC ─────────────────────────────────────────────────
# Helius recommended (free tier: 100k credits/day). Public endpoint is unreliable.
SOL_RPC_WSS = os.getenv("SOL_RPC_WSS", "wss://api.mainnet-beta.solana.com")
SOL_RPC_HTTP = os.getenv("SOL_RPC_HTTP", "https://api.mainnet-beta.solana.com")
RPC_COMMITMENT = os.getenv("RPC_COMMITMENT", "confirmed")
RPC_MIN_INTERVAL_S = float(os.getenv("RPC_MIN_INTERVAL_S", "0.1"))
RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "30"))

# ── Target program ─────────────────────────────────────────────
RAYDIUM_PROGRAM_ID = os.getenv(
    "RAYDIUM_PROGRAM_ID", "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8"
)
# Log line that marks a pool creation
POOL_INIT_MARKER = os.getenv("POOL_INIT_MARKER", "initialize2")

# ── Token cache ────────────────────────────────────────────────
# 0 disables caching: every event resolves its mints again.
TOKEN_CACHE_TTL_S = float(os.getenv("TOKEN_CACHE_TTL_S", "0"))
TOKEN_CACHE_MAX = int(os.getenv("TOKEN_CACHE_MAX", "512"))

# ── Logging ────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
