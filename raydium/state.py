"""
In-memory TokenInfo cache with TTL eviction.

Optional: a resolver without a cache re-fetches every mint per event.
The cache is owned by one resolver on the single event task, so it is
never shared across concurrent pipelines.
"""
import logging
import time
from collections import OrderedDict

from raydium.models import TokenInfo

logger = logging.getLogger("ray_state")


class TokenInfoCache:
    """Bounded mint -> TokenInfo cache. Oldest entry is evicted first."""

    def __init__(self, max_age: float = 300, max_size: int = 512):
        self.entries: OrderedDict[str, tuple[float, TokenInfo]] = OrderedDict()
        self.max_age = max_age
        self.max_size = max_size
        self.hits: int = 0
        self.misses: int = 0

    def get(self, mint: str) -> TokenInfo | None:
        entry = self.entries.get(mint)
        if entry is None:
            self.misses += 1
            return None
        stored_at, info = entry
        if time.time() - stored_at > self.max_age:
            del self.entries[mint]
            self.misses += 1
            return None
        self.hits += 1
        return info

    def put(self, info: TokenInfo) -> None:
        self.entries.pop(info.mint, None)
        self.entries[info.mint] = (time.time(), info)
        if len(self.entries) > self.max_size:
            self.evict_stale()
        while len(self.entries) > self.max_size:
            evicted, _ = self.entries.popitem(last=False)
            logger.debug(f"Evicted {evicted[:8]}... from token cache")

    def evict_stale(self):
        """Remove entries older than max_age."""
        now = time.time()
        stale = [
            mint for mint, (stored_at, _) in self.entries.items()
            if now - stored_at > self.max_age
        ]
        for mint in stale:
            del self.entries[mint]
        if stale:
            logger.debug(f"Evicted {len(stale)} stale token entries")

    @property
    def size(self) -> int:
        return len(self.entries)

    def stats(self) -> str:
        return f"size={self.size} hits={self.hits} misses={self.misses}"
