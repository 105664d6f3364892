"""
Market data gateway.

Cached read access to token, pool and swap records from the DEX subgraph.
Live queries are cached for ``live_ttl`` seconds and day-bucketed queries for
``historical_ttl`` seconds. Query failures propagate as ``MarketDataError``;
there is no local fallback data.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional

from ..cache import TTLCache, cache_key
from ..core.trading.models import MarketSnapshot, PoolDayData, PoolRecord, SwapRecord, TokenRecord
from ..providers.subgraph import SubgraphProvider


logger = logging.getLogger(__name__)

MIN_TOKEN_TVL_USD = 100_000
MIN_TOKEN_VOLUME_USD = 10_000
TOKEN_PAIRS_LIMIT = 100

TOKENS_QUERY = """
query Tokens($first: Int!) {
  tokens(
    first: $first
    orderBy: totalValueLockedUSD
    orderDirection: desc
    where: { volumeUSD_gt: "100000", totalValueLockedUSD_gt: "100000" }
  ) {
    id
    symbol
    name
    decimals
    volumeUSD
    totalValueLockedUSD
    derivedETH
  }
}
"""

POOL_FIELDS = """
    id
    token0 { id symbol decimals }
    token1 { id symbol decimals }
    feeTier
    totalValueLockedUSD
    volumeUSD
    token0Price
    token1Price
"""

TOP_POOLS_QUERY = (
    """
query TopPools($first: Int!) {
  pools(
    first: $first
    orderBy: totalValueLockedUSD
    orderDirection: desc
    where: { totalValueLockedUSD_gt: "0" }
  ) {"""
    + POOL_FIELDS
    + """  }
}
"""
)

TOKEN_PAIRS_QUERY = (
    """
query TokenPairs($first: Int!) {
  pools(first: $first, orderBy: totalValueLockedUSD, orderDirection: desc) {"""
    + POOL_FIELDS
    + """  }
}
"""
)

RECENT_SWAPS_QUERY = """
query RecentSwaps($first: Int!) {
  swaps(
    first: $first
    orderBy: timestamp
    orderDirection: desc
    where: { amountUSD_gt: "0" }
  ) {
    id
    timestamp
    amount0
    amount1
    amountUSD
    pool {
      token0 { id symbol }
      token1 { id symbol }
    }
  }
}
"""

POOL_METRICS_QUERY = """
query PoolMetrics($poolId: ID!, $timestamp: Int!) {
  pool(id: $poolId) {
    poolDayData(where: { date_gt: $timestamp }, orderBy: date, orderDirection: asc) {
      date
      tvlUSD
      volumeUSD
      feesUSD
      token0Price
      token1Price
      high
      low
      close
    }
  }
}
"""


class MarketDataGateway:
    """Subgraph reads behind a TTL cache."""

    def __init__(
        self,
        subgraph: SubgraphProvider,
        cache: Optional[TTLCache] = None,
        *,
        live_ttl: float = 30,
        historical_ttl: float = 300,
        clock: Callable[[], float] = time.time,
    ):
        self.subgraph = subgraph
        self.cache = cache or TTLCache(default_ttl=live_ttl)
        self.live_ttl = live_ttl
        self.historical_ttl = historical_ttl
        self._clock = clock

    @classmethod
    def from_settings(cls, settings) -> "MarketDataGateway":
        subgraph = SubgraphProvider(settings.subgraph_url, timeout_s=settings.request_timeout_seconds)
        cache = TTLCache(default_ttl=settings.market_cache_ttl_seconds, max_size=settings.max_cache_size)
        return cls(
            subgraph,
            cache,
            live_ttl=settings.market_cache_ttl_seconds,
            historical_ttl=settings.historical_cache_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_tokens(self, limit: int = 10) -> List[TokenRecord]:
        """Liquid tokens (TVL > $100k, volume > $10k) ordered by TVL."""

        async def load() -> List[TokenRecord]:
            data = await self.subgraph.query(TOKENS_QUERY, {"first": limit})
            tokens = []
            for raw in data.get("tokens") or []:
                if not (raw.get("id") and raw.get("symbol") and raw.get("decimals")):
                    continue
                token = TokenRecord.model_validate(raw)
                if (
                    token.total_value_locked_usd > MIN_TOKEN_TVL_USD
                    and token.volume_usd > MIN_TOKEN_VOLUME_USD
                ):
                    tokens.append(token)
            return tokens

        return await self.cache.get_or_load(cache_key("tokens", limit), load, ttl=self.live_ttl)

    async def get_top_pools(self, limit: int = 5) -> List[PoolRecord]:
        """Pools with positive TVL, highest TVL first."""

        async def load() -> List[PoolRecord]:
            data = await self.subgraph.query(TOP_POOLS_QUERY, {"first": limit})
            pools = [PoolRecord.model_validate(raw) for raw in data.get("pools") or []]
            return sorted(pools, key=lambda pool: pool.total_value_locked_usd, reverse=True)

        return await self.cache.get_or_load(cache_key("top_pools", limit), load, ttl=self.live_ttl)

    async def get_recent_swaps(self, limit: int = 10) -> List[SwapRecord]:
        async def load() -> List[SwapRecord]:
            data = await self.subgraph.query(RECENT_SWAPS_QUERY, {"first": limit})
            return [SwapRecord.model_validate(raw) for raw in data.get("swaps") or []]

        return await self.cache.get_or_load(cache_key("recent_swaps", limit), load, ttl=self.live_ttl)

    async def get_token_pairs(self) -> List[PoolRecord]:
        """The 100 deepest pools; the table pool lookups search."""

        async def load() -> List[PoolRecord]:
            data = await self.subgraph.query(TOKEN_PAIRS_QUERY, {"first": TOKEN_PAIRS_LIMIT})
            return [PoolRecord.model_validate(raw) for raw in data.get("pools") or []]

        return await self.cache.get_or_load(cache_key("token_pairs"), load, ttl=self.live_ttl)

    async def find_pool_by_token_pair(
        self, token_a: str, token_b: str, fee_tier: Optional[int] = None
    ) -> Optional[PoolRecord]:
        """Pool trading ``token_a`` against ``token_b`` in either order, or None.

        With ``fee_tier`` set, pools of other tiers do not match.
        """
        pair = {token_a.lower(), token_b.lower()}
        for pool in await self.get_token_pairs():
            if {pool.token0.id.lower(), pool.token1.id.lower()} != pair:
                continue
            if fee_tier is None or pool.fee_tier == fee_tier:
                return pool
        return None

    async def get_pool_metrics(self, pool_id: str, days: int = 7) -> List[PoolDayData]:
        """Daily buckets for ``pool_id`` over the last ``days`` days."""

        async def load() -> List[PoolDayData]:
            since = int(self._clock() - days * 86_400)
            data = await self.subgraph.query(
                POOL_METRICS_QUERY, {"poolId": pool_id.lower(), "timestamp": since}
            )
            pool = data.get("pool") or {}
            return [PoolDayData.model_validate(raw) for raw in pool.get("poolDayData") or []]

        return await self.cache.get_or_load(cache_key("pool_metrics", pool_id.lower(), days), load, ttl=self.historical_ttl)

    async def snapshot(self) -> MarketSnapshot:
        """Tokens, top pools and recent swaps fetched together; fails if any read fails."""
        tokens, pools, swaps = await asyncio.gather(
            self.get_tokens(),
            self.get_top_pools(5),
            self.get_recent_swaps(5),
        )
        return MarketSnapshot(tokens=tokens, pools=pools, swaps=swaps)


__all__ = ["MarketDataGateway"]
