import logging

from ..core.errors import NetworkError
from .market_data import MarketDataGateway


logger = logging.getLogger(__name__)

HELP_MESSAGE = (
    "I can help you with information about top pools, recent trades, or token listings. "
    "Try asking about those!"
)
UNAVAILABLE_MESSAGE = "Sorry, I couldn't fetch that information right now. Please try again later."


class HumanQueryService:
    """Answers informational questions from subgraph data."""

    def __init__(self, market: MarketDataGateway):
        self.market = market

    async def answer(self, message: str) -> str:
        text = message.lower()
        try:
            if "top" in text and ("mover" in text or "pool" in text):
                return await self._top_pools()
            if "recent" in text and ("trade" in text or "swap" in text):
                return await self._recent_swaps()
            if "token" in text and "list" in text:
                return await self._token_list()
        except NetworkError as e:
            logger.warning("Market data unavailable for query %r: %s", message, e)
            return UNAVAILABLE_MESSAGE
        return HELP_MESSAGE

    async def _top_pools(self) -> str:
        pools = await self.market.get_top_pools(5)
        ranked = sorted(pools, key=lambda pool: pool.total_value_locked_usd, reverse=True)
        lines = [
            f"{index}. {pool.pair} - ${pool.total_value_locked_usd:,.2f}"
            for index, pool in enumerate(ranked, start=1)
        ]
        return "Here are the top pools by TVL:\n" + "\n".join(lines)

    async def _recent_swaps(self) -> str:
        swaps = await self.market.get_recent_swaps(5)
        lines = [
            f"• {swap.pool.token0.symbol}/{swap.pool.token1.symbol} - ${swap.amount_usd:,.2f}"
            for swap in swaps
        ]
        return "Recent swaps:\n" + "\n".join(lines)

    async def _token_list(self) -> str:
        tokens = await self.market.get_tokens()
        lines = [f"• {token.symbol} - TVL: ${token.total_value_locked_usd:,.2f}" for token in tokens]
        return "Available tokens:\n" + "\n".join(lines)
