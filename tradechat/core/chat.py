"""
Chat entry point.

Classifies a message by vocabulary and routes it: wallet and trade messages
go to the trade orchestrator, market questions get a cached market overview
(or an LLM-written analysis when asked for one) and everything else goes to
the orchestrator's informational path.
"""

import logging
from typing import Optional

from ..cache import TTLCache, cache_key
from ..providers.llm import LLMMessage, LLMProvider
from ..services.market_data import MarketDataGateway
from ..types import ChatAction, ChatResponse
from .trading.executor import TradeExecutor, is_trade_command, is_wallet_query
from .trading.models import MarketSnapshot


logger = logging.getLogger(__name__)

MARKET_KEYWORDS = ("market", "price", "trend", "volume", "liquidity", "stats", "overview", "analysis")

MARKET_ANALYSIS_PROMPT = """Analyze the current DeFi market conditions on this network. Focus on:
1. Overall market health and TVL
2. Most active trading pairs and their performance
3. Liquidity distribution across pools
4. Recent significant trades and their impact

Provide a concise analysis that would be useful for traders."""


def normalize_message(message: str) -> str:
    return (message or "").strip().lower()


def is_market_query(message: str) -> bool:
    return any(keyword in message for keyword in MARKET_KEYWORDS)


def format_market_overview(snapshot: MarketSnapshot) -> str:
    lines = [
        "Current Market Overview:",
        f"• Total Value Locked: ${snapshot.total_tvl_usd:,.2f}",
        "• Most Active Pools:",
    ]
    lines.extend(
        f"  - {pool.pair}: ${pool.total_value_locked_usd:,.2f}" for pool in snapshot.pools
    )
    lines.append("")
    lines.append("Recent Trading Activity:")
    lines.extend(
        f"• {swap.pool.token0.symbol} → {swap.pool.token1.symbol}: ${swap.amount_usd:,.2f}"
        for swap in snapshot.swaps
    )
    lines.append("")
    lines.append("Available Tokens: " + ", ".join(token.symbol for token in snapshot.tokens))
    return "\n".join(lines)


class ChatEngine:
    """Routes chat messages and never raises."""

    def __init__(
        self,
        trades: TradeExecutor,
        market: MarketDataGateway,
        *,
        llm: Optional[LLMProvider] = None,
        cache: Optional[TTLCache] = None,
        overview_ttl: float = 30,
        analysis_temperature: float = 0.7,
        analysis_max_tokens: int = 1000,
    ):
        self.trades = trades
        self.market = market
        self.llm = llm
        self.cache = cache or TTLCache(default_ttl=overview_ttl)
        self.overview_ttl = overview_ttl
        self.analysis_temperature = analysis_temperature
        self.analysis_max_tokens = analysis_max_tokens

    async def process_message(self, message: str) -> ChatResponse:
        normalized = normalize_message(message)
        if not normalized:
            return ChatResponse(message="Please enter a message.", type="error")

        try:
            if is_wallet_query(normalized):
                result = await self.trades.execute(message)
                return ChatResponse(
                    message=result.message,
                    type="wallet" if result.success else "error",
                    action=ChatAction(type="wallet"),
                )

            if is_trade_command(normalized):
                result = await self.trades.execute(message)
                kind = result.metadata.get("kind")
                if result.success and kind == "info":
                    return ChatResponse(message=result.message, type="info", action=ChatAction(type="query"))
                return ChatResponse(
                    message=result.message,
                    type="trade" if result.success else "error",
                    action=ChatAction(type="trade", data=result.model_dump()),
                )

            if is_market_query(normalized):
                if "analysis" in normalized and self.llm is not None:
                    reply = await self.market_analysis()
                else:
                    reply = await self.market_overview()
                return ChatResponse(message=reply, type="market", action=ChatAction(type="query"))

            result = await self.trades.execute(message)
            return ChatResponse(
                message=result.message,
                type="info" if result.success else "error",
                action=ChatAction(type="query"),
            )
        except Exception as e:
            logger.exception("Chat processing error")
            return ChatResponse(
                message=f"I encountered an error: {e}. Please try rephrasing your request.",
                type="error",
            )

    async def market_overview(self) -> str:
        async def load() -> str:
            return format_market_overview(await self.market.snapshot())

        return await self.cache.get_or_load(cache_key("market_overview"), load, ttl=self.overview_ttl)

    async def market_analysis(self) -> str:
        snapshot = await self.market.snapshot()
        response = await self.llm.generate_response(
            messages=[
                LLMMessage.system(f"Current market context:\n{snapshot.to_prompt()}"),
                LLMMessage.system(MARKET_ANALYSIS_PROMPT),
                LLMMessage.user("Provide a market update focusing on active pairs, liquidity, and recent trading activity."),
            ],
            max_tokens=self.analysis_max_tokens,
            temperature=self.analysis_temperature,
        )
        return response.content or "No analysis available right now."
