import asyncio
import logging
from decimal import Decimal
from typing import List, Optional

from ..core.chain.contracts import ERC20_ABI
from ..core.chain.session import AgentSession
from ..core.trading.models import PoolRecord, TokenRecord
from .market_data import MarketDataGateway


logger = logging.getLogger(__name__)

USD_QUOTE_SYMBOL = "USDC"


class WalletSummaryService:
    """Plain-text balance summary of the agent wallet."""

    def __init__(self, session: AgentSession, market: MarketDataGateway, native_symbol: str = "MNT"):
        self.session = session
        self.market = market
        self.native_symbol = native_symbol.upper()

    def native_usd_price(self, pools: List[PoolRecord]) -> Decimal:
        """Native coin price taken from its USDC pool (0 when there is none)."""
        native_symbols = {self.native_symbol, f"W{self.native_symbol}"}
        for pool in pools:
            symbols = (pool.token0.symbol.upper(), pool.token1.symbol.upper())
            if symbols[0] in native_symbols and symbols[1] == USD_QUOTE_SYMBOL:
                return pool.token1_price
            if symbols[1] in native_symbols and symbols[0] == USD_QUOTE_SYMBOL:
                return pool.token0_price
        return Decimal(0)

    async def _token_line(self, token: TokenRecord, native_price: Decimal) -> Optional[str]:
        contract = self.session.contract(token.address, ERC20_ABI)
        raw = await contract.functions.balanceOf(self.session.address).call()
        if raw == 0:
            return None
        balance = Decimal(raw).scaleb(-token.decimals)
        usd_value = balance * token.derived_eth * native_price
        return f"{token.symbol}: {balance:.4f} (${usd_value:,.2f})"

    async def summarize(self) -> str:
        if not self.session.is_connected:
            return "No agent wallet is currently connected."

        native_raw, tokens, pools = await asyncio.gather(
            self.session.get_balance(),
            self.market.get_tokens(),
            self.market.get_token_pairs(),
        )
        native_price = self.native_usd_price(pools)
        native_balance = Decimal(native_raw).scaleb(-18)

        lines = [
            "Agent Wallet Balance:",
            f"{self.native_symbol}: {native_balance:.4f} (${native_balance * native_price:,.2f})",
        ]
        token_lines = await asyncio.gather(*(self._token_line(token, native_price) for token in tokens))
        lines.extend(line for line in token_lines if line)
        return "\n".join(lines)
