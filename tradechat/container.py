"""Wires the trading components for one process from ``Settings``."""

import logging
from dataclasses import dataclass

from .cache import TTLCache
from .core.chain.keystore import FileKeyStore, connect_or_create
from .core.chain.session import AgentSession
from .core.chain.transfers import WalletTransfers
from .core.chat import ChatEngine
from .core.trading.approvals import ApprovalManager
from .core.trading.executor import TradeExecutor
from .core.trading.intent_parser import IntentParser
from .core.trading.swap_executor import SwapExecutor
from .core.trading.tokens import TokenResolver
from .core.trading.wrap_executor import WrapUnwrapExecutor
from .providers.llm import LLMProvider, get_llm_provider
from .services.human_query import HumanQueryService
from .services.market_data import MarketDataGateway
from .services.wallet_summary import WalletSummaryService


logger = logging.getLogger(__name__)

DEFAULT_WALLET_USER = "default"


@dataclass
class Services:
    session: AgentSession
    llm: LLMProvider
    market: MarketDataGateway
    trades: TradeExecutor
    chat: ChatEngine
    transfers: WalletTransfers
    keystore: FileKeyStore

    async def aclose(self) -> None:
        await self.llm.close()
        await self.market.subgraph.close()
        await self.session.close()


def build_services(settings) -> Services:
    """Construct every component; misconfiguration raises here."""
    session = AgentSession.from_settings(settings, private_key=settings.agent_private_key or None)
    keystore = FileKeyStore(settings.keystore_dir)
    if not session.is_connected and settings.keystore_passphrase:
        connect_or_create(session, DEFAULT_WALLET_USER, keystore, settings.keystore_passphrase)

    llm = get_llm_provider(settings)
    market = MarketDataGateway.from_settings(settings)
    tokens = TokenResolver.from_settings(session, settings, market)
    swaps = SwapExecutor.from_settings(session, tokens, ApprovalManager(session), settings)
    wraps = WrapUnwrapExecutor(session, settings.wrapped_native_address, settings.gas_buffer_percent)

    trades = TradeExecutor(
        IntentParser(llm, temperature=settings.intent_temperature, max_tokens=settings.intent_max_tokens),
        market,
        swaps,
        wraps,
        HumanQueryService(market),
        WalletSummaryService(session, market, settings.native_symbol),
        native_symbol=settings.native_symbol,
        default_slippage_bps=settings.default_slippage_bps,
        pool_swap_fallback=settings.pool_swap_fallback,
        simulated_swap_fallback=settings.simulated_swap_fallback,
        include_market_context=settings.intent_market_context,
    )
    chat = ChatEngine(
        trades,
        market,
        llm=llm,
        cache=TTLCache(default_ttl=settings.market_cache_ttl_seconds, max_size=settings.max_cache_size),
        overview_ttl=settings.market_cache_ttl_seconds,
        analysis_temperature=settings.analysis_temperature,
        analysis_max_tokens=settings.analysis_max_tokens,
    )
    logger.info(
        "Trading services ready (chain %s, provider %s, signer %s)",
        settings.chain_id,
        llm.name,
        session.address if session.is_connected else "none",
    )
    return Services(
        session=session,
        llm=llm,
        market=market,
        trades=trades,
        chat=chat,
        transfers=WalletTransfers(session),
        keystore=keystore,
    )
