"""Chat routing tests with the orchestrator and market gateway mocked."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from tradechat.core.chat import ChatEngine, format_market_overview
from tradechat.core.errors import MarketDataError
from tradechat.core.trading.models import MarketSnapshot, PoolRecord, TradeResult
from tradechat.providers.llm import LLMResponse

from conftest import USDC, WMNT, pool_json


@pytest.fixture
def trades():
    executor = MagicMock()
    executor.execute = AsyncMock(return_value=TradeResult(success=True, message="ok", metadata={"kind": "swap"}))
    return executor


@pytest.fixture
def chat_market():
    market = MagicMock()
    pool = PoolRecord.model_validate(pool_json("0xpool1", (WMNT, "WMNT"), (USDC, "USDC"), "2500"))
    market.snapshot = AsyncMock(return_value=MarketSnapshot(pools=[pool]))
    return market


@pytest.mark.asyncio
async def test_empty_message(trades, chat_market):
    response = await ChatEngine(trades, chat_market).process_message("   ")

    assert response.type == "error"
    trades.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_trade_message_returns_trade_action(trades, chat_market):
    response = await ChatEngine(trades, chat_market).process_message("Swap 1 USDC for DAI")

    assert response.type == "trade"
    assert response.action.type == "trade"
    assert response.action.data["success"] is True
    trades.execute.assert_awaited_once_with("Swap 1 USDC for DAI")


@pytest.mark.asyncio
async def test_failed_trade_is_error(trades, chat_market):
    trades.execute = AsyncMock(return_value=TradeResult(success=False, message="Trade failed: nope"))

    response = await ChatEngine(trades, chat_market).process_message("sell 1 USDC")

    assert response.type == "error"
    assert response.message == "Trade failed: nope"


@pytest.mark.asyncio
async def test_wallet_message(trades, chat_market):
    response = await ChatEngine(trades, chat_market).process_message("what's in my wallet")

    assert response.type == "wallet"
    assert response.action.type == "wallet"


@pytest.mark.asyncio
async def test_market_overview_is_cached(trades, chat_market):
    engine = ChatEngine(trades, chat_market)

    first = await engine.process_message("market overview")
    second = await engine.process_message("show me the market")

    assert first.type == "market"
    assert first.message == second.message
    assert "Total Value Locked: $2,500.00" in first.message
    chat_market.snapshot.assert_awaited_once()
    trades.execute.assert_not_awaited()


@pytest.mark.asyncio
async def test_market_analysis_uses_llm(trades, chat_market):
    llm = MagicMock()
    llm.generate_response = AsyncMock(return_value=LLMResponse(content="Liquidity is concentrated in WMNT/USDC."))
    engine = ChatEngine(trades, chat_market, llm=llm, analysis_temperature=0.7, analysis_max_tokens=1000)

    response = await engine.process_message("give me a market analysis")

    assert response.message == "Liquidity is concentrated in WMNT/USDC."
    kwargs = llm.generate_response.await_args.kwargs
    assert kwargs["temperature"] == 0.7
    assert kwargs["max_tokens"] == 1000


@pytest.mark.asyncio
async def test_other_messages_go_to_query_path(trades, chat_market):
    trades.execute = AsyncMock(return_value=TradeResult(success=True, message="help", metadata={"kind": "info"}))

    response = await ChatEngine(trades, chat_market).process_message("hello there")

    assert response.type == "info"
    assert response.action.type == "query"


@pytest.mark.asyncio
async def test_errors_become_error_responses(trades, chat_market):
    chat_market.snapshot = AsyncMock(side_effect=MarketDataError("Subgraph returned 500: oops"))

    response = await ChatEngine(trades, chat_market).process_message("market stats")

    assert response.type == "error"
    assert "Subgraph returned 500" in response.message


def test_overview_format():
    text = format_market_overview(MarketSnapshot())

    assert text.startswith("Current Market Overview:")
    assert "Total Value Locked: $0.00" in text
