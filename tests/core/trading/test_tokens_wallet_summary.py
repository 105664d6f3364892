"""Token resolution and the agent wallet balance summary."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from tradechat.core.errors import ValidationError
from tradechat.core.trading.models import PoolRecord, TokenRecord
from tradechat.core.trading.tokens import TokenResolver
from tradechat.services.wallet_summary import WalletSummaryService

from conftest import SETTINGS, USDC, WMNT, pool_json


MOON = "0x4444444444444444444444444444444444444444"


def moon_token(**overrides) -> TokenRecord:
    raw = {
        "id": MOON,
        "symbol": "MOON",
        "decimals": 18,
        "volumeUSD": "50000",
        "totalValueLockedUSD": "500000",
        "derivedETH": "2",
    }
    raw.update(overrides)
    return TokenRecord.model_validate(raw)


@pytest.mark.asyncio
async def test_resolution_order(session):
    market = MagicMock()
    market.get_tokens = AsyncMock(return_value=[moon_token()])
    resolver = TokenResolver.from_settings(session, SETTINGS, market)

    native = await resolver.resolve("mnt")
    registry = await resolver.resolve("usdc")
    discovered = await resolver.resolve("moon")
    raw = await resolver.resolve(USDC.upper().replace("0X", "0x"))

    assert native.address == WMNT and native.is_native is True
    assert registry.address == USDC and registry.is_native is False
    assert discovered.address == MOON
    assert raw.address == USDC and raw.symbol == "USDC"


@pytest.mark.asyncio
async def test_unknown_and_invalid_tokens(tokens):
    with pytest.raises(ValidationError, match="Unknown token"):
        await tokens.resolve("DOGE")
    with pytest.raises(ValidationError):
        await tokens.resolve("0x1234")
    with pytest.raises(ValidationError):
        await tokens.resolve("  ")


@pytest.mark.asyncio
async def test_decimals_read_once(session, tokens):
    assert await tokens.decimals(USDC) == 6
    assert await tokens.decimals(USDC.upper().replace("0X", "0x")) == 6

    assert [name for _, name, _ in session.reads].count("decimals") == 1


def test_to_smallest_unit():
    assert TokenResolver.to_smallest_unit("1.5", 6) == 1_500_000
    assert TokenResolver.to_smallest_unit("0.000001", 6) == 1
    with pytest.raises(ValidationError):
        TokenResolver.to_smallest_unit("0.0000001", 6)
    with pytest.raises(ValidationError):
        TokenResolver.to_smallest_unit("abc", 6)
    with pytest.raises(ValidationError):
        TokenResolver.to_smallest_unit("0", 6)


def test_native_price_from_usdc_pool(session):
    service = WalletSummaryService(session, MagicMock(), "MNT")
    pools = [PoolRecord.model_validate(pool_json("0xpool1", (WMNT, "WMNT"), (USDC, "USDC"), "1000", "2.5", "0.4"))]

    assert service.native_usd_price(pools) == Decimal("0.4")
    assert service.native_usd_price([]) == Decimal(0)


@pytest.mark.asyncio
async def test_summary_lists_non_zero_balances(session):
    session.balance = 2 * 10 ** 18
    session.calls[(MOON, "balanceOf")] = 3 * 10 ** 18
    session.calls[(USDC, "balanceOf")] = 0
    market = MagicMock()
    market.get_tokens = AsyncMock(
        return_value=[moon_token(), moon_token(id=USDC, symbol="USDC", decimals=6)]
    )
    market.get_token_pairs = AsyncMock(
        return_value=[PoolRecord.model_validate(pool_json("0xp", (WMNT, "WMNT"), (USDC, "USDC"), "1", "2.5", "0.4"))]
    )

    summary = await WalletSummaryService(session, market, "MNT").summarize()

    assert summary.splitlines() == [
        "Agent Wallet Balance:",
        "MNT: 2.0000 ($0.80)",
        "MOON: 3.0000 ($2.40)",
    ]


@pytest.mark.asyncio
async def test_summary_without_wallet(session):
    session.is_connected = False

    summary = await WalletSummaryService(session, MagicMock(), "MNT").summarize()

    assert summary == "No agent wallet is currently connected."
