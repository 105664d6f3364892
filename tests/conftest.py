"""
Shared test doubles.

``FakeSession`` stands in for ``AgentSession``: contract reads are answered
from ``calls``, encoded calldata is the hex of the function name (so tests
can read multicall payloads back), and every submitted transaction is
recorded in ``sent``. Reads and sends yield to the event loop once so
concurrent trades interleave the way they would against a real node.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest

from tradechat.cache import TTLCache
from tradechat.config import Settings
from tradechat.core.trading.approvals import ApprovalManager
from tradechat.core.trading.executor import TradeExecutor
from tradechat.core.trading.intent_parser import IntentParser
from tradechat.core.trading.swap_executor import SwapExecutor
from tradechat.core.trading.tokens import TokenResolver
from tradechat.core.trading.wrap_executor import WrapUnwrapExecutor
from tradechat.providers.llm import LLMResponse
from tradechat.services.human_query import HumanQueryService
from tradechat.services.market_data import MarketDataGateway


AGENT = "0x1111111111111111111111111111111111111111"
SETTINGS = Settings(_env_file=None)
WMNT = SETTINGS.wrapped_native_address.lower()
USDC = SETTINGS.token_addresses["USDC"].lower()
DAI = SETTINGS.token_addresses["DAI"].lower()
ROUTER = SETTINGS.swap_router_address.lower()
FACTORY = SETTINGS.factory_address.lower()


def function_name(data: Any) -> str:
    """Function name encoded by ``FakeContract.encode_abi``."""
    if isinstance(data, (bytes, bytearray)):
        return bytes(data).decode()
    return bytes.fromhex(data[2:]).decode()


class FakeCall:
    def __init__(self, result: Any):
        self._result = result

    async def call(self) -> Any:
        await asyncio.sleep(0)
        if isinstance(self._result, Exception):
            raise self._result
        return self._result


class FakeFunctions:
    def __init__(self, contract: "FakeContract"):
        self._contract = contract

    def __getattr__(self, name: str) -> Callable[..., FakeCall]:
        def build(*args: Any) -> FakeCall:
            session = self._contract.session
            session.reads.append((self._contract.address.lower(), name, args))
            handler = session.calls.get((self._contract.address.lower(), name))
            if handler is None:
                raise AssertionError(f"unexpected call {name} on {self._contract.address}")
            return FakeCall(handler(*args) if callable(handler) else handler)

        return build


class FakeContract:
    def __init__(self, session: "FakeSession", address: str):
        self.session = session
        self.address = address
        self.functions = FakeFunctions(self)

    def encode_abi(self, fn_name: str, args: Optional[List[Any]] = None) -> str:
        self.session.encoded.append((self.address.lower(), fn_name, list(args or [])))
        return "0x" + fn_name.encode().hex()


class FakeSession:
    def __init__(self, address: str = AGENT):
        self.address = address
        self.is_connected = True
        self.trade_lock = asyncio.Lock()
        self.calls: Dict[Tuple[str, str], Any] = {}
        self.reads: List[Tuple[str, str, tuple]] = []
        self.encoded: List[Tuple[str, str, List[Any]]] = []
        self.sent: List[Tuple[Dict[str, Any], str]] = []
        self.estimates: List[Dict[str, Any]] = []
        self.fail_estimate: Dict[str, Exception] = {}
        self.fail_on: Dict[str, Exception] = {}
        self.on_send: List[Callable[[Dict[str, Any]], None]] = []
        self.gas_estimate = 100_000
        self.balance = 10 ** 20
        self.price = 10 ** 9

    def contract(self, address: str, abi: Any) -> FakeContract:
        return FakeContract(self, address)

    def encoded_calls(self, fn_name: str) -> List[List[Any]]:
        return [args for _, name, args in self.encoded if name == fn_name]

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        self.estimates.append(dict(tx))
        name = function_name(tx["data"]) if tx.get("data") else ""
        if name in self.fail_estimate:
            raise self.fail_estimate[name]
        return self.gas_estimate

    async def send_transaction(self, tx: Dict[str, Any], description: str = "transaction") -> Dict[str, Any]:
        await asyncio.sleep(0)
        self.sent.append((dict(tx), description))
        for prefix, error in self.fail_on.items():
            if description.startswith(prefix):
                raise error
        for hook in self.on_send:
            hook(tx)
        return {"status": 1, "transactionHash": bytes([len(self.sent)]) * 32, "blockNumber": 1}

    async def get_balance(self, address: Optional[str] = None) -> int:
        return self.balance

    async def gas_price(self) -> int:
        return self.price


def pool_json(pool_id: str, token0: Tuple[str, str], token1: Tuple[str, str], tvl: str, token0_price: str = "1", token1_price: str = "1", fee_tier: int = 3000) -> Dict[str, Any]:
    return {
        "id": pool_id,
        "token0": {"id": token0[0], "symbol": token0[1], "decimals": "18"},
        "token1": {"id": token1[0], "symbol": token1[1], "decimals": "18"},
        "feeTier": str(fee_tier),
        "totalValueLockedUSD": tvl,
        "volumeUSD": "50000",
        "token0Price": token0_price,
        "token1Price": token1_price,
    }


# Only a USDC/WMNT pool exists (WMNT sorts first by address)
DEFAULT_POOLS = [
    pool_json("0xpool1", (WMNT, "WMNT"), (USDC, "USDC"), "250000", "2.5", "0.4"),
]


@pytest.fixture
def session() -> FakeSession:
    fake = FakeSession()
    fake.calls[(USDC, "decimals")] = 6
    fake.calls[(DAI, "decimals")] = 18
    fake.calls[(WMNT, "decimals")] = 18
    fake.calls[(USDC, "allowance")] = 10 ** 30
    fake.calls[(DAI, "allowance")] = 10 ** 30
    return fake


@pytest.fixture
def subgraph() -> MagicMock:
    provider = MagicMock()

    async def query(document: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if "TokenPairs" in document or "TopPools" in document:
            return {"pools": DEFAULT_POOLS}
        if "Tokens" in document:
            return {"tokens": []}
        if "RecentSwaps" in document:
            return {"swaps": []}
        return {}

    provider.query = AsyncMock(side_effect=query)
    return provider


@pytest.fixture
def market(subgraph: MagicMock) -> MarketDataGateway:
    return MarketDataGateway(subgraph, TTLCache(default_ttl=30))


@pytest.fixture
def tokens(session: FakeSession) -> TokenResolver:
    return TokenResolver.from_settings(session, SETTINGS)


@pytest.fixture
def swaps(session: FakeSession, tokens: TokenResolver) -> SwapExecutor:
    return SwapExecutor(
        session,
        tokens,
        ApprovalManager(session),
        router_address=ROUTER,
        factory_address=FACTORY,
        mock_delay_seconds=0,
        clock=lambda: 1_700_000_000,
    )


@pytest.fixture
def wraps(session: FakeSession) -> WrapUnwrapExecutor:
    return WrapUnwrapExecutor(session, WMNT, gas_buffer_percent=20)


@pytest.fixture
def llm() -> MagicMock:
    provider = MagicMock()
    provider.generate_response = AsyncMock(return_value=LLMResponse(content='{"type":"none"}'))
    return provider


def reply_with(llm: MagicMock, content: str) -> None:
    llm.generate_response = AsyncMock(return_value=LLMResponse(content=content))


@pytest.fixture
def wallet_summary() -> MagicMock:
    summary = MagicMock()
    summary.summarize = AsyncMock(return_value="Agent Wallet Balance:\nMNT: 1.0000 ($0.40)")
    return summary


@pytest.fixture
def make_executor(llm, market, swaps, wraps, wallet_summary):
    def build(**options: Any) -> TradeExecutor:
        return TradeExecutor(
            IntentParser(llm),
            market,
            swaps,
            wraps,
            HumanQueryService(market),
            wallet_summary,
            **options,
        )

    return build
