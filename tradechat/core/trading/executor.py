"""
Trade Orchestrator

Routes one user message to the wallet summary, the informational query
service, the wrap/unwrap executor or the swap executor, and normalizes the
outcome into a ``TradeResult``. ``execute`` never raises.

There are no automatic retries. The only follow-up attempts are the opt-in
swap fallbacks (pool-direct, then simulated) after a router revert.
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Set, Tuple

from ..errors import ContractRevertError, TradeError, ValidationError
from .intent_parser import IntentParser
from .models import (
    BuyIntent,
    NoTradeIntent,
    SellIntent,
    SwapRequest,
    TradeResult,
    TradeState,
    UnwrapIntent,
    WrapIntent,
)
from .swap_executor import SwapExecutor, no_pool_message
from .wrap_executor import WrapUnwrapExecutor


logger = logging.getLogger(__name__)

WALLET_KEYWORDS = ("balance", "wallet", "holdings", "portfolio", "funds", "assets")
TRADE_KEYWORDS = ("swap", "buy", "sell", "wrap", "unwrap")


def is_wallet_query(message: str) -> bool:
    text = message.lower()
    return any(keyword in text for keyword in WALLET_KEYWORDS)


def is_trade_command(message: str) -> bool:
    text = message.lower()
    return any(keyword in text for keyword in TRADE_KEYWORDS)


class HumanQueryAnswerer(Protocol):
    async def answer(self, message: str) -> str:
        ...


class WalletSummarizer(Protocol):
    async def summarize(self) -> str:
        ...


class InvalidTransitionError(RuntimeError):
    pass


class TradeRun:
    """State of one ``execute`` call."""

    TRANSITIONS: Dict[TradeState, Set[TradeState]] = {
        TradeState.IDLE: {
            TradeState.PARSING,
            TradeState.WALLET_QUERY,
            TradeState.INFO_QUERY,
            TradeState.FAILED,
        },
        TradeState.PARSING: {
            TradeState.INFO_QUERY,
            TradeState.WRAPPING,
            TradeState.UNWRAPPING,
            TradeState.SWAPPING,
            TradeState.FAILED,  # Missing fields or completion service error
        },
        TradeState.WALLET_QUERY: {TradeState.SUCCEEDED, TradeState.FAILED},
        TradeState.INFO_QUERY: {TradeState.SUCCEEDED, TradeState.FAILED},
        TradeState.WRAPPING: {TradeState.SUCCEEDED, TradeState.FAILED},
        TradeState.UNWRAPPING: {TradeState.SUCCEEDED, TradeState.FAILED},
        TradeState.SWAPPING: {TradeState.SUCCEEDED, TradeState.FAILED},
        TradeState.SUCCEEDED: set(),
        TradeState.FAILED: set(),
    }

    def __init__(self) -> None:
        self.state = TradeState.IDLE
        self.history: List[TradeState] = [TradeState.IDLE]

    def transition(self, new_state: TradeState) -> None:
        if new_state not in self.TRANSITIONS[self.state]:
            raise InvalidTransitionError(f"Cannot transition from {self.state.value} to {new_state.value}")
        logger.debug("Trade state %s -> %s", self.state.value, new_state.value)
        self.state = new_state
        self.history.append(new_state)


class TradeExecutor:
    """Turns a chat message into at most one trade and reports the outcome."""

    def __init__(
        self,
        parser: IntentParser,
        market,
        swaps: SwapExecutor,
        wraps: WrapUnwrapExecutor,
        human_query: HumanQueryAnswerer,
        wallet_summary: WalletSummarizer,
        *,
        native_symbol: str = "MNT",
        default_slippage_bps: int = 50,
        pool_swap_fallback: bool = False,
        simulated_swap_fallback: bool = False,
        include_market_context: bool = False,
    ):
        self.parser = parser
        self.market = market
        self.swaps = swaps
        self.wraps = wraps
        self.human_query = human_query
        self.wallet_summary = wallet_summary
        self.native_symbol = native_symbol
        self.default_slippage_bps = default_slippage_bps
        self.pool_swap_fallback = pool_swap_fallback
        self.simulated_swap_fallback = simulated_swap_fallback
        self.include_market_context = include_market_context

    async def execute(self, user_message: str) -> TradeResult:
        run = TradeRun()
        try:
            result = await self._dispatch(user_message, run)
        except TradeError as exc:
            logger.warning("Trade failed in %s: %s", run.state.value, exc.message)
            result = TradeResult(
                success=False,
                message=f"Trade failed: {exc.message}",
                error_details=exc.to_dict(),
            )
        except Exception as exc:
            logger.exception("Unexpected error in %s", run.state.value)
            result = TradeResult(
                success=False,
                message=f"Trade failed: {exc}",
                error_details={"category": "unexpected", "type": type(exc).__name__, "message": str(exc)},
            )

        final = TradeState.SUCCEEDED if result.success else TradeState.FAILED
        if final in TradeRun.TRANSITIONS[run.state]:
            run.transition(final)
        return result

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def _dispatch(self, user_message: str, run: TradeRun) -> TradeResult:
        if is_wallet_query(user_message):
            run.transition(TradeState.WALLET_QUERY)
            summary = await self.wallet_summary.summarize()
            return TradeResult(success=True, message=summary, metadata={"kind": "wallet"})

        if not is_trade_command(user_message):
            return await self._info(user_message, run)

        run.transition(TradeState.PARSING)
        market_context = await self.market.snapshot() if self.include_market_context else None
        intent = await self.parser.parse(user_message, market_context)

        if isinstance(intent, NoTradeIntent):
            return await self._info(user_message, run)
        if isinstance(intent, WrapIntent):
            return await self._wrap(intent, run)
        if isinstance(intent, UnwrapIntent):
            return await self._unwrap(intent, run)
        if isinstance(intent, (BuyIntent, SellIntent)):
            return await self._swap(intent, run)
        raise ValidationError(f"Unsupported intent: {intent!r}")

    async def _info(self, user_message: str, run: TradeRun) -> TradeResult:
        run.transition(TradeState.INFO_QUERY)
        answer = await self.human_query.answer(user_message)
        return TradeResult(success=True, message=answer, metadata={"kind": "info"})

    async def _wrap(self, intent: WrapIntent, run: TradeRun) -> TradeResult:
        if intent.amount is None:
            run.transition(TradeState.FAILED)
            return TradeResult(success=False, message="Trade failed: amount not specified")
        run.transition(TradeState.WRAPPING)
        tx_hash = await self.wraps.wrap(intent.amount)
        return TradeResult(
            success=True,
            message=f"Successfully wrapped {intent.amount} {self.native_symbol} to W{self.native_symbol}!",
            transaction_hash=tx_hash,
            metadata={"kind": "wrap", "amount": intent.amount},
        )

    async def _unwrap(self, intent: UnwrapIntent, run: TradeRun) -> TradeResult:
        if intent.amount is None:
            run.transition(TradeState.FAILED)
            return TradeResult(success=False, message="Trade failed: amount not specified")
        run.transition(TradeState.UNWRAPPING)
        tx_hash = await self.wraps.unwrap(intent.amount)
        return TradeResult(
            success=True,
            message=f"Successfully unwrapped {intent.amount} W{self.native_symbol} to {self.native_symbol}!",
            transaction_hash=tx_hash,
            metadata={"kind": "unwrap", "amount": intent.amount},
        )

    async def _swap(self, intent, run: TradeRun) -> TradeResult:
        run.transition(TradeState.SWAPPING)
        token_in = await self.swaps.tokens.resolve(intent.token_in)
        token_out = await self.swaps.tokens.resolve(intent.token_out)

        pool = await self.market.find_pool_by_token_pair(
            token_in.address, token_out.address, fee_tier=self.swaps.fee_tier
        )
        if pool is None:
            raise ValidationError(
                no_pool_message(token_in.symbol, token_out.symbol),
                details={"token_in": token_in.address, "token_out": token_out.address},
            )

        slippage_bps = intent.slippage_bps if intent.slippage_bps is not None else self.default_slippage_bps
        request = await self.swaps.prepare_request(intent.token_in, intent.token_out, intent.amount, slippage_bps)

        tx_hash, simulated, cause = await self._submit_swap(request)

        metadata: Dict[str, Any] = {
            "kind": intent.kind,
            "token_in": request.token_in_symbol,
            "token_out": request.token_out_symbol,
            "token_in_address": request.token_in,
            "token_out_address": request.token_out,
            "amount": request.amount,
            "amount_in": str(request.amount_in),
            "amount_out_minimum": str(request.amount_out_minimum),
            "slippage_bps": request.slippage_bps,
            "fee_tier": request.fee_tier,
            "pool_id": pool.id,
            "pool_price": str(pool.price_for(request.token_in)),
        }

        if simulated:
            return TradeResult(
                success=True,
                message=(
                    f"Simulated swap of {request.amount} {request.token_in_symbol} for "
                    f"{request.token_out_symbol}. No transaction was submitted on-chain "
                    f"because the real swap failed: {cause}"
                ),
                transaction_hash=tx_hash,
                metadata=metadata,
                simulated=True,
            )

        return TradeResult(
            success=True,
            message=(
                f"Successfully swapped {request.amount} {request.token_in_symbol} "
                f"for {request.token_out_symbol}!"
            ),
            transaction_hash=tx_hash,
            metadata=metadata,
        )

    async def _submit_swap(self, request: SwapRequest) -> Tuple[str, bool, Optional[str]]:
        """Router swap, then the enabled fallbacks. Returns (hash, simulated, cause)."""
        try:
            return await self.swaps.execute_swap(request), False, None
        except ContractRevertError as exc:
            failure: TradeError = exc
            logger.warning("Router swap reverted: %s", exc.reason or exc.message)

        if self.pool_swap_fallback:
            try:
                return await self.swaps.execute_pool_swap(request), False, None
            except (ContractRevertError, ValidationError) as exc:
                logger.warning("Pool-direct swap failed: %s", exc.message)
                failure = exc

        if not self.simulated_swap_fallback:
            raise failure

        cause = failure.details.get("reason") or failure.message.splitlines()[0]
        return await self.swaps.execute_mock_trade(request), True, cause


__all__ = [
    "TradeExecutor",
    "TradeRun",
    "InvalidTransitionError",
    "is_trade_command",
    "is_wallet_query",
    "WALLET_KEYWORDS",
    "TRADE_KEYWORDS",
]
