"""
Swap execution against the V3 router.

``execute_swap`` fails fast. The pool-direct path and the simulated path are
separate calls; the orchestrator decides whether to use them.

Native input is paid as ``msg.value`` through ``multicall(exactInputSingle,
refundETH)``; native output is routed to the router and released with
``unwrapWETH9`` in the same multicall.
"""

import asyncio
import logging
import secrets
import time
from typing import Any, Callable, Dict, Optional

from web3 import Web3

from ..chain.contracts import (
    FACTORY_ABI,
    POOL_ABI,
    POOL_FEES,
    SWAP_ROUTER_ABI,
    ZERO_ADDRESS,
)
from ..chain.session import AgentSession, receipt_hash
from ..errors import AllowanceError, ContractRevertError, ValidationError
from .approvals import ApprovalManager
from .models import SwapRequest
from .price_limits import (
    bounded_sqrt_price_limit,
    default_sqrt_price_limit,
    is_zero_for_one,
    minimum_output,
)
from .tokens import TokenResolver


logger = logging.getLogger(__name__)

SWAP_FAILURE_CAUSES = (
    "Insufficient balance",
    "Price impact too high",
    "Pool liquidity constraints",
)


def no_pool_message(symbol_a: str, symbol_b: str) -> str:
    return f"There is no liquidity pool for {symbol_a}/{symbol_b}. Try a different pair."


class SwapExecutor:
    """Builds, submits and confirms single-pool exact-input swaps."""

    def __init__(
        self,
        session: AgentSession,
        tokens: TokenResolver,
        approvals: ApprovalManager,
        *,
        router_address: str,
        factory_address: str,
        fee_tier: int = POOL_FEES["MEDIUM"],
        deadline_seconds: int = 1800,
        gas_buffer_percent: int = 20,
        gas_limit: Optional[int] = None,
        max_gas_limit: int = 3_000_000,
        price_limit_policy: str = "extreme",
        mock_delay_seconds: float = 1.0,
        clock: Callable[[], float] = time.time,
    ):
        if fee_tier not in POOL_FEES.values():
            raise ValueError(f"Unsupported fee tier: {fee_tier}")
        if price_limit_policy not in ("extreme", "pool"):
            raise ValueError(f"Unknown price limit policy: {price_limit_policy}")
        self.session = session
        self.tokens = tokens
        self.approvals = approvals
        self.router_address = Web3.to_checksum_address(router_address)
        self.factory_address = Web3.to_checksum_address(factory_address)
        self.fee_tier = fee_tier
        self.deadline_seconds = deadline_seconds
        self.gas_buffer_percent = gas_buffer_percent
        self.gas_limit = gas_limit
        self.max_gas_limit = max_gas_limit
        self.price_limit_policy = price_limit_policy
        self.mock_delay_seconds = mock_delay_seconds
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        session: AgentSession,
        tokens: TokenResolver,
        approvals: ApprovalManager,
        settings,
    ) -> "SwapExecutor":
        return cls(
            session,
            tokens,
            approvals,
            router_address=settings.swap_router_address,
            factory_address=settings.factory_address,
            fee_tier=settings.pool_fee_tier,
            deadline_seconds=settings.swap_deadline_seconds,
            gas_buffer_percent=settings.gas_buffer_percent,
            gas_limit=settings.swap_gas_limit,
            max_gas_limit=settings.max_gas_limit,
            price_limit_policy=settings.price_limit_policy,
            mock_delay_seconds=settings.mock_trade_delay_seconds,
        )

    # ------------------------------------------------------------------
    # Request preparation
    # ------------------------------------------------------------------

    async def prepare_request(
        self,
        token_in: str,
        token_out: str,
        amount: str,
        slippage_bps: int,
    ) -> SwapRequest:
        """Resolve tokens and derive every on-chain swap parameter.

        Raises:
            ValidationError: unknown token, identical tokens, bad amount
        """
        resolved_in = await self.tokens.resolve(token_in)
        resolved_out = await self.tokens.resolve(token_out)
        if resolved_in.address == resolved_out.address:
            raise ValidationError(
                f"Cannot swap {resolved_in.symbol} for {resolved_out.symbol}: same token"
            )

        decimals = await self.tokens.decimals(resolved_in.address)
        amount_in = TokenResolver.to_smallest_unit(amount, decimals)

        try:
            amount_out_minimum = minimum_output(amount_in, slippage_bps)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        price_limit = await self._price_limit(resolved_in.address, resolved_out.address, slippage_bps)

        return SwapRequest(
            token_in=resolved_in.address,
            token_out=resolved_out.address,
            amount_in=amount_in,
            fee_tier=self.fee_tier,
            recipient=self.session.address.lower(),
            deadline=int(self._clock()) + self.deadline_seconds,
            amount_out_minimum=amount_out_minimum,
            sqrt_price_limit_x96=price_limit,
            amount=amount,
            slippage_bps=slippage_bps,
            token_in_symbol=resolved_in.symbol,
            token_out_symbol=resolved_out.symbol,
            wrap_input=resolved_in.is_native,
            unwrap_output=resolved_out.is_native,
        )

    async def _price_limit(self, token_in: str, token_out: str, slippage_bps: int) -> int:
        if self.price_limit_policy == "pool":
            pool = self.session.contract(await self.pool_address(token_in, token_out), POOL_ABI)
            slot0 = await pool.functions.slot0().call()
            return bounded_sqrt_price_limit(slot0[1], is_zero_for_one(token_in, token_out), slippage_bps)
        return default_sqrt_price_limit(token_in, token_out)

    async def pool_address(self, token_a: str, token_b: str) -> str:
        factory = self.session.contract(self.factory_address, FACTORY_ABI)
        address = await factory.functions.getPool(
            Web3.to_checksum_address(token_a),
            Web3.to_checksum_address(token_b),
            self.fee_tier,
        ).call()
        if int(address, 16) == int(ZERO_ADDRESS, 16):
            raise ValidationError(no_pool_message(token_a, token_b))
        return address

    # ------------------------------------------------------------------
    # Router path
    # ------------------------------------------------------------------

    def build_swap_transaction(self, request: SwapRequest) -> Dict[str, Any]:
        """Router transaction for ``request``; multicall when native legs are involved."""
        router = self.session.contract(self.router_address, SWAP_ROUTER_ABI)
        recipient = self.router_address if request.unwrap_output else Web3.to_checksum_address(request.recipient)
        params = (
            Web3.to_checksum_address(request.token_in),
            Web3.to_checksum_address(request.token_out),
            request.fee_tier,
            recipient,
            request.deadline,
            request.amount_in,
            request.amount_out_minimum,
            request.sqrt_price_limit_x96,
        )
        swap_call = router.encode_abi("exactInputSingle", args=[params])

        if not (request.wrap_input or request.unwrap_output):
            data = swap_call
        else:
            calls = [swap_call]
            if request.wrap_input:
                calls.append(router.encode_abi("refundETH", args=[]))
            if request.unwrap_output:
                calls.append(
                    router.encode_abi(
                        "unwrapWETH9",
                        args=[request.amount_out_minimum, Web3.to_checksum_address(request.recipient)],
                    )
                )
            data = router.encode_abi("multicall", args=[[Web3.to_bytes(hexstr=call) for call in calls]])

        return {
            "to": self.router_address,
            "data": data,
            "value": request.amount_in if request.wrap_input else 0,
        }

    async def _gas_for(self, tx: Dict[str, Any]) -> int:
        if self.gas_limit:
            return self.gas_limit
        estimate = await self.session.estimate_gas(tx)
        return min(estimate * (100 + self.gas_buffer_percent) // 100, self.max_gas_limit)

    async def _approve(self, token: str, spender: str, amount: int) -> None:
        try:
            await self.approvals.ensure_allowance(token, self.session.address, spender, amount)
        except ContractRevertError as exc:
            raise AllowanceError(token, spender, exc) from exc

    async def execute_swap(self, request: SwapRequest) -> str:
        """Approve if needed, submit the router swap, wait for confirmation.

        Returns:
            The transaction hash

        Raises:
            AllowanceError: the approval transaction failed
            ContractRevertError: the swap reverted (message lists likely causes)
        """
        logger.info(
            "Swapping %s %s -> %s (min out %s)",
            request.amount,
            request.token_in_symbol or request.token_in,
            request.token_out_symbol or request.token_out,
            request.amount_out_minimum,
        )
        async with self.session.trade_lock:
            if not request.wrap_input:
                await self._approve(request.token_in, self.router_address, request.amount_in)

            try:
                tx = self.build_swap_transaction(request)
                tx["gas"] = await self._gas_for(tx)
                receipt = await self.session.send_transaction(
                    tx, description=f"swap {request.amount} {request.token_in_symbol}"
                )
            except ContractRevertError as exc:
                raise exc.enriched("Swap execution failed", SWAP_FAILURE_CAUSES) from exc
        return receipt_hash(receipt)

    # ------------------------------------------------------------------
    # Fallback paths
    # ------------------------------------------------------------------

    async def execute_pool_swap(self, request: SwapRequest) -> str:
        """Swap by calling the pool contract directly."""
        if request.wrap_input or request.unwrap_output:
            raise ValidationError("Pool-direct swaps only support ERC-20 input and output")

        pool_address = Web3.to_checksum_address(await self.pool_address(request.token_in, request.token_out))
        pool = self.session.contract(pool_address, POOL_ABI)
        data = pool.encode_abi(
            "swap",
            args=[
                Web3.to_checksum_address(request.recipient),
                request.zero_for_one,
                request.amount_in,
                request.sqrt_price_limit_x96,
                b"",
            ],
        )
        async with self.session.trade_lock:
            await self._approve(request.token_in, pool_address, request.amount_in)
            try:
                tx: Dict[str, Any] = {"to": pool_address, "data": data, "value": 0}
                tx["gas"] = await self._gas_for(tx)
                receipt = await self.session.send_transaction(
                    tx, description=f"pool swap {request.amount} {request.token_in_symbol}"
                )
            except ContractRevertError as exc:
                raise exc.enriched("Pool swap failed", SWAP_FAILURE_CAUSES) from exc
        return receipt_hash(receipt)

    async def execute_mock_trade(self, request: SwapRequest) -> str:
        """Simulated swap: no chain interaction, random transaction hash."""
        logger.warning(
            "Simulating swap of %s %s; nothing is submitted on-chain",
            request.amount,
            request.token_in_symbol or request.token_in,
        )
        await asyncio.sleep(self.mock_delay_seconds)
        return "0x" + secrets.token_hex(32)


__all__ = ["SwapExecutor", "SWAP_FAILURE_CAUSES", "no_pool_message"]
