"""
Trade pipeline data model.

``TradeIntent`` is a tagged union with one variant per intent kind, validated
at the parse boundary. ``SwapRequest`` is the address-resolved form handed to
the swap executor and ``TradeResult`` is what reaches the conversation.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


# =============================================================================
# Intents
# =============================================================================


def _positive_amount(value: Any) -> str:
    if isinstance(value, bool):
        raise ValueError("amount must be a decimal string")
    text = str(value).strip()
    try:
        amount = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"amount is not a number: {value!r}") from exc
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"amount must be positive: {value!r}")
    return text


class _Intent(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class NoTradeIntent(_Intent):
    """Message carries no executable trade."""

    kind: Literal["none"] = "none"


class _WrapBase(_Intent):
    # Optional so the orchestrator can answer "amount not specified"
    amount: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> Optional[str]:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return _positive_amount(value)


class WrapIntent(_WrapBase):
    kind: Literal["wrap"] = "wrap"


class UnwrapIntent(_WrapBase):
    kind: Literal["unwrap"] = "unwrap"


class _SwapBase(_Intent):
    token_in: str = Field(alias="tokenIn", min_length=1)
    token_out: str = Field(alias="tokenOut", min_length=1)
    amount: str
    slippage_bps: Optional[int] = Field(default=None, alias="slippageToleranceBps", ge=0, le=10_000)

    @field_validator("token_in", "token_out", mode="before")
    @classmethod
    def _strip_token(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("amount", mode="before")
    @classmethod
    def _check_amount(cls, value: Any) -> str:
        return _positive_amount(value)


class BuyIntent(_SwapBase):
    kind: Literal["buy"] = "buy"


class SellIntent(_SwapBase):
    kind: Literal["sell"] = "sell"


TradeIntent = Annotated[
    Union[NoTradeIntent, WrapIntent, UnwrapIntent, BuyIntent, SellIntent],
    Field(discriminator="kind"),
]

trade_intent_adapter: TypeAdapter = TypeAdapter(TradeIntent)


# =============================================================================
# Execution
# =============================================================================


@dataclass(frozen=True)
class SwapRequest:
    """Swap parameters ready for on-chain execution.

    ``amount_out_minimum`` is a slippage floor derived from the input amount;
    it is not a conservation bound between different tokens.
    """

    token_in: str
    token_out: str
    amount_in: int
    fee_tier: int
    recipient: str
    deadline: int
    amount_out_minimum: int
    sqrt_price_limit_x96: int
    amount: str
    slippage_bps: int
    token_in_symbol: str = ""
    token_out_symbol: str = ""
    # Input paid in the native coin (router wraps msg.value)
    wrap_input: bool = False
    # Output delivered as the native coin (router unwraps before sending)
    unwrap_output: bool = False

    @property
    def zero_for_one(self) -> bool:
        return self.token_in.lower() < self.token_out.lower()


class TradeResult(BaseModel):
    """Outcome of one orchestrator invocation."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str
    transaction_hash: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    simulated: bool = False
    error_details: Optional[Dict[str, Any]] = None


class TradeState(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    WALLET_QUERY = "wallet_query"
    INFO_QUERY = "info_query"
    WRAPPING = "wrapping"
    UNWRAPPING = "unwrapping"
    SWAPPING = "swapping"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# =============================================================================
# Market data records
# =============================================================================


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class TokenRef(_Record):
    id: str
    symbol: str
    decimals: Optional[int] = None


class TokenRecord(_Record):
    id: str
    symbol: str
    name: str = ""
    decimals: int
    volume_usd: Decimal = Field(default=Decimal(0), alias="volumeUSD")
    total_value_locked_usd: Decimal = Field(default=Decimal(0), alias="totalValueLockedUSD")
    derived_eth: Decimal = Field(default=Decimal(0), alias="derivedETH")

    @property
    def address(self) -> str:
        return self.id.lower()


class PoolRecord(_Record):
    id: str
    token0: TokenRef
    token1: TokenRef
    fee_tier: Optional[int] = Field(default=None, alias="feeTier")
    total_value_locked_usd: Decimal = Field(default=Decimal(0), alias="totalValueLockedUSD")
    volume_usd: Decimal = Field(default=Decimal(0), alias="volumeUSD")
    token0_price: Decimal = Field(default=Decimal(0), alias="token0Price")
    token1_price: Decimal = Field(default=Decimal(0), alias="token1Price")

    @property
    def pair(self) -> str:
        return f"{self.token0.symbol}/{self.token1.symbol}"

    def price_for(self, token_in: str) -> Decimal:
        """Pool price quoted for a swap starting from ``token_in``."""
        if token_in.lower() == self.token0.id.lower():
            return self.token1_price
        return self.token0_price


class SwapPoolRef(_Record):
    token0: TokenRef
    token1: TokenRef


class SwapRecord(_Record):
    id: str
    timestamp: int
    amount0: Decimal
    amount1: Decimal
    amount_usd: Decimal = Field(alias="amountUSD")
    pool: SwapPoolRef


class PoolDayData(_Record):
    date: int
    tvl_usd: Decimal = Field(default=Decimal(0), alias="tvlUSD")
    volume_usd: Decimal = Field(default=Decimal(0), alias="volumeUSD")
    fees_usd: Decimal = Field(default=Decimal(0), alias="feesUSD")
    token0_price: Decimal = Field(default=Decimal(0), alias="token0Price")
    token1_price: Decimal = Field(default=Decimal(0), alias="token1Price")
    high: Optional[Decimal] = None
    low: Optional[Decimal] = None
    close: Optional[Decimal] = None


class MarketSnapshot(BaseModel):
    """Tokens, top pools and recent swaps captured together."""

    model_config = ConfigDict(frozen=True)

    tokens: List[TokenRecord] = Field(default_factory=list)
    pools: List[PoolRecord] = Field(default_factory=list)
    swaps: List[SwapRecord] = Field(default_factory=list)

    @property
    def total_tvl_usd(self) -> Decimal:
        return sum((pool.total_value_locked_usd for pool in self.pools), Decimal(0))

    def to_prompt(self) -> str:
        lines = [f"Total TVL of top pools: ${self.total_tvl_usd:,.2f}"]
        if self.tokens:
            lines.append("Tokens: " + ", ".join(token.symbol for token in self.tokens))
        if self.pools:
            lines.append("Top pools:")
            lines.extend(
                f"- {pool.pair}: TVL ${pool.total_value_locked_usd:,.2f}" for pool in self.pools
            )
        if self.swaps:
            lines.append("Recent swaps:")
            lines.extend(
                f"- {swap.pool.token0.symbol}/{swap.pool.token1.symbol}: ${swap.amount_usd:,.2f}"
                for swap in self.swaps
            )
        return "\n".join(lines)


__all__ = [
    "NoTradeIntent",
    "WrapIntent",
    "UnwrapIntent",
    "BuyIntent",
    "SellIntent",
    "TradeIntent",
    "trade_intent_adapter",
    "SwapRequest",
    "TradeResult",
    "TradeState",
    "TokenRef",
    "TokenRecord",
    "PoolRecord",
    "SwapRecord",
    "PoolDayData",
    "MarketSnapshot",
]
