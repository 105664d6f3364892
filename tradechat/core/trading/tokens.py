"""Symbol and address resolution for trade intents."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, TYPE_CHECKING

from web3 import Web3

from ..chain.contracts import ERC20_ABI
from ..chain.session import AgentSession
from ..errors import ValidationError

if TYPE_CHECKING:
    from ...services.market_data import MarketDataGateway


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedToken:
    address: str  # lower-case
    symbol: str
    is_native: bool = False


class TokenResolver:
    """Resolves symbols and addresses to contract addresses.

    Lookup order: raw address, native symbol (aliased to the wrapped-native
    contract), configured registry, then subgraph token symbols.
    """

    def __init__(
        self,
        session: AgentSession,
        *,
        native_symbol: str,
        wrapped_native_address: str,
        registry: Dict[str, str],
        market: Optional["MarketDataGateway"] = None,
    ):
        self.session = session
        self.native_symbol = native_symbol.upper()
        self.wrapped_native_address = wrapped_native_address.lower()
        self.registry = {symbol.upper(): address.lower() for symbol, address in registry.items()}
        self.market = market
        self._decimals: Dict[str, int] = {}

    @classmethod
    def from_settings(cls, session: AgentSession, settings, market=None) -> "TokenResolver":
        return cls(
            session,
            native_symbol=settings.native_symbol,
            wrapped_native_address=settings.wrapped_native_address,
            registry=settings.token_addresses,
            market=market,
        )

    def _symbol_for(self, address: str) -> str:
        for symbol, candidate in self.registry.items():
            if candidate == address:
                return symbol
        return address

    async def resolve(self, token: str) -> ResolvedToken:
        """Resolve a symbol or address.

        Raises:
            ValidationError: empty or unknown token
        """
        text = (token or "").strip()
        if not text:
            raise ValidationError("Token not specified")

        if text.lower().startswith("0x"):
            if not Web3.is_address(text):
                raise ValidationError(f"Invalid token address: {text}")
            address = text.lower()
            return ResolvedToken(address=address, symbol=self._symbol_for(address))

        symbol = text.upper()
        if symbol == self.native_symbol:
            return ResolvedToken(address=self.wrapped_native_address, symbol=symbol, is_native=True)

        if symbol in self.registry:
            return ResolvedToken(address=self.registry[symbol], symbol=symbol)

        if self.market is not None:
            for record in await self.market.get_tokens():
                if record.symbol.upper() == symbol:
                    return ResolvedToken(address=record.address, symbol=record.symbol)

        raise ValidationError(f"Unknown token: {text}", details={"token": text})

    async def decimals(self, address: str) -> int:
        """ERC-20 ``decimals()``, read once per address."""
        key = address.lower()
        if key not in self._decimals:
            contract = self.session.contract(key, ERC20_ABI)
            self._decimals[key] = int(await contract.functions.decimals().call())
            logger.debug("Token %s has %s decimals", key, self._decimals[key])
        return self._decimals[key]

    @staticmethod
    def to_smallest_unit(amount: str, decimals: int) -> int:
        """Exact conversion of a human-unit decimal string.

        Raises:
            ValidationError: not a positive number, or finer than ``decimals``
        """
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid amount: {amount}") from exc
        if not value.is_finite() or value <= 0:
            raise ValidationError(f"Amount must be positive: {amount}")

        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValidationError(f"Amount {amount} has more than {decimals} decimal places")
        return int(scaled)


__all__ = ["ResolvedToken", "TokenResolver"]
