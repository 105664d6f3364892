"""Native coin transfers between the user's wallet and the agent wallet."""

import logging
from decimal import Decimal, InvalidOperation

from web3 import Web3

from ..errors import InsufficientFundsError, ValidationError
from .contracts import NATIVE_TRANSFER_GAS
from .session import AgentSession, receipt_hash


logger = logging.getLogger(__name__)


def _recipient(to: str) -> str:
    if not Web3.is_address(to):
        raise ValidationError(f"Invalid recipient address: {to}")
    return Web3.to_checksum_address(to)


class WalletTransfers:
    """Funds movement for the agent wallet.

    Both operations compare the balance against amount plus gas cost before
    anything is submitted.
    """

    def __init__(self, session: AgentSession):
        self.session = session

    async def transfer_native(self, to: str, amount: str) -> str:
        """Send ``amount`` (human units) of the native coin to ``to``."""
        try:
            value = Web3.to_wei(Decimal(amount), "ether")
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise ValidationError(f"Invalid amount: {amount}") from exc
        if value <= 0:
            raise ValidationError(f"Amount must be positive: {amount}")

        recipient = _recipient(to)
        gas_price = await self.session.gas_price()
        required = value + NATIVE_TRANSFER_GAS * gas_price
        available = await self.session.get_balance()
        if available < required:
            raise InsufficientFundsError(required=required, available=available)

        receipt = await self.session.send_transaction(
            {"to": recipient, "value": value, "gas": NATIVE_TRANSFER_GAS, "gasPrice": gas_price},
            description=f"transfer {amount} native",
        )
        return receipt_hash(receipt)

    async def transfer_back(self, to: str) -> str:
        """Sweep the whole native balance, less the transfer gas cost, to ``to``."""
        recipient = _recipient(to)
        gas_price = await self.session.gas_price()
        gas_cost = NATIVE_TRANSFER_GAS * gas_price
        available = await self.session.get_balance()
        value = available - gas_cost
        if value <= 0:
            raise InsufficientFundsError(required=gas_cost, available=available)

        logger.info("Transferring %s wei back to %s", value, recipient)
        receipt = await self.session.send_transaction(
            {"to": recipient, "value": value, "gas": NATIVE_TRANSFER_GAS, "gasPrice": gas_price},
            description="transfer back",
        )
        return receipt_hash(receipt)


__all__ = ["WalletTransfers"]
