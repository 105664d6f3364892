import logging

from ..chain.contracts import WRAPPED_NATIVE_ABI
from ..chain.session import AgentSession, receipt_hash
from .tokens import TokenResolver


logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


class WrapUnwrapExecutor:
    """Native coin <-> wrapped token conversion.

    Gas is estimated per call and padded by ``gas_buffer_percent``. No retry:
    estimation and submission errors propagate with the provider's message.
    """

    def __init__(self, session: AgentSession, wrapped_native_address: str, gas_buffer_percent: int = 20):
        self.session = session
        self.wrapped_native_address = wrapped_native_address
        self.gas_buffer_percent = gas_buffer_percent

    def _contract(self):
        return self.session.contract(self.wrapped_native_address, WRAPPED_NATIVE_ABI)

    async def _submit(self, tx: dict, description: str) -> str:
        estimate = await self.session.estimate_gas(tx)
        tx["gas"] = estimate * (100 + self.gas_buffer_percent) // 100
        receipt = await self.session.send_transaction(tx, description=description)
        return receipt_hash(receipt)

    async def wrap(self, amount: str) -> str:
        """Deposit ``amount`` native coin into the wrapped token contract."""
        value = TokenResolver.to_smallest_unit(amount, NATIVE_DECIMALS)
        contract = self._contract()
        tx = {"to": contract.address, "data": contract.encode_abi("deposit", args=[]), "value": value}
        return await self._submit(tx, f"wrap {amount}")

    async def unwrap(self, amount: str) -> str:
        """Withdraw ``amount`` wrapped tokens back to the native coin."""
        value = TokenResolver.to_smallest_unit(amount, NATIVE_DECIMALS)
        contract = self._contract()
        tx = {"to": contract.address, "data": contract.encode_abi("withdraw", args=[value]), "value": 0}
        return await self._submit(tx, f"unwrap {amount}")


__all__ = ["WrapUnwrapExecutor"]
