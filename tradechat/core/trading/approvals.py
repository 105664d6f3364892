import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from ..chain.contracts import ERC20_ABI
from ..chain.session import AgentSession, receipt_hash


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalOutcome:
    approved: bool
    tx_hash: Optional[str] = None


class ApprovalManager:
    """Makes sure a spender can move ``amount`` of a token before a swap.

    Approves exactly the requested amount, never an unlimited allowance.
    Revert and submission errors propagate unchanged.
    """

    def __init__(self, session: AgentSession):
        self.session = session

    async def ensure_allowance(self, token: str, owner: str, spender: str, amount: int) -> ApprovalOutcome:
        contract = self.session.contract(token, ERC20_ABI)
        owner_address = Web3.to_checksum_address(owner)
        spender_address = Web3.to_checksum_address(spender)

        current = await contract.functions.allowance(owner_address, spender_address).call()
        if current >= amount:
            logger.debug("Allowance %s on %s already covers %s", current, token, amount)
            return ApprovalOutcome(approved=True)

        data = contract.encode_abi("approve", args=[spender_address, amount])
        receipt = await self.session.send_transaction(
            {"to": contract.address, "data": data},
            description=f"approve {amount} of {token} for {spender_address}",
        )
        return ApprovalOutcome(approved=True, tx_hash=receipt_hash(receipt))


__all__ = ["ApprovalManager", "ApprovalOutcome"]
