"""
Agent signing session.

Holds the chain provider and at most one attached agent signer. Every
component that reads chain state or submits transactions receives the
session explicitly; there is no module-level signer.

Transactions from the attached signer go through a single-flight queue:
the lock is held from nonce assignment until the receipt arrives, so two
trades requested in quick succession can never race for the same nonce.
Multi-step trades (allowance check, approval, swap) additionally hold
`trade_lock` so an approval for one swap cannot overwrite the allowance
another swap is about to spend.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError

from ..errors import ContractRevertError, WalletNotConnectedError


logger = logging.getLogger(__name__)


def describe_transaction(tx: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-safe subset of transaction fields kept for diagnostics."""
    described: Dict[str, Any] = {}
    for key in ("from", "to", "value", "gas", "nonce"):
        if key in tx and tx[key] is not None:
            described[key] = str(tx[key])
    data = tx.get("data")
    if data is not None:
        described["data"] = data if isinstance(data, str) else Web3.to_hex(data)
    return described


def revert_error(exc: ContractLogicError, tx: Dict[str, Any]) -> ContractRevertError:
    """Convert a web3 contract error into a ContractRevertError."""
    reason = getattr(exc, "message", None) or str(exc) or "execution reverted"
    return ContractRevertError(
        reason,
        data=getattr(exc, "data", None),
        reason=reason,
        transaction=describe_transaction(tx),
    )


class AgentSession:
    """Chain provider plus the (single) agent signer of one user session."""

    def __init__(
        self,
        web3: AsyncWeb3,
        chain_id: int,
        *,
        receipt_timeout: float = 120.0,
        account: Optional[LocalAccount] = None,
    ):
        self.web3 = web3
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self._account: Optional[LocalAccount] = None
        self._submit_lock = asyncio.Lock()
        self.trade_lock = asyncio.Lock()
        if account is not None:
            self.attach(account)

    @classmethod
    def from_settings(cls, settings, private_key: Optional[str] = None) -> "AgentSession":
        """Build a session against the configured RPC endpoint."""
        web3 = AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                settings.rpc_url,
                request_kwargs={"timeout": settings.request_timeout_seconds},
            )
        )
        account = Account.from_key(private_key) if private_key else None
        return cls(
            web3,
            settings.chain_id,
            receipt_timeout=settings.receipt_timeout_seconds,
            account=account,
        )

    # ------------------------------------------------------------------
    # Signer lifecycle
    # ------------------------------------------------------------------

    def attach(self, account: LocalAccount) -> None:
        if self._account is not None and self._account.address != account.address:
            raise ValueError(
                f"Signer {self._account.address} is already attached; detach it first"
            )
        self._account = account
        logger.info("Agent signer attached: %s", account.address)

    def detach(self) -> None:
        if self._account is not None:
            logger.info("Agent signer detached: %s", self._account.address)
        self._account = None

    @property
    def is_connected(self) -> bool:
        return self._account is not None

    @property
    def signer(self) -> LocalAccount:
        if self._account is None:
            raise WalletNotConnectedError()
        return self._account

    @property
    def address(self) -> str:
        return self.signer.address

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def contract(self, address: str, abi):
        return self.web3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    async def get_balance(self, address: Optional[str] = None) -> int:
        target = Web3.to_checksum_address(address or self.address)
        return await self.web3.eth.get_balance(target)

    async def gas_price(self) -> int:
        return await self.web3.eth.gas_price

    async def estimate_gas(self, tx: Dict[str, Any]) -> int:
        """Estimate gas for ``tx`` sent from the agent signer.

        Raises:
            ContractRevertError: the call would revert
        """
        call = dict(tx)
        call.setdefault("from", self.address)
        try:
            return await self.web3.eth.estimate_gas(call)
        except ContractLogicError as exc:
            raise revert_error(exc, call) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def send_transaction(self, tx: Dict[str, Any], description: str = "transaction") -> Dict[str, Any]:
        """Sign, submit and wait for one confirmation.

        Args:
            tx: Partial transaction; ``to``/``data``/``value``/``gas`` are kept,
                ``from``/``chainId``/``nonce``/``gasPrice`` are filled in.
            description: Label used in logs

        Returns:
            The transaction receipt

        Raises:
            ContractRevertError: estimation reverted or the receipt has status 0
        """
        account = self.signer
        async with self._submit_lock:
            prepared = dict(tx)
            prepared["from"] = account.address
            prepared.setdefault("value", 0)
            prepared["chainId"] = self.chain_id
            prepared["nonce"] = await self.web3.eth.get_transaction_count(account.address, "pending")
            if "gasPrice" not in prepared and "maxFeePerGas" not in prepared:
                prepared["gasPrice"] = await self.gas_price()
            if "gas" not in prepared:
                prepared["gas"] = await self.estimate_gas(prepared)

            signed = account.sign_transaction(prepared)
            tx_hash = await self.web3.eth.send_raw_transaction(signed.raw_transaction)
            tx_hash_hex = Web3.to_hex(tx_hash)
            logger.info("Sent %s: %s (nonce=%s gas=%s)", description, tx_hash_hex, prepared["nonce"], prepared["gas"])

            receipt = await self.web3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)

        if receipt.get("status") != 1:
            logger.warning("%s reverted: %s", description, tx_hash_hex)
            raise ContractRevertError(
                f"Transaction {tx_hash_hex} reverted",
                reason="execution reverted",
                transaction=describe_transaction(prepared),
                tx_hash=tx_hash_hex,
            )

        logger.info("Confirmed %s: %s in block %s", description, tx_hash_hex, receipt.get("blockNumber"))
        return receipt

    async def close(self) -> None:
        provider = self.web3.provider
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()


def receipt_hash(receipt: Dict[str, Any]) -> str:
    """Hex transaction hash of a receipt."""
    return Web3.to_hex(receipt["transactionHash"])


__all__ = ["AgentSession", "describe_transaction", "receipt_hash", "revert_error"]
