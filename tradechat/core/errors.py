"""
Error Classification

Defines the error taxonomy of the trade pipeline. Every error carries a
category and a ``details`` dict of machine-readable fields; the orchestrator
converts them into failed ``TradeResult`` objects.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(str, Enum):
    """Categories of trade pipeline errors."""

    PARSE = "parse"                          # Intent JSON malformed (absorbed by the parser)
    VALIDATION = "validation"                # Missing fields, unknown token, no pool
    ALLOWANCE = "allowance"                  # Approval transaction failed
    CONTRACT_REVERT = "contract_revert"      # On-chain revert
    NETWORK = "network"                      # RPC, subgraph or completion service unreachable
    INSUFFICIENT_FUNDS = "insufficient_funds"
    WALLET = "wallet"                        # No signer attached


class TradeError(Exception):
    """Base class for trade pipeline errors."""

    category: ErrorCategory = ErrorCategory.VALIDATION

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"category": self.category.value, "message": self.message}
        payload.update({k: v for k, v in self.details.items() if v is not None})
        return payload


class ValidationError(TradeError):
    """Intent or request is incomplete or refers to something that does not exist."""

    category = ErrorCategory.VALIDATION


class AllowanceError(TradeError):
    """Token approval failed; the user has to approve the spender first."""

    category = ErrorCategory.ALLOWANCE

    def __init__(
        self,
        token: str,
        spender: str,
        cause: Optional[BaseException] = None,
    ):
        message = (
            f"Token approval required: could not approve {token} for {spender}"
            + (f" ({cause})" if cause else "")
            + ". Approve the token for the router and try again."
        )
        super().__init__(message, details={"token": token, "spender": spender})
        self.token = token
        self.spender = spender


class ContractRevertError(TradeError):
    """A transaction or call reverted on-chain.

    The machine-readable fields of the underlying provider error are kept as
    attributes so callers can branch on them.
    """

    category = ErrorCategory.CONTRACT_REVERT

    def __init__(
        self,
        message: str,
        *,
        code: str = "CALL_EXCEPTION",
        data: Any = None,
        reason: Optional[str] = None,
        transaction: Optional[Dict[str, Any]] = None,
        tx_hash: Optional[str] = None,
    ):
        super().__init__(
            message,
            details={
                "code": code,
                "data": data,
                "reason": reason,
                "transaction": transaction,
                "tx_hash": tx_hash,
            },
        )
        self.code = code
        self.data = data
        self.reason = reason
        self.transaction = transaction
        self.tx_hash = tx_hash

    def enriched(self, prefix: str, causes: tuple) -> "ContractRevertError":
        """Return a copy whose message appends likely causes."""
        lines = "\n".join(f"- {cause}" for cause in causes)
        return ContractRevertError(
            f"{prefix}: {self.message}\nPossible causes:\n{lines}",
            code=self.code,
            data=self.data,
            reason=self.reason,
            transaction=self.transaction,
            tx_hash=self.tx_hash,
        )


class NetworkError(TradeError):
    """An upstream service could not be reached or answered with an error."""

    category = ErrorCategory.NETWORK

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message, details={"service": service})
        self.service = service


class MarketDataError(NetworkError):
    """Subgraph query failed."""

    def __init__(self, message: str):
        super().__init__(message, service="subgraph")


class InsufficientFundsError(TradeError):
    """Balance does not cover amount plus estimated gas."""

    category = ErrorCategory.INSUFFICIENT_FUNDS

    def __init__(self, required: int, available: int, token: str = "native"):
        super().__init__(
            f"Insufficient funds: need {required} but only {available} available ({token})",
            details={"required": required, "available": available, "token": token},
        )
        self.required = required
        self.available = available
        self.token = token


class WalletNotConnectedError(TradeError):
    """No agent signer is attached to the session."""

    category = ErrorCategory.WALLET

    def __init__(self, message: str = "Agent wallet not connected"):
        super().__init__(message)


__all__ = [
    "ErrorCategory",
    "TradeError",
    "ValidationError",
    "AllowanceError",
    "ContractRevertError",
    "NetworkError",
    "MarketDataError",
    "InsufficientFundsError",
    "WalletNotConnectedError",
]
