"""
Trade-intent execution pipeline

    message -> IntentParser -> TradeExecutor
        -> WrapUnwrapExecutor | SwapExecutor (price limits, approvals)
        -> TradeResult
"""

from .approvals import ApprovalManager, ApprovalOutcome
from .executor import TradeExecutor
from .intent_parser import IntentParser
from .models import SwapRequest, TradeIntent, TradeResult, TradeState
from .swap_executor import SwapExecutor
from .tokens import TokenResolver
from .wrap_executor import WrapUnwrapExecutor

__all__ = [
    "ApprovalManager",
    "ApprovalOutcome",
    "IntentParser",
    "SwapExecutor",
    "SwapRequest",
    "TokenResolver",
    "TradeExecutor",
    "TradeIntent",
    "TradeResult",
    "TradeState",
    "WrapUnwrapExecutor",
]
