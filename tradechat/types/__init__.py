from .requests import ChatRequest, TradeRequest
from .responses import ChatAction, ChatResponse

__all__ = [
    "ChatRequest",
    "TradeRequest",
    "ChatAction",
    "ChatResponse",
]
