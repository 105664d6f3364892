from fastapi import APIRouter, Depends

from ..container import Services
from ..core.trading.models import TradeResult
from ..types import ChatRequest, ChatResponse, TradeRequest
from .deps import get_services

router = APIRouter()


@router.post("/chat")
async def chat_endpoint(request: ChatRequest, services: Services = Depends(get_services)) -> ChatResponse:
    """Route one user message and return the assistant reply"""
    return await services.chat.process_message(request.message)


@router.post("/trade")
async def trade_endpoint(request: TradeRequest, services: Services = Depends(get_services)) -> TradeResult:
    """Execute a trade command; failures are reported in the result"""
    return await services.trades.execute(request.message)
