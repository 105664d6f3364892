import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..config import settings
from ..container import Services
from ..core.chain.keystore import connect_or_create
from ..core.errors import TradeError, WalletNotConnectedError
from .deps import get_services

router = APIRouter(prefix="/wallet")


class ConnectRequest(BaseModel):
    user_id: str = Field(min_length=1, description="Owner of the agent wallet")


class TransferRequest(BaseModel):
    to: str = Field(description="Recipient address")
    amount: str = Field(description="Amount of native coin in human units")


class TransferBackRequest(BaseModel):
    to: str = Field(description="Address receiving the swept balance")


def _http_error(exc: TradeError) -> HTTPException:
    status = 409 if isinstance(exc, WalletNotConnectedError) else 400
    return HTTPException(status_code=status, detail=exc.to_dict())


@router.post("/connect")
async def connect_wallet(request: ConnectRequest, services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Attach the user's agent wallet, creating it on first use"""
    if not settings.keystore_passphrase:
        raise HTTPException(status_code=503, detail="Keystore passphrase not configured")
    try:
        # Keystore encryption runs a slow KDF; keep it off the event loop
        account = await asyncio.to_thread(
            connect_or_create,
            services.session,
            request.user_id,
            services.keystore,
            settings.keystore_passphrase,
        )
    except ValueError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"address": account.address}


@router.post("/transfer")
async def transfer(request: TransferRequest, services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        tx_hash = await services.transfers.transfer_native(request.to, request.amount)
    except TradeError as exc:
        raise _http_error(exc)
    return {"transaction_hash": tx_hash}


@router.post("/transfer-back")
async def transfer_back(request: TransferBackRequest, services: Services = Depends(get_services)) -> Dict[str, Any]:
    try:
        tx_hash = await services.transfers.transfer_back(request.to)
    except TradeError as exc:
        raise _http_error(exc)
    return {"transaction_hash": tx_hash}
