from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..container import Services
from .deps import get_services

router = APIRouter()


@router.get("/healthz")
async def health_check(services: Services = Depends(get_services)) -> Dict[str, Any]:
    """Health check endpoint that verifies provider status"""

    provider_status = {
        "llm": await services.llm.health_check(),
        "subgraph": await services.market.subgraph.health_check(),
    }

    all_healthy = all(status["status"] == "healthy" for status in provider_status.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "providers": provider_status,
        "agent_wallet": services.session.address if services.session.is_connected else None,
    }
