from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..config import settings
from ..providers.gateway import GatewayProvider
from .transfers import get_gateway_provider

router = APIRouter()


@router.get("/healthz")
async def health_check(provider: GatewayProvider = Depends(get_gateway_provider)) -> Dict[str, Any]:
    """Health check endpoint that verifies the gateway is reachable"""

    gateway = await provider.health_check()
    return {
        "status": "healthy" if gateway["status"] == "healthy" else "degraded",
        "providers": {"gateway": gateway},
        "sponsored_chains": sorted(settings.sponsored_chain_set()),
        "paymaster_configured": settings.has_paymaster,
    }
