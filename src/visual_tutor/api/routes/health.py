"""
Health check endpoint.

Reports which image providers have credentials configured. No provider
is contacted.
"""

from fastapi import APIRouter, Depends

from visual_tutor import __version__
from visual_tutor.api.dependencies import get_visual_service
from visual_tutor.api.schemas.responses import HealthResponse, ProviderStatus
from visual_tutor.service import VisualExplanationService

router = APIRouter()


@router.get("", response_model=HealthResponse)
async def health_check(
    service: VisualExplanationService = Depends(get_visual_service),
) -> HealthResponse:
    """
    Return service status and provider availability.

    Status is ``degraded`` when no image provider has a credential, since
    every visual-explanation request would then fail.
    """
    providers = [
        ProviderStatus(name=p.name, model=p.model, available=p.is_available)
        for p in service.chain.providers
    ]
    status = "healthy" if any(p.available for p in providers) else "degraded"
    return HealthResponse(status=status, version=__version__, providers=providers)
