"""Health check endpoint."""

from fastapi import APIRouter, Depends

from studyhub import __version__
from studyhub.services import Services
from studyhub.web.dependencies import get_services
from studyhub.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(services: Services = Depends(get_services)) -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version=__version__,
        online=services.connectivity.is_online,
    )
