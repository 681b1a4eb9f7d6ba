# =============================================================================
# Health API — Liveness Probe
# =============================================================================
# GET /health answers without touching the database, the vector store or
# any model provider, so it stays green while those are being configured.
# =============================================================================

from fastapi import APIRouter

from chatdocs.config import settings
from chatdocs.models.responses import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Returns API status. Used by Docker health checks and load balancers."""
    return HealthResponse(
        status="ok",
        version=settings.app_version,
        service=settings.app_name,
    )
