"""Health check endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from folio.config import get_settings

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    provider: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check - always returns OK if service is running.

    ``provider`` is the model backend chat requests will use, or
    "unconfigured"; no credentials are checked or exposed.
    """
    from folio import __version__

    provider = get_settings().resolve_llm_provider()
    return HealthResponse(
        status="healthy",
        version=__version__,
        provider=provider or "unconfigured",
    )
