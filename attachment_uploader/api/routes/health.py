"""Health check."""

from fastapi import APIRouter

from attachment_uploader import __version__
from attachment_uploader.schemas.system import HealthResponse
from attachment_uploader.services import get_session

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Lightweight liveness check for the host application."""
    try:
        authenticated = get_session().is_authenticated
    except RuntimeError:
        authenticated = False  # services not initialized
    return HealthResponse(version=__version__, authenticated=authenticated)


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
