"""
Health check endpoints.
"""
from fastapi import APIRouter

from mockprep.core import settings
from mockprep.core.datetime_utils import utc_now

router = APIRouter()


@router.get("/health")
async def health_check():
    """
    Health check endpoint.
    Returns basic health status of the API.
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }
