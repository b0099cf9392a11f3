"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from mockprep.api.v1 import health, sessions

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(sessions.router, prefix="/sessions", tags=["sessions"])
