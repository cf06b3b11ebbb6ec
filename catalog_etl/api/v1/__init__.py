"""
API v1 routers
"""

from fastapi import APIRouter

from .auth import router as auth_router
from .batch_import import router as batch_import_router
from .health import router as health_router

api_router = APIRouter()

# Include routers
api_router.include_router(health_router, tags=["health"])
api_router.include_router(batch_import_router, tags=["import"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
