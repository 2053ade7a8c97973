"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from image_uploader.api import health, upload_authorization

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(
    upload_authorization.router,
    prefix="/upload-authorization",
    tags=["uploads"]
)
