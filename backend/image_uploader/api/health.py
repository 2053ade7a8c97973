"""
Health check endpoint.
Reports whether the storage client was built at startup.
"""
from fastapi import APIRouter, HTTPException, Request

router = APIRouter()


@router.get("")
async def health_check(request: Request):
    """
    Health check endpoint.
    Returns storage configuration status.
    """
    service = getattr(request.app.state, "authorization_service", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail={"status": "unhealthy", "storage": "not configured"}
        )

    return {
        "status": "healthy",
        "storage": "configured",
        "bucket": service.storage.bucket
    }
