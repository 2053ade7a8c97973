"""
FastAPI application entry point.
Sets up the API with lifespan events for storage client initialization.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from image_uploader.api.router import api_router
from image_uploader.config import get_settings
from image_uploader.errors import UploaderError
from image_uploader.middleware.metrics_middleware import MetricsMiddleware
from image_uploader.storage.authorization import AuthorizationService
from image_uploader.storage.r2_client import R2Client
from image_uploader.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: Read settings once and build the storage client.
      Missing storage configuration aborts startup.
    """
    settings = get_settings()
    configure_logging('uploader-api', settings.log_level)

    storage = R2Client(settings)
    app.state.authorization_service = AuthorizationService(
        storage,
        expires_in=settings.r2_presign_expiration
    )
    logger.info(
        "Upload authorization service started",
        extra={"event": "startup", "environment": settings.environment}
    )

    yield


# Create FastAPI app
app = FastAPI(
    title="Image Uploader API",
    description="Issues presigned upload URLs and delete commands for direct-to-storage image uploads",
    version="0.1.0",
    lifespan=lifespan
)

# CORS middleware (browser uploads come from the page origin)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Schema failures are client errors: 400 with a short message."""
    if request.method == "DELETE":
        message = "Missing or invalid object key."
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(UploaderError)
async def uploader_error_handler(request: Request, exc: UploaderError):
    """Map the error taxonomy onto status codes (400 validation, 500 backend)."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Image Uploader API",
        "version": "0.1.0"
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
