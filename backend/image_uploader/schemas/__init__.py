"""
Pydantic schemas for API request/response validation.
"""
from image_uploader.schemas.upload import (
    UploadAuthorizationRequest,
    UploadAuthorizationResponse,
    DeleteRequest,
    DeleteResponse,
    ErrorResponse,
)

__all__ = [
    "UploadAuthorizationRequest",
    "UploadAuthorizationResponse",
    "DeleteRequest",
    "DeleteResponse",
    "ErrorResponse",
]
