"""
Pydantic schemas for the upload authorization endpoints.

Field names on the wire are camelCase to match the browser client.
"""
from pydantic import BaseModel, Field


class UploadAuthorizationRequest(BaseModel):
    """Request schema for presigned URL generation."""
    filename: str = Field(..., min_length=1, description="Original filename")
    content_type: str = Field(..., alias="contentType", min_length=1, description="MIME type (e.g., 'image/png')")
    size: float = Field(..., ge=0, strict=True, description="Declared file size in bytes")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "filename": "photo.png",
                "contentType": "image/png",
                "size": 2097152
            }
        }


class UploadAuthorizationResponse(BaseModel):
    """Response schema for presigned URL."""
    authorized_upload_url: str = Field(..., alias="authorizedUploadUrl", description="Presigned PUT URL for direct upload")
    storage_key: str = Field(..., alias="storageKey", description="Object key in storage bucket")

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "authorizedUploadUrl": "https://bucket.r2.cloudflarestorage.com/...",
                "storageKey": "0b7e2c9a-4f1d-4b8e-9a51-3c6d2e8f1a77-photo.png"
            }
        }


class DeleteRequest(BaseModel):
    """Request schema for object deletion."""
    key: str = Field(..., min_length=1, description="Storage key from the authorization response")


class DeleteResponse(BaseModel):
    """Response schema for object deletion."""
    message: str


class ErrorResponse(BaseModel):
    """Error body returned by both endpoints."""
    error: str
