"""
Storage module for S3-compatible object storage (Cloudflare R2).

This module authorizes direct uploads from browser clients using presigned URLs.
The service NEVER receives file bytes - files go directly to R2.
"""
from image_uploader.storage.r2_client import R2Client
from image_uploader.storage.keys import generate_storage_key
from image_uploader.storage.authorization import AuthorizationService, UploadAuthorization

__all__ = ["R2Client", "generate_storage_key", "AuthorizationService", "UploadAuthorization"]
