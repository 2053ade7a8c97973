"""
Upload authorization endpoints.

Implements the direct-to-storage upload flow:
1. POST /upload-authorization - Get presigned URL and storage key
2. DELETE /upload-authorization - Delete an uploaded object by key

The service never handles file bytes. Errors raised by the
authorization service are turned into ``{"error": ...}`` responses by
the exception handlers registered in ``image_uploader.main``.
"""
from fastapi import APIRouter, Depends, Request

from image_uploader.schemas.upload import (
    DeleteRequest,
    DeleteResponse,
    ErrorResponse,
    UploadAuthorizationRequest,
    UploadAuthorizationResponse,
)
from image_uploader.storage.authorization import AuthorizationService

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request body"},
    500: {"model": ErrorResponse, "description": "Storage backend failure"},
}


def get_authorization_service(request: Request) -> AuthorizationService:
    """Return the service built at startup (see main.lifespan)."""
    return request.app.state.authorization_service


@router.post("", response_model=UploadAuthorizationResponse, responses=ERROR_RESPONSES)
def issue_upload_authorization(
    body: UploadAuthorizationRequest,
    service: AuthorizationService = Depends(get_authorization_service)
):
    """
    Generate a presigned URL for direct file upload to R2.

    The URL is bound to a freshly generated key, the declared content type
    and the declared size, and expires after one hour.

    Client then PUTs the file bytes to authorizedUploadUrl and keeps
    storageKey for later deletion.
    """
    authorization = service.issue_upload_authorization(
        filename=body.filename,
        content_type=body.content_type,
        declared_size=body.size
    )

    return UploadAuthorizationResponse(
        authorized_upload_url=authorization.authorized_upload_url,
        storage_key=authorization.storage_key
    )


@router.delete("", response_model=DeleteResponse, responses=ERROR_RESPONSES)
def delete_uploaded_object(
    body: DeleteRequest,
    service: AuthorizationService = Depends(get_authorization_service)
):
    """
    Delete an uploaded object immediately.

    Idempotent - deleting a key that no longer exists succeeds.
    """
    service.issue_delete_command(body.key)
    return DeleteResponse(message="File deleted successfully")
