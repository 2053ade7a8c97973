"""
Upload authorization service.

Handles the business logic for issuing presigned upload URLs and
delete commands.

Flow:
1. Client requests an upload URL with filename, content type and size
2. Service generates a unique storage key and a presigned PUT URL
3. Client uploads directly to R2 using the presigned URL
4. Later, client asks for the object to be deleted by key

The service is stateless: nothing is recorded about outstanding URLs.
The storage key is the only durable link to the stored object.
"""
import logging
import math
import time
from dataclasses import dataclass
from numbers import Integral, Real

from image_uploader.errors import (
    AuthorizationBackendError,
    DeletionBackendError,
    ValidationError,
)
from image_uploader.storage.keys import generate_storage_key
from image_uploader.storage.r2_client import R2Client
from image_uploader.utils.logging import (
    log_authorization_failed,
    log_authorization_issued,
    log_deletion_failed,
    log_object_deleted,
)
from image_uploader.utils.metrics import object_deletions_total, upload_authorizations_total

logger = logging.getLogger(__name__)

# Presigned URLs stay valid for one hour from issuance
UPLOAD_URL_EXPIRATION = 3600


@dataclass(frozen=True)
class UploadAuthorization:
    """A presigned upload URL bound to a freshly generated key."""
    authorized_upload_url: str
    storage_key: str
    expires_in: int


def _require_text(field: str, value) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            f"'{field}' must be a non-empty string",
            context={"field": field}
        )


def _require_size(value) -> int:
    """Byte count as an int; the signed Content-Length must match exactly."""
    if isinstance(value, bool) or not isinstance(value, Real):
        size = None
    elif isinstance(value, Integral):
        size = int(value)
    elif math.isfinite(value) and float(value).is_integer():
        size = int(value)
    else:
        size = None

    if size is None or size < 0:
        raise ValidationError(
            "'size' must be a non-negative whole number",
            context={"field": "size"}
        )
    return size


class AuthorizationService:
    """
    Issues upload URLs and delete commands against one bucket.

    Responsibilities:
    - Validate request shapes
    - Generate unique storage keys
    - Create presigned URLs
    - Delete objects, treating "not found" as success
    """

    def __init__(self, storage: R2Client, expires_in: int = UPLOAD_URL_EXPIRATION):
        self.storage = storage
        self.expires_in = expires_in

    def issue_upload_authorization(
        self,
        filename: str,
        content_type: str,
        declared_size
    ) -> UploadAuthorization:
        """
        Create a presigned upload URL for a new object.

        Args:
            filename: Original filename, kept as a readable key suffix
            content_type: MIME type the client will send
            declared_size: Byte length the client will send

        Returns:
            UploadAuthorization with the URL and its storage key

        Raises:
            ValidationError: if the request shape is invalid
            AuthorizationBackendError: if the backend fails to sign the URL
        """
        start_time = time.time()
        try:
            _require_text("filename", filename)
            _require_text("contentType", content_type)
            size = _require_size(declared_size)
        except ValidationError:
            upload_authorizations_total.labels(status="invalid").inc()
            raise

        storage_key = generate_storage_key(filename)

        try:
            url = self.storage.generate_presigned_upload_url(
                storage_key,
                content_type,
                size,
                expiration=self.expires_in
            )
        except AuthorizationBackendError as e:
            upload_authorizations_total.labels(status="backend_error").inc()
            log_authorization_failed(
                logger,
                error=e.message,
                storage_key=storage_key,
                duration_ms=(time.time() - start_time) * 1000
            )
            raise

        upload_authorizations_total.labels(status="issued").inc()
        log_authorization_issued(
            logger,
            storage_key=storage_key,
            duration_ms=(time.time() - start_time) * 1000,
            content_type=content_type,
            size=size
        )

        return UploadAuthorization(
            authorized_upload_url=url,
            storage_key=storage_key,
            expires_in=self.expires_in
        )

    def issue_delete_command(self, storage_key: str) -> None:
        """
        Delete an object immediately.

        Idempotent: deleting a key that does not exist succeeds, since the
        end state ("object absent") is reached either way. There is no
        soft-delete or recovery window.

        Raises:
            ValidationError: if the key is missing or not a string
            DeletionBackendError: on any other backend failure
        """
        start_time = time.time()
        try:
            _require_text("key", storage_key)
        except ValidationError:
            object_deletions_total.labels(status="invalid").inc()
            raise

        try:
            existed = self.storage.delete_object(storage_key)
        except DeletionBackendError as e:
            object_deletions_total.labels(status="backend_error").inc()
            log_deletion_failed(
                logger,
                storage_key=storage_key,
                error=e.message,
                duration_ms=(time.time() - start_time) * 1000
            )
            raise

        object_deletions_total.labels(status="deleted" if existed else "not_found").inc()
        log_object_deleted(
            logger,
            storage_key=storage_key,
            existed=existed,
            duration_ms=(time.time() - start_time) * 1000
        )
