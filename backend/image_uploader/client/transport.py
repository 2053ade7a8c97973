"""
HTTP transport for the upload client.

AuthorizationClient talks to the upload authorization endpoints.
StorageTransfer PUTs file bytes straight to a presigned URL and reports
byte-level progress while the body is being sent.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from image_uploader.client.task import FileRef
from image_uploader.errors import (
    AuthorizationBackendError,
    DeletionBackendError,
    TransferError,
    ValidationError,
)

logger = logging.getLogger(__name__)

AUTHORIZATION_PATH = "/upload-authorization"

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class UploadGrant:
    """Presigned URL and storage key returned by the authorization endpoint."""
    authorized_upload_url: str
    storage_key: str


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("error") or response.reason_phrase
    except ValueError:
        return response.reason_phrase


class AuthorizationClient:
    """
    Client for POST/DELETE /upload-authorization.

    4xx responses raise ValidationError; 5xx responses and network
    failures raise the backend error for the operation.
    """

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    async def authorize(self, file: FileRef) -> UploadGrant:
        try:
            response = await self.http.post(
                AUTHORIZATION_PATH,
                json={
                    "filename": file.name,
                    "contentType": file.content_type,
                    "size": file.size,
                }
            )
        except httpx.HTTPError as e:
            raise AuthorizationBackendError(
                "Authorization service unreachable",
                context={"filename": file.name},
                cause=e
            )

        if not response.is_success:
            error_cls = ValidationError if response.status_code < 500 else AuthorizationBackendError
            raise error_cls(
                _error_message(response),
                context={"filename": file.name, "status": response.status_code}
            )

        try:
            data = response.json()
            url = data["authorizedUploadUrl"]
            storage_key = data["storageKey"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthorizationBackendError(
                "Malformed authorization response",
                context={"filename": file.name},
                cause=e
            )

        if not all(isinstance(value, str) and value.strip() for value in (url, storage_key)):
            raise AuthorizationBackendError(
                "Malformed authorization response",
                context={"filename": file.name}
            )
        return UploadGrant(authorized_upload_url=url, storage_key=storage_key)

    async def delete(self, storage_key: str) -> None:
        try:
            response = await self.http.request(
                "DELETE",
                AUTHORIZATION_PATH,
                json={"key": storage_key}
            )
        except httpx.HTTPError as e:
            raise DeletionBackendError(
                "Authorization service unreachable",
                context={"storage_key": storage_key},
                cause=e
            )

        if not response.is_success:
            error_cls = ValidationError if response.status_code < 500 else DeletionBackendError
            raise error_cls(
                _error_message(response),
                context={"storage_key": storage_key, "status": response.status_code}
            )


class StorageTransfer:
    """
    Direct PUT of file bytes to a presigned URL.

    The request body is streamed in chunks; after each chunk is handed
    to the transport, the progress callback receives (bytes_sent, total).
    """

    def __init__(self, http: httpx.AsyncClient, chunk_size: int = 64 * 1024):
        self.http = http
        self.chunk_size = chunk_size

    async def put(
        self,
        url: str,
        file: FileRef,
        on_progress: Optional[ProgressCallback] = None
    ) -> httpx.Response:
        """
        Upload the file and wait for storage to acknowledge it.

        Raises:
            TransferError: on network failure or a non-2xx acknowledgement
        """
        total = file.size

        async def body():
            sent = 0
            chunks = file.aiter_chunks(self.chunk_size)
            try:
                async for chunk in chunks:
                    yield chunk
                    sent += len(chunk)
                    if on_progress is not None:
                        on_progress(sent, total)
            finally:
                await chunks.aclose()

        stream = body()
        try:
            response = await self.http.put(
                url,
                content=stream,
                headers={
                    "Content-Type": file.content_type,
                    "Content-Length": str(total),
                }
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransferError("Upload failed", context={"filename": file.name}, cause=e)
        finally:
            # Closes the file when the request ends before the body is drained
            await stream.aclose()

        if not response.is_success:
            raise TransferError(
                f"Upload failed with status: {response.status_code}",
                status=response.status_code,
                context={"filename": file.name}
            )

        logger.debug(f"Storage acknowledged {file.name} with {response.status_code}")
        return response
