"""
Error hierarchy for the uploader.

Every error carries a machine-readable ``code``, a human-readable
``message``, an optional ``context`` dict and the underlying ``cause``.
Server-side errors also carry the HTTP status they map to.
"""
from typing import Any, Dict, Optional


class UploaderError(Exception):
    """Base exception for all uploader errors."""

    code = "UPLOADER_ERROR"
    status_code = 500

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        self.message = message
        self.context = context or {}
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(UploaderError):
    """Malformed request shape. Never retried automatically."""

    code = "VALIDATION_ERROR"
    status_code = 400


class AuthorizationBackendError(UploaderError):
    """Storage backend failed to issue an upload URL."""

    code = "AUTHORIZATION_BACKEND_ERROR"
    status_code = 500


class DeletionBackendError(UploaderError):
    """Storage backend failed to delete an object."""

    code = "DELETION_BACKEND_ERROR"
    status_code = 500


class TransferError(UploaderError):
    """Direct-to-storage PUT failed at the network layer or was not acknowledged."""

    code = "TRANSFER_ERROR"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message, context=context, cause=cause)
        self.status = status


class DeletionRollbackError(UploaderError):
    """
    Remote delete failed after the task was marked as deleting.

    The task's phase has been rolled back and its error flag set, so the
    object is still present and removal can be tried again.
    """

    code = "DELETION_ROLLBACK_ERROR"
