"""
Transient user notifications ("toasts").

The presentation layer supplies a Notifier; the default one writes to
the log so the command-line client reports outcomes too.
"""
import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

UPLOAD_SUCCEEDED = "File uploaded successfully"
AUTHORIZATION_FAILED = "Failed to get presigned URL"
UPLOAD_FAILED = "Something went wrong"
REMOVE_SUCCEEDED = "File removed successfully"
REMOVE_FAILED = "Failed to remove file from storage."
TOO_MANY_FILES = "Too many files selected, a maximum of {max_files} is allowed"
FILE_TOO_LARGE = "File size exceeds the {max_size_mb}MB limit"
INVALID_FILE_TYPE = "Only image files can be uploaded"


class Notifier(ABC):
    """Receives user-facing success and error messages."""

    @abstractmethod
    def success(self, message: str) -> None:
        pass

    @abstractmethod
    def error(self, message: str) -> None:
        pass


class LoggingNotifier(Notifier):
    """Notifier that writes messages to the log."""

    def success(self, message: str) -> None:
        logger.info(message, extra={"event": "notification", "kind": "success"})

    def error(self, message: str) -> None:
        logger.error(message, extra={"event": "notification", "kind": "error"})
