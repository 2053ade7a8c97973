"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- storage_key
- task_id
- duration_ms

Usage:
    from image_uploader.utils.logging import configure_logging, log_authorization_issued

    configure_logging('uploader-api', 'INFO')
    log_authorization_issued(logger, storage_key='abc-photo.png', duration_ms=4.2)
"""
import logging
import sys
from typing import Any, Dict, Optional, TextIO
from pythonjsonlogger import jsonlogger


class ServiceFilter(logging.Filter):
    """Stamps every record with the configured service name."""

    def __init__(self, service_name: str):
        super().__init__()
        self.service_name = service_name

    def filter(self, record):
        record.service = self.service_name
        return True


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""

    _configured = False

    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO", stream: Optional[TextIO] = None):
        """
        Install a single JSON handler on the root logger.

        Args:
            service_name: Service identifier (uploader-api or uploader-client)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            stream: Output stream; the API logs to stdout, the CLI to stderr
        """
        if cls._configured:
            return

        handler = logging.StreamHandler(stream or sys.stdout)
        handler.setFormatter(jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        ))
        handler.addFilter(ServiceFilter(service_name))

        root_logger = logging.getLogger()
        for existing in list(root_logger.handlers):
            root_logger.removeHandler(existing)
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        cls._configured = True


def _build_log_extra(
    event: str,
    storage_key: Optional[str] = None,
    task_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        storage_key: Optional object key
        task_id: Optional client upload task ID
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if storage_key:
        extra["storage_key"] = storage_key
    if task_id:
        extra["task_id"] = task_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


# Authorization service events

def log_authorization_issued(
    logger: logging.Logger,
    storage_key: str,
    duration_ms: Optional[float] = None,
    content_type: Optional[str] = None,
    size: Optional[int] = None,
    **kwargs
):
    """Log a successfully issued upload URL."""
    extra = _build_log_extra(
        event="authorization_issued",
        storage_key=storage_key,
        duration_ms=duration_ms,
        **kwargs
    )
    if content_type:
        extra["content_type"] = content_type
    if size is not None:
        extra["size"] = size

    logger.info(f"Upload authorization issued: {storage_key}", extra=extra)


def log_authorization_failed(
    logger: logging.Logger,
    error: str,
    storage_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a failure to issue an upload URL."""
    extra = _build_log_extra(
        event="authorization_failed",
        storage_key=storage_key,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )
    logger.error(f"Upload authorization failed - {error}", extra=extra)


def log_object_deleted(
    logger: logging.Logger,
    storage_key: str,
    existed: bool,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a delete command; ``existed`` is False for already-absent keys."""
    extra = _build_log_extra(
        event="object_deleted",
        storage_key=storage_key,
        duration_ms=duration_ms,
        existed=existed,
        **kwargs
    )
    logger.info(f"Object deleted: {storage_key}", extra=extra)


def log_deletion_failed(
    logger: logging.Logger,
    storage_key: str,
    error: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a failed delete command."""
    extra = _build_log_extra(
        event="deletion_failed",
        storage_key=storage_key,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )
    logger.error(f"Object deletion failed: {storage_key} - {error}", extra=extra)


# Upload client events

def log_upload_completed(
    logger: logging.Logger,
    task_id: str,
    storage_key: str,
    size: int,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a finished upload sequence."""
    extra = _build_log_extra(
        event="upload_completed",
        task_id=task_id,
        storage_key=storage_key,
        duration_ms=duration_ms,
        size=size,
        **kwargs
    )
    logger.info(f"Upload completed: {storage_key}", extra=extra)


def log_upload_failed(
    logger: logging.Logger,
    task_id: str,
    error: str,
    stage: str,
    storage_key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a failed upload sequence.

    Args:
        logger: Logger instance
        task_id: Task ID (required)
        error: Error message (required)
        stage: "authorization" or "transfer"
        storage_key: Object key, when authorization had succeeded
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="upload_failed",
        task_id=task_id,
        storage_key=storage_key,
        duration_ms=duration_ms,
        stage=stage,
        error=str(error),
        **kwargs
    )
    logger.warning(f"Upload failed during {stage}: {task_id} - {error}", extra=extra)


def log_task_removed(
    logger: logging.Logger,
    task_id: str,
    storage_key: Optional[str] = None,
    **kwargs
):
    """Log a task leaving the client collection."""
    extra = _build_log_extra(
        event="task_removed",
        task_id=task_id,
        storage_key=storage_key,
        remote=storage_key is not None,
        **kwargs
    )
    logger.info(f"Task removed: {task_id}", extra=extra)


# Convenience alias
def configure_logging(service_name: str, log_level: str = "INFO", stream: Optional[TextIO] = None):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level, stream)
