"""
Upload client: drives direct-to-storage uploads of dropped image files.

Each file becomes an UploadTask that the UploadOrchestrator pushes
through authorization and transfer on its own, reporting progress to
subscribers.
"""
from image_uploader.client.task import FileRef, TaskPhase, UploadTask
from image_uploader.client.preview import PreviewRegistry
from image_uploader.client.notifications import Notifier, LoggingNotifier
from image_uploader.client.transport import AuthorizationClient, StorageTransfer, UploadGrant
from image_uploader.client.intake import DropIntake, DropResult, FileRejection, handle_drop
from image_uploader.client.orchestrator import UploadOrchestrator

__all__ = [
    "FileRef",
    "TaskPhase",
    "UploadTask",
    "PreviewRegistry",
    "Notifier",
    "LoggingNotifier",
    "AuthorizationClient",
    "StorageTransfer",
    "UploadGrant",
    "DropIntake",
    "DropResult",
    "FileRejection",
    "handle_drop",
    "UploadOrchestrator",
]
