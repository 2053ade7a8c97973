"""
Drop intake: splits a dropped batch into accepted and rejected files.

Mirrors the contract of the browser's drag/drop capability:
- files that are not images are rejected with "file-invalid-type"
- files above the size limit are rejected with "file-too-large"
- if more files than allowed remain, the whole batch is rejected
  with "too-many-files"

Each rejection code present in a batch produces exactly one
notification, however many files carry it.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from image_uploader.client import notifications
from image_uploader.client.notifications import Notifier
from image_uploader.client.task import FileRef, UploadTask

logger = logging.getLogger(__name__)

TOO_MANY_FILES = "too-many-files"
FILE_TOO_LARGE = "file-too-large"
FILE_INVALID_TYPE = "file-invalid-type"

MAX_FILES = 50
MAX_FILE_SIZE = 100 * 1024 * 1024  # 100 MiB


@dataclass(frozen=True)
class FileRejection:
    """A dropped file that was not accepted, with the reasons why."""
    file: FileRef
    errors: Tuple[str, ...]


@dataclass
class DropResult:
    accepted: List[FileRef] = field(default_factory=list)
    rejected: List[FileRejection] = field(default_factory=list)

    @property
    def rejection_codes(self) -> set:
        return {code for rejection in self.rejected for code in rejection.errors}


class DropIntake:
    """
    Applies batch and per-file limits to dropped files.

    Args:
        max_files: Largest batch accepted at once
        max_file_size: Largest file accepted, in bytes
        accept_prefix: Required MIME type prefix
    """

    def __init__(
        self,
        max_files: int = MAX_FILES,
        max_file_size: int = MAX_FILE_SIZE,
        accept_prefix: str = "image/"
    ):
        self.max_files = max_files
        self.max_file_size = max_file_size
        self.accept_prefix = accept_prefix

    def split(self, files: Sequence[FileRef]) -> DropResult:
        result = DropResult()
        for file in files:
            errors = []
            if not file.content_type.startswith(self.accept_prefix):
                errors.append(FILE_INVALID_TYPE)
            if file.size > self.max_file_size:
                errors.append(FILE_TOO_LARGE)
            if errors:
                result.rejected.append(FileRejection(file, tuple(errors)))
            else:
                result.accepted.append(file)

        if len(result.accepted) > self.max_files:
            result.rejected.extend(
                FileRejection(file, (TOO_MANY_FILES,)) for file in result.accepted
            )
            result.accepted = []

        return result

    def notify_rejections(self, result: DropResult, notifier: Notifier) -> None:
        """Emit one error notification per distinct rejection code."""
        codes = result.rejection_codes
        if TOO_MANY_FILES in codes:
            notifier.error(notifications.TOO_MANY_FILES.format(max_files=self.max_files))
        if FILE_TOO_LARGE in codes:
            notifier.error(
                notifications.FILE_TOO_LARGE.format(max_size_mb=self.max_file_size // (1024 * 1024))
            )
        if FILE_INVALID_TYPE in codes:
            notifier.error(notifications.INVALID_FILE_TYPE)


def handle_drop(intake: DropIntake, orchestrator, files: Sequence[FileRef]) -> List[UploadTask]:
    """
    Feed a dropped batch into the orchestrator.

    Accepted files start uploading immediately; rejections are reported
    through the orchestrator's notifier.

    Returns:
        The tasks created for the accepted files
    """
    result = intake.split(files)
    if result.rejected:
        logger.info(
            f"Rejected {len(result.rejected)} of {len(files)} dropped files",
            extra={"event": "drop_rejected", "codes": sorted(result.rejection_codes)}
        )
        intake.notify_rejections(result, orchestrator.notifier)
    if not result.accepted:
        return []
    return orchestrator.add_files(result.accepted)
