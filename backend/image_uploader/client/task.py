"""
Upload task model.

One UploadTask per selected file. Tasks are immutable values: every
state change produces a new task that replaces the old one by id.

Lifecycle:
1. File accepted -> phase="idle"
2. Upload sequence starts -> phase="uploading", progress 0..99
3. Storage acknowledges the PUT -> phase="completed", progress=100
   or the authorization/transfer fails -> phase="failed", error=True
4. User removes the file -> phase="deleting", then either the task is
   removed or the delete fails and the previous phase comes back with
   error=True
"""
import asyncio
import enum
import mimetypes
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import AsyncIterator, Iterator, Optional, Union

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class TaskPhase(str, enum.Enum):
    """Phase of a single file's upload/delete lifecycle."""
    IDLE = "idle"            # Created, upload sequence not started yet
    UPLOADING = "uploading"  # Authorizing or transferring bytes
    COMPLETED = "completed"  # Storage acknowledged the upload
    FAILED = "failed"        # Authorization or transfer failed
    DELETING = "deleting"    # Remote delete in flight


@dataclass(frozen=True)
class FileRef:
    """
    A selected file: its metadata and the source of its bytes.

    Attributes:
        name: Original filename
        size: Declared size in bytes
        content_type: Declared MIME type
        source: Path on disk or in-memory bytes
    """
    name: str
    size: int
    content_type: str
    source: Union[Path, bytes] = field(repr=False)

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "FileRef":
        path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or DEFAULT_CONTENT_TYPE
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type,
            source=path
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, content_type: Optional[str] = None) -> "FileRef":
        if content_type is None:
            content_type = mimetypes.guess_type(name)[0] or DEFAULT_CONTENT_TYPE
        return cls(name=name, size=len(data), content_type=content_type, source=data)

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        """Yield the file's bytes in chunks of at most chunk_size."""
        if isinstance(self.source, bytes):
            for offset in range(0, len(self.source), chunk_size):
                yield self.source[offset:offset + chunk_size]
            return

        with self.source.open("rb") as fh:
            while True:
                chunk = fh.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    async def aiter_chunks(self, chunk_size: int) -> AsyncIterator[bytes]:
        """Like iter_chunks, with disk reads run off the event loop."""
        if isinstance(self.source, bytes):
            for chunk in self.iter_chunks(chunk_size):
                yield chunk
            return

        fh = await asyncio.to_thread(self.source.open, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(fh.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            fh.close()


def new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class UploadTask:
    """
    State of one file in the uploader.

    Attributes:
        id: Process-local unique identifier, never reused
        file: The selected file (never mutated)
        preview_handle: Local preview reference, None once released
        storage_key: Object key, set once authorization succeeded
        phase: Current lifecycle phase
        progress: Upload percentage 0-100
        error: True after a failed upload or a failed delete
    """
    id: str
    file: FileRef
    preview_handle: Optional[str] = None
    storage_key: Optional[str] = None
    phase: TaskPhase = TaskPhase.IDLE
    progress: int = 0
    error: bool = False

    @property
    def is_deleting(self) -> bool:
        return self.phase == TaskPhase.DELETING

    def start_upload(self) -> "UploadTask":
        return replace(self, phase=TaskPhase.UPLOADING, progress=0, error=False)

    def authorized(self, storage_key: str) -> "UploadTask":
        return replace(self, storage_key=storage_key)

    def with_progress(self, percent: int) -> "UploadTask":
        """
        Apply a progress event.

        Progress never goes backwards, and stays below 100 until the
        transfer is acknowledged. Events outside the uploading phase are
        ignored.
        """
        if self.phase != TaskPhase.UPLOADING:
            return self
        percent = min(max(percent, self.progress), 99)
        if percent == self.progress:
            return self
        return replace(self, progress=percent)

    def completed(self) -> "UploadTask":
        return replace(self, phase=TaskPhase.COMPLETED, progress=100, error=False)

    def failed(self) -> "UploadTask":
        return replace(self, phase=TaskPhase.FAILED, progress=0, error=True)

    def preview_released(self) -> "UploadTask":
        return replace(self, preview_handle=None)

    def deleting(self) -> "UploadTask":
        return replace(self, phase=TaskPhase.DELETING)

    def delete_failed(self, previous_phase: TaskPhase) -> "UploadTask":
        if previous_phase == TaskPhase.FAILED:
            return self.failed()
        return replace(self, phase=previous_phase, error=True)
