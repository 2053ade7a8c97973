"""
Local preview handles.

A preview handle is a memory-backed reference to a selected file that
lets the presentation layer render a thumbnail without reading the file
again. Every handle holds the file in memory until it is released, so
each one must be released exactly once: when its task is removed, or
when the orchestrator is closed.
"""
import logging
import uuid
from typing import Dict, Optional

from image_uploader.client.task import FileRef

logger = logging.getLogger(__name__)


class PreviewRegistry:
    """Creates, resolves and releases preview handles."""

    def __init__(self):
        self._handles: Dict[str, FileRef] = {}
        self.created = 0
        self.released = 0

    def create(self, file: FileRef) -> str:
        handle = f"preview:{uuid.uuid4().hex}"
        self._handles[handle] = file
        self.created += 1
        return handle

    def resolve(self, handle: str) -> Optional[FileRef]:
        return self._handles.get(handle)

    def release(self, handle: str) -> bool:
        """
        Release a handle.

        Returns:
            True if the handle was live, False if it was already released
        """
        if self._handles.pop(handle, None) is None:
            logger.debug(f"Preview handle {handle} already released")
            return False
        self.released += 1
        return True

    @property
    def live(self) -> int:
        """Number of handles not yet released."""
        return len(self._handles)
