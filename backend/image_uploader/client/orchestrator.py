"""
Upload orchestrator.

Owns the collection of upload tasks and drives each one through its
upload sequence independently:

1. idle -> uploading: request a presigned URL
2. store the storage key, PUT the bytes, publish progress
3. acknowledged -> completed (progress 100)
4. any failure -> failed (progress 0, error flag)

All sequences run as separate asyncio tasks on one event loop. The
collection is an arena keyed by task id; every change is a
read-modify-write of a single entry, so interleaved sequences never
overwrite each other's state.

Removing a task whose sequence is still running cancels the sequence
first, so a finished transfer can never resurrect a removed task. If the
sequence already holds a storage key, the object is deleted remotely.
"""
import asyncio
import logging
import time
from typing import Callable, Dict, List, Optional, Sequence

import httpx

from image_uploader.client import notifications
from image_uploader.client.notifications import LoggingNotifier, Notifier
from image_uploader.client.preview import PreviewRegistry
from image_uploader.client.task import FileRef, TaskPhase, UploadTask, new_task_id
from image_uploader.client.transport import AuthorizationClient, StorageTransfer
from image_uploader.config import ClientSettings
from image_uploader.errors import DeletionRollbackError, TransferError, UploaderError
from image_uploader.utils.logging import log_task_removed, log_upload_completed, log_upload_failed
from image_uploader.utils.metrics import upload_bytes_total, uploads_total

logger = logging.getLogger(__name__)

Listener = Callable[[List[UploadTask]], None]


class UploadOrchestrator:
    """
    Drives upload tasks and exposes them as an observable collection.

    Args:
        api: Client for the authorization endpoints
        transfer: Direct-to-storage uploader
        notifier: Receives user-facing messages
        previews: Registry for local preview handles
    """

    def __init__(
        self,
        api: AuthorizationClient,
        transfer: StorageTransfer,
        notifier: Optional[Notifier] = None,
        previews: Optional[PreviewRegistry] = None
    ):
        self.api = api
        self.transfer = transfer
        self.notifier = notifier or LoggingNotifier()
        self.previews = previews or PreviewRegistry()
        self._tasks: Dict[str, UploadTask] = {}
        self._runners: Dict[str, asyncio.Task] = {}
        self._errors: Dict[str, UploaderError] = {}
        self._listeners: List[Listener] = []
        self._owned_clients: List[httpx.AsyncClient] = []
        self._closed = False

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        notifier: Optional[Notifier] = None
    ) -> "UploadOrchestrator":
        """Build an orchestrator with its own HTTP clients; close() releases them."""
        api_http = httpx.AsyncClient(base_url=settings.api_url, timeout=settings.timeout)
        storage_http = httpx.AsyncClient(timeout=settings.timeout)
        orchestrator = cls(
            AuthorizationClient(api_http),
            StorageTransfer(storage_http, chunk_size=settings.chunk_size),
            notifier=notifier
        )
        orchestrator._owned_clients = [api_http, storage_http]
        return orchestrator

    # ------------------------------------------------------------------
    # Observable collection
    # ------------------------------------------------------------------

    def snapshot(self) -> List[UploadTask]:
        """Current tasks in insertion (display) order."""
        return list(self._tasks.values())

    def get(self, task_id: str) -> Optional[UploadTask]:
        return self._tasks.get(task_id)

    def last_error(self, task_id: str) -> Optional[UploaderError]:
        """Error behind the task's error flag, if any."""
        return self._errors.get(task_id)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with the snapshot after every change.

        Returns:
            A callable that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Task listener failed")

    def _update(self, task_id: str, change: Callable[[UploadTask], UploadTask]) -> Optional[UploadTask]:
        """Replace the task at task_id with change(task). Removed tasks are left alone."""
        current = self._tasks.get(task_id)
        if current is None:
            return None
        updated = change(current)
        if updated is not current:
            self._tasks[task_id] = updated
            self._publish()
        return updated

    def _discard(self, task_id: str) -> None:
        if self._tasks.pop(task_id, None) is not None:
            self._publish()

    # ------------------------------------------------------------------
    # Adding files
    # ------------------------------------------------------------------

    def add_files(self, files: Sequence[FileRef]) -> List[UploadTask]:
        """
        Create one task per file and start every upload immediately.

        Must be called from a running event loop. Tasks created in the
        same call upload concurrently with no ordering guarantee.
        """
        if self._closed:
            raise RuntimeError("UploadOrchestrator is closed")

        created = []
        for file in files:
            task = UploadTask(
                id=new_task_id(),
                file=file,
                preview_handle=self.previews.create(file)
            )
            self._tasks[task.id] = task
            created.append(task)
        if created:
            self._publish()

        for task in created:
            runner = asyncio.create_task(self._run_upload(task.id), name=f"upload-{task.id}")
            self._runners[task.id] = runner
            runner.add_done_callback(lambda _, task_id=task.id: self._runners.pop(task_id, None))

        return created

    async def _run_upload(self, task_id: str) -> None:
        """Upload sequence for one task. Failures end here as task state."""
        start_time = time.time()
        task = self._update(task_id, UploadTask.start_upload)
        if task is None:
            return
        file = task.file

        try:
            grant = await self.api.authorize(file)
        except UploaderError as e:
            self._fail_upload(task_id, e, "authorization", start_time)
            self.notifier.error(notifications.AUTHORIZATION_FAILED)
            return

        self._update(task_id, lambda t: t.authorized(grant.storage_key))

        def on_progress(sent: int, total: int) -> None:
            if total > 0:
                percent = round(sent / total * 100)
                self._update(task_id, lambda t: t.with_progress(percent))

        try:
            await self.transfer.put(grant.authorized_upload_url, file, on_progress)
        except UploaderError as e:
            self._fail_upload(task_id, e, "transfer", start_time, grant.storage_key)
            self.notifier.error(notifications.UPLOAD_FAILED)
            return
        except OSError as e:
            # Reading the local file failed mid-stream
            error = TransferError("Could not read file", context={"filename": file.name}, cause=e)
            self._fail_upload(task_id, error, "transfer", start_time, grant.storage_key)
            self.notifier.error(notifications.UPLOAD_FAILED)
            return

        self._errors.pop(task_id, None)
        self._update(task_id, UploadTask.completed)
        uploads_total.labels(status="completed").inc()
        upload_bytes_total.inc(file.size)
        log_upload_completed(
            logger,
            task_id=task_id,
            storage_key=grant.storage_key,
            size=file.size,
            duration_ms=(time.time() - start_time) * 1000
        )
        self.notifier.success(notifications.UPLOAD_SUCCEEDED)

    def _fail_upload(
        self,
        task_id: str,
        error: UploaderError,
        stage: str,
        start_time: float,
        storage_key: Optional[str] = None
    ) -> None:
        self._errors[task_id] = error
        self._update(task_id, UploadTask.failed)
        uploads_total.labels(status="failed").inc()
        log_upload_failed(
            logger,
            task_id=task_id,
            error=error.message,
            stage=stage,
            storage_key=storage_key,
            duration_ms=(time.time() - start_time) * 1000
        )

    async def wait(self) -> None:
        """Wait until every running upload sequence has finished."""
        while self._runners:
            await asyncio.wait(list(self._runners.values()))

    # ------------------------------------------------------------------
    # Removing files
    # ------------------------------------------------------------------

    async def remove_file(self, task_id: str) -> bool:
        """
        Remove a task, deleting its object from storage when one exists.

        The preview handle is released first, whatever happens next.

        Returns:
            True if the task was removed, False if it is unknown, already
            being deleted, or the remote delete failed (the task then keeps
            its previous phase with the error flag set)
        """
        task = self._tasks.get(task_id)
        if task is None or task.is_deleting:
            return False

        if task.preview_handle is not None:
            self.previews.release(task.preview_handle)
        previous_phase = task.phase
        self._update(task_id, lambda t: t.preview_released().deleting())

        runner = self._runners.get(task_id)
        if runner is not None and not runner.done():
            runner.cancel()
            await asyncio.wait([runner])
            # The interrupted upload cannot resume
            previous_phase = TaskPhase.FAILED

        storage_key = self._tasks[task_id].storage_key
        if storage_key is None:
            self._errors.pop(task_id, None)
            self._discard(task_id)
            log_task_removed(logger, task_id=task_id)
            return True

        try:
            await self.api.delete(storage_key)
        except UploaderError as e:
            self._errors[task_id] = DeletionRollbackError(
                e.message,
                context={"task_id": task_id, "storage_key": storage_key},
                cause=e
            )
            self._update(task_id, lambda t: t.delete_failed(previous_phase))
            logger.warning(
                f"Delete failed, task {task_id} rolled back to {previous_phase.value}",
                extra={
                    "event": "deletion_rolled_back",
                    "task_id": task_id,
                    "storage_key": storage_key,
                    "error": e.message
                }
            )
            self.notifier.error(notifications.REMOVE_FAILED)
            return False

        self._errors.pop(task_id, None)
        self._discard(task_id)
        log_task_removed(logger, task_id=task_id, storage_key=storage_key)
        self.notifier.success(notifications.REMOVE_SUCCEEDED)
        return True

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """
        Tear down the orchestrator.

        Releases every remaining preview handle regardless of phase,
        cancels running upload sequences and closes owned HTTP clients.
        Tasks stay in the collection for a final snapshot.
        """
        if self._closed:
            return
        self._closed = True

        for task in self.snapshot():
            if task.preview_handle is not None:
                self.previews.release(task.preview_handle)
                self._tasks[task.id] = task.preview_released()

        runners = [runner for runner in self._runners.values() if not runner.done()]
        for runner in runners:
            runner.cancel()
        if runners:
            await asyncio.wait(runners)

        for client in self._owned_clients:
            await client.aclose()

    async def __aenter__(self) -> "UploadOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
