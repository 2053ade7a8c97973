"""
Tests for the upload task model.
"""
from pathlib import Path

from image_uploader.client.preview import PreviewRegistry
from image_uploader.client.task import FileRef, TaskPhase, UploadTask


def make_task(**kwargs) -> UploadTask:
    file = FileRef.from_bytes("photo.png", b"\x89PNG" * 10)
    return UploadTask(id="task-1", file=file, **kwargs)


class TestFileRef:
    """Tests for FileRef."""

    def test_from_bytes_guesses_content_type(self):
        file = FileRef.from_bytes("photo.png", b"abc")
        assert file.content_type == "image/png"
        assert file.size == 3

    def test_from_path(self, tmp_path: Path):
        path = tmp_path / "holiday.jpg"
        path.write_bytes(b"x" * 300)

        file = FileRef.from_path(path)

        assert file.name == "holiday.jpg"
        assert file.size == 300
        assert file.content_type == "image/jpeg"
        assert b"".join(file.iter_chunks(128)) == b"x" * 300

    def test_iter_chunks_sizes(self):
        file = FileRef.from_bytes("a.png", b"0123456789")
        assert [len(chunk) for chunk in file.iter_chunks(4)] == [4, 4, 2]

    def test_unknown_extension_falls_back(self):
        assert FileRef.from_bytes("blob", b"").content_type == "application/octet-stream"


class TestUploadTaskTransitions:
    """Tests for UploadTask state changes."""

    def test_progress_never_decreases(self):
        task = make_task().start_upload()
        for percent in [10, 40, 25, 40, 70, 5]:
            task = task.with_progress(percent)
        assert task.progress == 70

    def test_progress_stays_below_100_until_completed(self):
        task = make_task().start_upload().with_progress(100)
        assert task.progress == 99

        task = task.completed()
        assert task.progress == 100
        assert task.phase == TaskPhase.COMPLETED
        assert task.error is False

    def test_progress_ignored_outside_uploading(self):
        task = make_task()
        assert task.with_progress(50) is task

    def test_failed_resets_progress(self):
        task = make_task().start_upload().with_progress(60).failed()
        assert task.phase == TaskPhase.FAILED
        assert task.progress == 0
        assert task.error is True

    def test_delete_failed_restores_previous_phase(self):
        task = make_task().start_upload().completed().deleting()
        assert task.is_deleting

        task = task.delete_failed(TaskPhase.COMPLETED)
        assert task.phase == TaskPhase.COMPLETED
        assert task.error is True
        assert task.progress == 100

    def test_authorized_sets_key_only(self):
        task = make_task().start_upload()
        updated = task.authorized("abc-photo.png")
        assert updated.storage_key == "abc-photo.png"
        assert updated.progress == 0
        assert task.storage_key is None


class TestPreviewRegistry:
    """Tests for PreviewRegistry."""

    def test_release_exactly_once(self):
        registry = PreviewRegistry()
        file = FileRef.from_bytes("photo.png", b"abc")
        handle = registry.create(file)

        assert registry.resolve(handle) is file
        assert registry.release(handle) is True
        assert registry.release(handle) is False
        assert registry.released == 1
        assert registry.live == 0
        assert registry.resolve(handle) is None

    def test_handles_are_unique(self):
        registry = PreviewRegistry()
        file = FileRef.from_bytes("photo.png", b"abc")
        handles = {registry.create(file) for _ in range(20)}
        assert len(handles) == 20
        assert registry.live == 20
