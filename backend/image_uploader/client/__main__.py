#!/usr/bin/env python3
"""
Upload image files through the authorization service.

Usage:
    python -m image_uploader.client photo.png holiday.jpg

    # Against another deployment:
    UPLOADER_API_URL=https://uploads.example.com/api python -m image_uploader.client *.png

    # Delete the objects again once uploaded:
    python -m image_uploader.client --cleanup photo.png
"""
import argparse
import asyncio
import sys

from image_uploader.client.intake import DropIntake, handle_drop
from image_uploader.client.orchestrator import UploadOrchestrator
from image_uploader.client.task import FileRef, TaskPhase
from image_uploader.config import ClientSettings
from image_uploader.utils.logging import configure_logging


async def run(paths, cleanup: bool) -> int:
    settings = ClientSettings()
    intake = DropIntake(max_files=settings.max_files, max_file_size=settings.max_file_size)

    try:
        files = [FileRef.from_path(path) for path in paths]
    except OSError as e:
        print(f"ERROR: {e}")
        return 2

    async with UploadOrchestrator.from_settings(settings) as orchestrator:
        handle_drop(intake, orchestrator, files)
        await orchestrator.wait()

        tasks = orchestrator.snapshot()
        for task in tasks:
            print(f"  {task.file.name}: {task.phase.value} {task.progress}% key={task.storage_key or '-'}")
        failed = [task for task in tasks if task.error]

        if cleanup:
            for task in tasks:
                if task.phase == TaskPhase.COMPLETED:
                    await orchestrator.remove_file(task.id)

    print(f"\n{len(tasks) - len(failed)} of {len(files)} files uploaded")
    return 1 if failed or len(tasks) < len(files) else 0


def main():
    parser = argparse.ArgumentParser(description='Upload image files directly to storage')
    parser.add_argument('paths', nargs='+', help='Image files to upload')
    parser.add_argument('--cleanup', action='store_true',
                        help='Delete each uploaded object after the batch finishes')
    parser.add_argument('--log-level', default='WARNING',
                        help='Log level for structured logs (default: WARNING)')
    args = parser.parse_args()

    configure_logging('uploader-client', args.log_level, stream=sys.stderr)
    sys.exit(asyncio.run(run(args.paths, args.cleanup)))


if __name__ == '__main__':
    main()
