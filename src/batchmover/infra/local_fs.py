from __future__ import annotations

import errno
import os
import shutil

from batchmover.core.services import FsResult


def _same_file(a: str, b: str) -> bool:
    # True for a case-only rename on a case-insensitive filesystem
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


class LocalFileSystem:
    """Filesystem service backed by the local OS.

    With `no_overwrite` a move onto an existing file is refused instead of replacing it.
    """

    def __init__(self, *, no_overwrite: bool = True) -> None:
        self.no_overwrite = no_overwrite

    def ensure_folder_exists(self, path: str) -> FsResult:
        if not path:
            return FsResult.failure("Folder path is empty")
        if os.path.isdir(path):
            return FsResult.success()
        if os.path.lexists(path):
            return FsResult.failure(f"Not a directory: {path}")
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as exc:
            return FsResult.failure(exc.strerror or str(exc))
        return FsResult.success()

    def move_file(self, old_path: str, new_path: str) -> FsResult:
        if not os.path.lexists(old_path):
            return FsResult.failure(f"Source file not found: {old_path}")

        if os.path.abspath(old_path) == os.path.abspath(new_path):
            return FsResult.success()

        if self.no_overwrite and os.path.lexists(new_path) and not _same_file(old_path, new_path):
            return FsResult.failure(f"Target already exists: {new_path}")

        try:
            os.rename(old_path, new_path)
        except OSError as exc:
            if exc.errno != errno.EXDEV:
                return FsResult.failure(exc.strerror or str(exc))
            # Different filesystem: copy + delete
            try:
                shutil.move(old_path, new_path)
            except OSError as exc2:
                return FsResult.failure(exc2.strerror or str(exc2))
        return FsResult.success()
