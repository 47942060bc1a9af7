from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol


@dataclass(frozen=True)
class FsResult:
    ok: bool
    error: str = ""

    @classmethod
    def success(cls) -> "FsResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, reason: str) -> "FsResult":
        return cls(ok=False, error=reason or "unknown error")


class FileSystemService(Protocol):
    def ensure_folder_exists(self, path: str) -> FsResult:
        """Create `path` (recursively) if missing. Calling it again is a no-op."""
        ...

    def move_file(self, old_path: str, new_path: str) -> FsResult:
        """Rename/move one file. A missing `old_path` is a failure, never a no-op."""
        ...


class PickerService(Protocol):
    def select_files(self, *, initial_dir: str = "") -> List[str]:
        """Selected file paths; an empty list when the dialog was dismissed."""
        ...

    def select_folder(self, *, initial_dir: str = "") -> Optional[str]:
        """Selected folder, or None when the dialog was dismissed."""
        ...
