from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .files import FileDescriptor, build_file_descriptor, join_name


class NotFound(KeyError):
    """A mutation referenced a file path or operation id that is not present."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "not found"


# Same rule as the rename field: drop a final ".ext" the user typed
_TYPED_EXT_RE = re.compile(r"\.[^/\\.]+$")


def _new_op_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class Operation:
    """One batch job: files, their target names and a destination folder.

    `target_names` and `preview_visible` are keyed by `FileDescriptor.original_path`
    and never hold entries for files that are no longer in `files`.
    """

    op_id: str = field(default_factory=_new_op_id)
    files: List[FileDescriptor] = field(default_factory=list)
    target_names: Dict[str, str] = field(default_factory=dict)
    destination: str = ""
    subfolder: str = ""
    # Presentation state only, ignored by apply
    preview_visible: Dict[str, bool] = field(default_factory=dict)
    expanded: bool = True

    def is_empty(self) -> bool:
        return not self.files

    def paths(self) -> List[str]:
        return [f.original_path for f in self.files]

    def find_file(self, path: str) -> Optional[FileDescriptor]:
        for f in self.files:
            if f.original_path == path:
                return f
        return None

    def _require_file(self, path: str) -> FileDescriptor:
        fd = self.find_file(path)
        if fd is None:
            raise NotFound(f"File not in operation {self.op_id}: {path}")
        return fd

    def target_folder(self) -> str:
        """Destination plus optional subfolder; empty when no destination is set."""
        if not self.destination:
            return ""
        sub = self.subfolder.strip().strip("/\\")
        if not sub:
            return self.destination
        return self.destination.rstrip("/\\") + "/" + sub

    def resolved_name(self, fd: FileDescriptor) -> str:
        name = self.target_names.get(fd.original_path)
        return fd.original_name if name is None else name

    # --- mutations ---

    def add_files(self, paths: Iterable[str]) -> List[FileDescriptor]:
        """Append files not already present, seeding their target names.

        Returns the descriptors that were actually added.
        """

        known = set(self.paths())
        added: List[FileDescriptor] = []
        for p in paths:
            if p in known:
                continue
            fd = build_file_descriptor(p)
            added.append(fd)
            known.add(p)

        self.files.extend(added)
        for fd in added:
            self.target_names[fd.original_path] = fd.default_target_name()
        return added

    def set_target_name(self, path: str, raw_name: str) -> str:
        """Store `raw_name` as the new stem; the original extension is always kept."""
        fd = self._require_file(path)
        stem = _TYPED_EXT_RE.sub("", raw_name)
        name = join_name(stem, fd.extension)
        self.target_names[path] = name
        return name

    def remove_file(self, path: str) -> FileDescriptor:
        fd = self._require_file(path)
        self.files = [f for f in self.files if f.original_path != path]
        self.target_names.pop(path, None)
        self.preview_visible.pop(path, None)
        return fd

    def set_destination(self, path: str) -> None:
        self.destination = path or ""

    def set_subfolder(self, text: str) -> None:
        self.subfolder = text or ""

    def toggle_preview(self, path: str, visible: bool) -> None:
        self._require_file(path)
        self.preview_visible[path] = bool(visible)

    def is_preview_visible(self, path: str) -> bool:
        return self.preview_visible.get(path, False)

    def toggle_expanded(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded
