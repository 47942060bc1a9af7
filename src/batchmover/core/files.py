from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class FileDescriptor:
    """Metadata derived once from a selected file path.

    `extension` is lowercased and excludes the dot. A name without a dot (or with a
    trailing dot) has no extension and its stem is the whole name.
    """

    original_path: str
    original_name: str
    extension: str
    stem: str

    def default_target_name(self) -> str:
        return join_name(self.stem, self.extension)


def join_name(stem: str, extension: str) -> str:
    if not extension:
        return stem
    return f"{stem}.{extension}"


def build_file_descriptor(path: str) -> FileDescriptor:
    if not path:
        raise ValueError("File path must not be empty")

    name = os.path.basename(path)
    if not name:
        raise ValueError(f"File path has no name component: {path}")

    stem, dot, ext = name.rpartition(".")
    if not dot or not ext:
        # No dot at all, or "name." -> nothing after the last dot
        return FileDescriptor(original_path=path, original_name=name, extension="", stem=name)

    return FileDescriptor(original_path=path, original_name=name, extension=ext.lower(), stem=stem)
