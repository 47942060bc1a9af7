from __future__ import annotations

"""Pytest configuration.

The application code lives in the local "src" folder. For development and CI we want
`pytest` to work without requiring a prior `pip install -e .`.
"""

import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from batchmover.core.services import FsResult  # noqa: E402


class FakeFileSystem:
    """Records calls; individual folders/moves can be told to fail."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []
        self.fail_folders: dict[str, str] = {}
        self.fail_moves: dict[str, str] = {}

    def ensure_folder_exists(self, path: str) -> FsResult:
        self.calls.append(("mkdir", path))
        if path in self.fail_folders:
            return FsResult.failure(self.fail_folders[path])
        return FsResult.success()

    def move_file(self, old_path: str, new_path: str) -> FsResult:
        self.calls.append(("mv", old_path, new_path))
        if old_path in self.fail_moves:
            return FsResult.failure(self.fail_moves[old_path])
        return FsResult.success()


class FakePicker:
    def __init__(self, files=None, folder=None) -> None:
        self.files = list(files or [])
        self.folder = folder

    def select_files(self, *, initial_dir: str = "") -> list[str]:
        return list(self.files)

    def select_folder(self, *, initial_dir: str = ""):
        return self.folder


@pytest.fixture
def fake_fs() -> FakeFileSystem:
    return FakeFileSystem()


@pytest.fixture
def app_dirs(tmp_path, monkeypatch):
    """Redirect platformdirs config/data dirs into tmp_path."""
    from batchmover.infra import journal, settings

    cfg = tmp_path / "config"
    data = tmp_path / "data"
    monkeypatch.setattr(settings, "user_config_dir", lambda app: str(cfg))
    monkeypatch.setattr(journal, "user_data_dir", lambda app: str(data))
    return cfg, data
