from __future__ import annotations

import tkinter as tk
from tkinter import filedialog
from typing import List, Optional


class TkPicker:
    """Native file/folder dialogs. A dismissed dialog yields [] / None."""

    def __init__(self, master: tk.Misc) -> None:
        self.master = master

    def select_files(self, *, initial_dir: str = "") -> List[str]:
        paths = filedialog.askopenfilenames(
            parent=self.master,
            title="Select files",
            initialdir=initial_dir or None,
        )
        # Tk returns "" (not an empty tuple) on some platforms when cancelled
        if not paths:
            return []
        return [str(p) for p in paths]

    def select_folder(self, *, initial_dir: str = "") -> Optional[str]:
        path = filedialog.askdirectory(
            parent=self.master,
            title="Select destination folder",
            initialdir=initial_dir or None,
            mustexist=False,
        )
        return str(path) if path else None
