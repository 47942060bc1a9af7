from __future__ import annotations

import threading
import tkinter as tk
from tkinter import messagebox, ttk
from typing import Callable, Optional

from PIL import ImageTk

from batchmover.core.apply import ApplyReport
from batchmover.infra.preview import PreviewRenderer, PreviewResult


class PreviewWindow(tk.Toplevel):
    """Shows the rendered preview of one file; rendering runs off the UI thread."""

    def __init__(
        self,
        master: tk.Misc,
        *,
        renderer: PreviewRenderer,
        path: str,
        extension: str,
        title: str,
        on_close: Optional[Callable[[], None]] = None,
    ):
        super().__init__(master)
        self.title(f"Preview: {title}")
        self.transient(master)
        self._on_close = on_close
        self._photo: ImageTk.PhotoImage | None = None

        size = renderer.size
        self.label = ttk.Label(self, text="Rendering …", anchor=tk.CENTER)
        self.label.pack(fill=tk.BOTH, expand=True, padx=10, pady=10)
        self.geometry(f"{size + 20}x{size + 60}")
        ttk.Button(self, text="Close", command=self.close).pack(pady=(0, 10))
        self.protocol("WM_DELETE_WINDOW", self.close)

        t = threading.Thread(target=self._worker, args=(renderer, path, extension), daemon=True)
        t.start()

    def _worker(self, renderer: PreviewRenderer, path: str, extension: str) -> None:
        result = renderer.render(path, extension)
        try:
            self.after(0, lambda: self._show(result))
        except tk.TclError:
            # Window closed while rendering
            pass

    def _show(self, result: PreviewResult) -> None:
        if not self.winfo_exists():
            return
        if result.image is None:
            self.label.config(text=f"No preview available\n{result.message}")
            return
        self._photo = ImageTk.PhotoImage(result.image)
        self.label.config(image=self._photo, text="")

    def close(self) -> None:
        try:
            if self._on_close:
                self._on_close()
        finally:
            self.destroy()


def show_apply_result(master: tk.Misc, report: ApplyReport) -> None:
    if report.ok:
        messagebox.showinfo("Apply", f"All files moved.\n\n{report.summary()}", parent=master)
        return

    lines = [report.summary(), ""]
    for op in report.operation_errors():
        lines.append(f"Operation {op.number}: cannot create {op.target_folder}: {op.error}")
    for f in report.failures()[:20]:
        lines.append(f"{f.source}: {f.error}")
    if len(report.failures()) > 20:
        lines.append(f"… and {len(report.failures()) - 20} more (see log)")
    messagebox.showwarning("Apply", "\n".join(lines), parent=master)


def ask_apply_confirm(master: tk.Misc, file_count: int, warnings: list[str]) -> bool:
    msg = f"Move/rename {file_count} file(s) now?"
    if warnings:
        msg += "\n\nWarnings:\n" + "\n".join(warnings[:10])
    return messagebox.askyesno("Apply All", msg, parent=master)
