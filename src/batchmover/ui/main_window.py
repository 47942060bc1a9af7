from __future__ import annotations

import threading
import tkinter as tk
from tkinter import messagebox, ttk

from batchmover.core.apply import AfterApply, ApplyReport, collision_warnings, planned_moves
from batchmover.core.controller import BatchController
from batchmover.infra.journal import append_journal, journal_path, read_journal
from batchmover.infra.local_fs import LocalFileSystem
from batchmover.infra.pickers import TkPicker
from batchmover.infra.preview import PreviewRenderer
from batchmover.infra.settings import AppSettings, load_settings, save_settings
from batchmover.ui.dialogs import ask_apply_confirm, show_apply_result
from batchmover.ui.operation_panel import OperationPanel
from batchmover.ui.widgets import LogText, ScrollFrame


class MainWindow(ttk.Frame):
    def __init__(self, master: tk.Misc):
        super().__init__(master)
        self.master = master
        self.settings: AppSettings = load_settings()
        self.busy = False
        self._cancel_event: threading.Event | None = None

        top = ttk.Frame(self)
        top.pack(fill=tk.X, padx=10, pady=(10, 4))
        ttk.Label(top, text="Batch File Mover", font=("TkDefaultFont", 14, "bold")).pack(side=tk.LEFT)
        ttk.Button(top, text="➕ Add New Operation", command=self._add_operation).pack(side=tk.LEFT, padx=12)

        self.undo_btn = ttk.Button(top, text="Undo last apply", command=self._undo)
        self.undo_btn.pack(side=tk.RIGHT)
        self.cancel_btn = ttk.Button(top, text="Cancel", command=self._cancel, state=tk.DISABLED)
        self.cancel_btn.pack(side=tk.RIGHT, padx=6)
        self.apply_btn = ttk.Button(top, text="Apply All", command=self._apply_all)
        self.apply_btn.pack(side=tk.RIGHT)

        self.ops_area = ScrollFrame(self)
        self.ops_area.pack(fill=tk.BOTH, expand=True, padx=10, pady=4)

        log_frm = ttk.LabelFrame(self, text="Log")
        log_frm.pack(fill=tk.X, padx=10, pady=(4, 10))
        self.log = LogText(log_frm, height=8)
        self.log.pack(fill=tk.BOTH, expand=True)

        self.controller = BatchController(
            fs=LocalFileSystem(no_overwrite=self.settings.no_overwrite),
            picker=TkPicker(master),
            after_apply=AfterApply.parse(self.settings.after_apply),
            journal_writer=append_journal,
            journal_reader=read_journal,
            log=self._log_line,
        )
        self.controller.last_destination = self.settings.last_destination
        self.renderer = PreviewRenderer(
            image_exts=self.settings.image_exts,
            mesh_exts=self.settings.mesh_exts,
            size=self.settings.preview_size,
            log=self._log_line,
        )

        self.log.append_line(f"[local] journal: {journal_path()}")
        self.refresh()

        # Save settings on close
        self.master.protocol("WM_DELETE_WINDOW", self._on_close)

    def _log_line(self, line: str) -> None:
        # Worker threads must not touch Tk widgets directly
        if threading.current_thread() is threading.main_thread():
            self.log.append_line(line)
        else:
            self.after(0, lambda l=line: self.log.append_line(l))

    def refresh(self) -> None:
        for child in self.ops_area.inner.winfo_children():
            child.destroy()

        ops = self.controller.store.operations
        if not ops:
            ttk.Label(self.ops_area.inner, text="No operations yet. Click “Add New Operation”.").pack(
                anchor=tk.W, pady=10
            )
        for number, op in enumerate(ops, start=1):
            OperationPanel(self.ops_area.inner, app=self, op=op, number=number).pack(fill=tk.X, pady=(0, 10))

    def _add_operation(self) -> None:
        if self.busy:
            return
        self.controller.add_operation()
        self.refresh()

    def _commit_pending_edits(self) -> None:
        # Focus events are queued, so unconfirmed entries are committed here before reading the store
        for child in self.ops_area.inner.winfo_children():
            if isinstance(child, OperationPanel):
                child.commit_pending()

    def _set_busy(self, busy: bool) -> None:
        self.busy = busy
        self.apply_btn.config(state=(tk.DISABLED if busy else tk.NORMAL))
        self.undo_btn.config(state=(tk.DISABLED if busy else tk.NORMAL))
        self.cancel_btn.config(state=(tk.NORMAL if busy else tk.DISABLED))

    def _apply_all(self) -> None:
        if self.busy:
            return
        self._commit_pending_edits()
        ops = self.controller.store.operations
        n = sum(len(planned_moves(op)) for op in ops)
        if n == 0:
            messagebox.showinfo("Apply All", "Nothing to apply (files and destination required).", parent=self)
            return
        if not ask_apply_confirm(self, n, collision_warnings(ops)):
            self.log.append_line("[local] apply cancelled by user")
            return

        self._cancel_event = threading.Event()
        self._set_busy(True)
        self.log.append_line(f"[local] applying {n} move(s)...")
        t = threading.Thread(target=self._worker_apply, args=(self._cancel_event,), daemon=True)
        t.start()

    def _worker_apply(self, cancel_event: threading.Event) -> None:
        try:
            report = self.controller.apply_all(cancel_event=cancel_event)
        except Exception as exc:  # noqa: BLE001
            self.after(0, lambda e=exc: self._apply_crashed(e))
            return
        self.after(0, lambda r=report: self._apply_done(r))

    def _apply_done(self, report: ApplyReport) -> None:
        self._set_busy(False)
        self.refresh()
        show_apply_result(self, report)

    def _apply_crashed(self, exc: Exception) -> None:
        self._set_busy(False)
        self.log.append_line(f"[local] ERROR: {exc}")
        messagebox.showerror("Apply", f"{type(exc).__name__}: {exc}", parent=self)
        self.refresh()

    def report_callback_exception(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        self.log.append_line(f"[local] ERROR: {exc_type.__name__}: {exc}")
        messagebox.showerror("Error", f"{exc_type.__name__}: {exc}", parent=self)

    def _cancel(self) -> None:
        if self._cancel_event is not None:
            self._cancel_event.set()
            self.log.append_line("[local] cancel requested, finishing current file…")

    def _undo(self) -> None:
        if self.busy:
            return
        if not messagebox.askyesno("Undo", "Move the files of the last apply back?", parent=self):
            return
        outcomes = self.controller.undo_last_apply()
        if outcomes is None:
            messagebox.showinfo("Undo", "Nothing to undo.", parent=self)
            return
        failed = [o for o in outcomes if not o.ok]
        if failed:
            messagebox.showwarning("Undo", f"{len(failed)} of {len(outcomes)} file(s) could not be restored (see log).", parent=self)
        else:
            messagebox.showinfo("Undo", f"{len(outcomes)} file(s) restored.", parent=self)

    def _on_close(self) -> None:
        if self._cancel_event is not None:
            self._cancel_event.set()
        try:
            self.settings.last_destination = self.controller.last_destination
            self.settings.window_geometry = self.master.winfo_geometry()
            save_settings(self.settings)
        finally:
            self.master.destroy()
