from __future__ import annotations

import tkinter as tk
from tkinter import messagebox, ttk

from batchmover.core.operations import NotFound, Operation
from batchmover.ui.dialogs import PreviewWindow
from batchmover.ui.widgets import FileTable, LabeledEntry


class OperationPanel(ttk.Frame):
    """Collapsible box for one operation. Rebuilt by the main window after every change."""

    def __init__(self, master, *, app, op: Operation, number: int):
        super().__init__(master, padding=8, relief=tk.GROOVE, borderwidth=1)
        self.app = app
        self.op_id = op.op_id
        self.subfolder: LabeledEntry | None = None
        self.table: FileTable | None = None

        header = ttk.Frame(self)
        header.pack(fill=tk.X)
        ttk.Label(header, text=f"Operation {number}", font=("TkDefaultFont", 11, "bold")).pack(side=tk.LEFT)
        ttk.Button(header, text="X", width=3, command=self._remove_operation).pack(side=tk.RIGHT)
        ttk.Button(header, text=("▲" if op.expanded else "▼"), width=3, command=self._toggle).pack(
            side=tk.RIGHT, padx=4
        )

        if not op.expanded:
            ttk.Label(header, text=f"  {len(op.files)} file(s)").pack(side=tk.LEFT)
            return

        btns = ttk.Frame(self)
        btns.pack(fill=tk.X, pady=(6, 2))
        ttk.Button(btns, text="Select Files", command=self._select_files).pack(side=tk.LEFT)
        ttk.Button(btns, text="Select Destination", command=self._select_destination).pack(side=tk.LEFT, padx=6)

        ttk.Label(self, text=f"Destination: {op.destination or 'No folder selected'}").pack(anchor=tk.W, pady=2)

        self.subfolder = LabeledEntry(self, "Subfolder (optional):", width=40)
        self.subfolder.set(op.subfolder)
        self.subfolder.pack(fill=tk.X, pady=2)
        self.subfolder.entry.bind("<Return>", lambda _e: self._commit_subfolder())
        self.subfolder.entry.bind("<FocusOut>", lambda _e: self._commit_subfolder())

        if not op.files:
            return

        self.table = FileTable(self, on_rename=self._rename, height=min(8, max(2, len(op.files))))
        self.table.pack(fill=tk.BOTH, expand=True, pady=(6, 2))
        renderer = self.app.renderer
        rows = []
        for fd in op.files:
            if renderer.kind_for(fd.extension) is None:
                preview = ""
            else:
                preview = "shown" if op.is_preview_visible(fd.original_path) else "-"
            rows.append((fd.original_path, fd.original_name, op.resolved_name(fd), preview, len(fd.stem)))
        self.table.set_rows(rows)

        row_btns = ttk.Frame(self)
        row_btns.pack(fill=tk.X)
        ttk.Button(row_btns, text="Show Preview", command=self._show_preview).pack(side=tk.LEFT)
        ttk.Button(row_btns, text="Remove File", command=self._remove_file).pack(side=tk.LEFT, padx=6)
        ttk.Label(row_btns, text="Double-click a final name to edit it.").pack(side=tk.RIGHT)

    # --- actions ---

    def _guard(self) -> bool:
        if self.app.busy:
            messagebox.showinfo("Busy", "Apply is running. Please wait.", parent=self)
            return False
        return True

    def _toggle(self) -> None:
        self.app.controller.toggle_expanded(self.op_id)
        self.app.refresh()

    def _remove_operation(self) -> None:
        if not self._guard():
            return
        self.app.controller.remove_operation(self.op_id)
        self.app.refresh()

    def _select_files(self) -> None:
        if not self._guard():
            return
        self.app.controller.select_files(self.op_id)
        self.app.refresh()

    def _select_destination(self) -> None:
        if not self._guard():
            return
        self.app.controller.select_destination(self.op_id)
        self.app.refresh()

    def commit_pending(self) -> None:
        """Store edits that are typed but not yet confirmed (subfolder, inline rename)."""
        if self.table is not None:
            self.table.commit_edit()
        if self.subfolder is not None:
            self._commit_subfolder()

    def _commit_subfolder(self) -> None:
        if self.subfolder is None:
            return
        op = self.app.controller.store.find(self.op_id)
        if op is None or op.subfolder == self.subfolder.get():
            return
        self.app.controller.set_subfolder(self.op_id, self.subfolder.get())

    def _rename(self, path: str, raw_name: str) -> None:
        if self.app.busy:
            return
        try:
            name = self.app.controller.rename_file(self.op_id, path, raw_name)
        except NotFound:
            return
        self.app.log.append_line(f"[local] {path} -> {name}")
        # Defer so the inline editor finishes tearing down first
        self.after_idle(self.app.refresh)

    def _remove_file(self) -> None:
        if not self._guard():
            return
        path = self.table.selected_path()
        if not path:
            messagebox.showinfo("Remove File", "Select a file first.", parent=self)
            return
        self.app.controller.remove_file(self.op_id, path)
        self.app.refresh()

    def _show_preview(self) -> None:
        path = self.table.selected_path()
        if not path:
            messagebox.showinfo("Preview", "Select a file first.", parent=self)
            return
        op = self.app.controller.store.find(self.op_id)
        fd = op.find_file(path) if op else None
        if fd is None:
            return
        if self.app.renderer.kind_for(fd.extension) is None:
            messagebox.showinfo("Preview", f"No preview for .{fd.extension or '?'} files.", parent=self)
            return

        self.app.controller.set_preview(self.op_id, path, True)
        self.app.refresh()

        def _closed() -> None:
            try:
                self.app.controller.set_preview(self.op_id, path, False)
            except NotFound:
                return
            self.app.refresh()

        PreviewWindow(
            self.app,
            renderer=self.app.renderer,
            path=path,
            extension=fd.extension,
            title=fd.original_name,
            on_close=_closed,
        )
