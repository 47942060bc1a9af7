from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Callable, Dict, List, Optional, Tuple


class LabeledEntry(ttk.Frame):
    def __init__(self, master, label: str, *, width: int = 40):
        super().__init__(master)
        ttk.Label(self, text=label).pack(side=tk.LEFT, padx=(0, 6))
        self.var = tk.StringVar()
        self.entry = ttk.Entry(self, textvariable=self.var, width=width)
        self.entry.pack(side=tk.LEFT, fill=tk.X, expand=True)

    def get(self) -> str:
        return self.var.get().strip()

    def set(self, value: str) -> None:
        self.var.set(value)


class LogText(ttk.Frame):
    def __init__(self, master, *, height: int = 10):
        super().__init__(master)
        self.text = tk.Text(self, height=height, wrap=tk.WORD)
        ysb = ttk.Scrollbar(self, orient="vertical", command=self.text.yview)
        self.text.configure(yscrollcommand=ysb.set)
        self.text.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        ysb.pack(side=tk.RIGHT, fill=tk.Y)
        self.text.config(state=tk.DISABLED)

    def append_line(self, line: str) -> None:
        self.text.config(state=tk.NORMAL)
        self.text.insert(tk.END, line + "\n")
        self.text.see(tk.END)
        self.text.config(state=tk.DISABLED)

    def clear(self) -> None:
        self.text.config(state=tk.NORMAL)
        self.text.delete("1.0", tk.END)
        self.text.config(state=tk.DISABLED)


class ScrollFrame(ttk.Frame):
    """Vertically scrollable container; put children into `.inner`."""

    def __init__(self, master):
        super().__init__(master)
        self.canvas = tk.Canvas(self, highlightthickness=0)
        ysb = ttk.Scrollbar(self, orient="vertical", command=self.canvas.yview)
        self.canvas.configure(yscrollcommand=ysb.set)
        self.canvas.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        ysb.pack(side=tk.RIGHT, fill=tk.Y)

        self.inner = ttk.Frame(self.canvas)
        self._win = self.canvas.create_window((0, 0), window=self.inner, anchor="nw")
        self.inner.bind("<Configure>", lambda _e: self.canvas.configure(scrollregion=self.canvas.bbox("all")))
        self.canvas.bind("<Configure>", lambda e: self.canvas.itemconfigure(self._win, width=e.width))


class FileTable(ttk.Frame):
    """File list of one operation with an editable "Final Name" column.

    Double-click on the final name opens an inline editor with the stem pre-selected.
    Rows are identified by the file's original path.
    """

    COLUMNS = ("Previous Filename", "Final Name", "Preview")

    def __init__(
        self,
        master,
        *,
        on_rename: Callable[[str, str], None],
        height: int = 6,
    ):
        super().__init__(master)
        self._on_rename = on_rename
        self._path_by_iid: Dict[str, str] = {}
        self._stem_len: Dict[str, int] = {}
        self._editor: Optional[ttk.Entry] = None
        self._editing_iid: Optional[str] = None

        self.tree = ttk.Treeview(self, columns=self.COLUMNS, show="headings", height=height, selectmode="browse")
        for c in self.COLUMNS:
            self.tree.heading(c, text=c)
        self.tree.column("Previous Filename", width=260, stretch=True)
        self.tree.column("Final Name", width=260, stretch=True)
        self.tree.column("Preview", width=80, stretch=False, anchor=tk.CENTER)
        ysb = ttk.Scrollbar(self, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscroll=ysb.set)
        self.tree.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        ysb.pack(side=tk.RIGHT, fill=tk.Y)

        self.tree.bind("<Double-1>", self._on_double_click)

    def set_rows(self, rows: List[Tuple[str, str, str, str, int]]) -> None:
        """rows: (path, previous name, final name, preview label, stem length)."""
        for item in self.tree.get_children():
            self.tree.delete(item)
        self._path_by_iid.clear()
        self._stem_len.clear()
        for path, prev, final, preview, stem_len in rows:
            iid = self.tree.insert("", tk.END, values=(prev, final, preview))
            self._path_by_iid[iid] = path
            self._stem_len[iid] = stem_len

    def selected_path(self) -> Optional[str]:
        for iid in self.tree.selection():
            return self._path_by_iid.get(iid)
        return None

    def _on_double_click(self, event) -> None:  # noqa: ANN001
        iid = self.tree.identify_row(event.y)
        col = self.tree.identify_column(event.x)
        # "#2" is the "Final Name" column
        if not iid or col != "#2":
            return
        self._begin_edit(iid)

    def _begin_edit(self, iid: str) -> None:
        self._end_edit(commit=False)
        bbox = self.tree.bbox(iid, "#2")
        if not bbox:
            return
        x, y, w, h = bbox
        current = self.tree.set(iid, "Final Name")

        editor = ttk.Entry(self.tree)
        editor.insert(0, current)
        editor.place(x=x, y=y, width=w, height=h)
        editor.focus_set()
        editor.select_range(0, self._stem_len.get(iid, len(current)))
        editor.icursor(self._stem_len.get(iid, len(current)))

        editor.bind("<Return>", lambda _e: self._end_edit(commit=True, iid=iid))
        editor.bind("<FocusOut>", lambda _e: self._end_edit(commit=True, iid=iid))
        editor.bind("<Escape>", lambda _e: self._end_edit(commit=False))
        self._editor = editor
        self._editing_iid = iid

    def commit_edit(self) -> None:
        """Commit an open inline editor without waiting for its FocusOut."""
        self._end_edit(commit=True, iid=self._editing_iid)

    def _end_edit(self, *, commit: bool, iid: str | None = None) -> None:
        editor = self._editor
        if editor is None:
            return
        self._editor = None
        self._editing_iid = None
        value = editor.get()
        editor.destroy()
        if commit and iid is not None:
            path = self._path_by_iid.get(iid)
            if path is not None:
                self._on_rename(path, value)
