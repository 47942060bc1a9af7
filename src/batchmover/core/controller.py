from __future__ import annotations

import threading
import uuid
from typing import Any, Callable, Dict, List, Optional

from .apply import AfterApply, ApplyEngine, ApplyReport, FileOutcome, apply_policy
from .history import build_undo_moves, last_undoable, moves_from_journal, undo_journal_record
from .operation_set import OperationSet
from .operations import Operation
from .services import FileSystemService, PickerService


LogFn = Callable[[str], None]
JournalWriter = Callable[[Dict[str, Any]], None]
JournalReader = Callable[[], List[Dict[str, Any]]]


def _noop_log(_line: str) -> None:
    return None


class BatchController:
    """Owns the pending operations and wires them to the services.

    Views get the controller (and through it the store) by reference; there is no
    module-level state.
    """

    def __init__(
        self,
        *,
        store: Optional[OperationSet] = None,
        fs: FileSystemService,
        picker: Optional[PickerService] = None,
        after_apply: AfterApply = AfterApply.CLEAR_ON_FULL_SUCCESS,
        journal_writer: Optional[JournalWriter] = None,
        journal_reader: Optional[JournalReader] = None,
        log: Optional[LogFn] = None,
    ) -> None:
        self.store = store if store is not None else OperationSet()
        self.fs = fs
        self.picker = picker
        self.after_apply = after_apply
        self._journal_writer = journal_writer
        self._journal_reader = journal_reader
        self.log = log or _noop_log
        self.last_destination = ""

    # --- operations ---

    def add_operation(self) -> Operation:
        op = self.store.add()
        self.log(f"[local] Operation {self.store.display_number(op.op_id)} added")
        return op

    def remove_operation(self, op_id: str) -> None:
        self.store.remove(op_id)

    def toggle_expanded(self, op_id: str) -> bool:
        return self.store.update(op_id, lambda op: op.toggle_expanded())

    def display_number(self, op_id: str) -> int:
        return self.store.display_number(op_id)

    # --- selection ---

    def _require_picker(self) -> PickerService:
        if self.picker is None:
            raise RuntimeError("No picker configured")
        return self.picker


    def select_files(self, op_id: str) -> int:
        """Ask the picker for files and add them; returns how many were new."""
        picker = self._require_picker()
        self.store.get(op_id)
        paths = picker.select_files(initial_dir=self.last_destination)
        if not paths:
            self.log("[local] file selection cancelled")
            return 0
        added = self.store.update(op_id, lambda op: op.add_files(paths))
        skipped = len(paths) - len(added)
        msg = f"[local] Operation {self.display_number(op_id)}: {len(added)} file(s) added"
        if skipped:
            msg += f" ({skipped} already present)"
        self.log(msg)
        return len(added)

    def select_destination(self, op_id: str) -> Optional[str]:
        picker = self._require_picker()
        self.store.get(op_id)
        folder = picker.select_folder(initial_dir=self.last_destination)
        if not folder:
            self.log("[local] folder selection cancelled")
            return None
        self.store.update(op_id, lambda op: op.set_destination(folder))
        self.last_destination = folder
        return folder

    def set_destination(self, op_id: str, path: str) -> None:
        self.store.update(op_id, lambda op: op.set_destination(path))

    def set_subfolder(self, op_id: str, text: str) -> None:
        self.store.update(op_id, lambda op: op.set_subfolder(text))

    def rename_file(self, op_id: str, path: str, raw_name: str) -> str:
        return self.store.update(op_id, lambda op: op.set_target_name(path, raw_name))

    def remove_file(self, op_id: str, path: str) -> None:
        self.store.remove_file(op_id, path)
        if self.store.find(op_id) is None:
            self.log("[local] last file removed, operation dropped")

    def set_preview(self, op_id: str, path: str, visible: bool) -> None:
        self.store.update(op_id, lambda op: op.toggle_preview(path, visible))

    # --- apply / undo ---

    def apply_all(self, *, cancel_event: Optional[threading.Event] = None) -> ApplyReport:
        engine = ApplyEngine(self.fs, log=self.log)
        report = engine.apply(self.store.snapshot(), cancel_event=cancel_event)

        if self._journal_writer is not None:
            record = report.to_journal_dict()
            record["run_id"] = uuid.uuid4().hex
            record["after_apply"] = self.after_apply.value
            self._journal_writer(record)

        removed = apply_policy(self.store, report, self.after_apply)
        if removed:
            self.log(f"[local] {len(removed)} operation(s) done and removed")
        return report

    def undo_last_apply(self) -> Optional[List[FileOutcome]]:
        """Revert the moves of the most recent apply run that was not undone yet."""
        if self._journal_reader is None:
            return None
        record = last_undoable(self._journal_reader())
        if record is None:
            self.log("[local] nothing to undo")
            return None

        moves = build_undo_moves(moves_from_journal(record))
        self.log(f"[local] undoing {len(moves)} move(s)")
        outcomes = ApplyEngine(self.fs, log=self.log).revert(moves)
        if self._journal_writer is not None:
            self._journal_writer(undo_journal_record(record, outcomes))
        return outcomes
