from __future__ import annotations

"""Apply engine: executes pending operations against a filesystem service.

Semantics:
- operations run in set order, files in `files` order, strictly sequentially
- an operation without files or without destination is skipped (no fs call)
- a failing folder creation aborts only that operation
- a failing move does not stop the remaining files (best-effort, not transactional)
- nothing is raised past `apply`; the caller reads the returned report
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .operation_set import OperationSet
from .operations import NotFound, Operation
from .services import FileSystemService
from .validators import InvalidName, validate_target_name


LogFn = Callable[[str], None]


class ErrorKind(str, Enum):
    FOLDER_CREATE_FAILED = "folder_create_failed"
    MOVE_FAILED = "move_failed"
    CANCELLED = "cancelled"


class FileStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


class OperationStatus(str, Enum):
    COMPLETED = "completed"
    PARTIAL = "partial"
    FOLDER_FAILED = "folder_failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class AfterApply(str, Enum):
    """What happens to the pending operations once a run finished."""

    CLEAR_ON_FULL_SUCCESS = "clear_on_full_success"
    CLEAR_COMPLETED = "clear_completed"
    KEEP = "keep"
    PRUNE_SUCCEEDED = "prune_succeeded"

    @classmethod
    def parse(cls, value: str) -> "AfterApply":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.CLEAR_ON_FULL_SUCCESS


@dataclass
class FileOutcome:
    op_id: str
    source: str
    target: str
    status: FileStatus
    error: str = ""
    error_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.status == FileStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "status": self.status.value,
            "error": self.error,
        }


@dataclass
class OperationOutcome:
    op_id: str
    number: int
    status: OperationStatus
    target_folder: str = ""
    files: List[FileOutcome] = field(default_factory=list)
    error: str = ""
    error_kind: Optional[ErrorKind] = None
    skip_reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "op_id": self.op_id,
            "number": self.number,
            "status": self.status.value,
            "target_folder": self.target_folder,
            "error": self.error,
            "skip_reason": self.skip_reason,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class ApplyReport:
    operations: List[OperationOutcome] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def ok(self) -> bool:
        """True when every attempted file of every non-skipped operation was moved."""
        if self.cancelled:
            return False
        return all(o.status in (OperationStatus.COMPLETED, OperationStatus.SKIPPED) for o in self.operations)

    def file_outcomes(self) -> List[FileOutcome]:
        return [f for o in self.operations for f in o.files]

    def succeeded(self) -> List[FileOutcome]:
        return [f for f in self.file_outcomes() if f.ok]

    def failures(self) -> List[FileOutcome]:
        return [f for f in self.file_outcomes() if f.status == FileStatus.FAILED]

    def skipped(self) -> List[OperationOutcome]:
        return [o for o in self.operations if o.status == OperationStatus.SKIPPED]

    def operation_errors(self) -> List[OperationOutcome]:
        return [o for o in self.operations if o.status == OperationStatus.FOLDER_FAILED]

    def summary(self) -> str:
        attempted = [f for f in self.file_outcomes() if f.status != FileStatus.CANCELLED]
        text = (
            f"{len(self.succeeded())}/{len(attempted)} file(s) moved, "
            f"{len(self.failures())} failed, {len(self.skipped())} operation(s) skipped"
        )
        if self.operation_errors():
            text += f", {len(self.operation_errors())} folder error(s)"
        if self.cancelled:
            text += " (cancelled)"
        return text

    def to_journal_dict(self) -> Dict[str, Any]:
        return {
            "kind": "apply",
            "ok": self.ok,
            "cancelled": self.cancelled,
            "summary": self.summary(),
            "warnings": list(self.warnings),
            "operations": [o.to_dict() for o in self.operations],
        }


def target_path(folder: str, name: str) -> str:
    if folder.endswith(("/", "\\")):
        return folder + name
    return folder + "/" + name


def planned_moves(op: Operation) -> List[Tuple[str, str]]:
    """(source, target) pairs an operation would perform; empty if it would be skipped."""
    folder = op.target_folder()
    if op.is_empty() or not folder:
        return []
    return [(f.original_path, target_path(folder, op.resolved_name(f))) for f in op.files]


def find_target_collisions(operations: Iterable[Operation]) -> Dict[str, List[str]]:
    """Detect target paths that more than one file would be moved to."""
    by_target: Dict[str, List[str]] = {}
    for op in operations:
        for src, dst in planned_moves(op):
            by_target.setdefault(dst, []).append(src)
    return {dst: srcs for dst, srcs in by_target.items() if len(srcs) > 1}


def collision_warnings(operations: Iterable[Operation]) -> List[str]:
    collisions = find_target_collisions(operations)
    return [f"Collision: {len(srcs)} files target {dst}" for dst, srcs in collisions.items()]


class ApplyEngine:
    def __init__(self, fs: FileSystemService, *, log: Optional[LogFn] = None) -> None:
        self.fs = fs
        self._log = log

    def _emit(self, line: str) -> None:
        if self._log is not None:
            self._log(line)

    def apply(
        self,
        operations: Iterable[Operation],
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> ApplyReport:
        ops = list(operations)
        report = ApplyReport(warnings=collision_warnings(ops))
        for w in report.warnings:
            self._emit(f"[local] WARNING: {w}")

        for number, op in enumerate(ops, start=1):
            if _is_set(cancel_event):
                report.cancelled = True
                report.operations.append(self._cancelled_operation(op, number, started=False))
                continue
            outcome = self._apply_operation(op, number, cancel_event)
            if outcome.status == OperationStatus.CANCELLED:
                report.cancelled = True
            report.operations.append(outcome)

        self._emit(f"[local] apply finished: {report.summary()}")
        return report

    def _cancelled_operation(self, op: Operation, number: int, *, started: bool) -> OperationOutcome:
        outcome = OperationOutcome(
            op_id=op.op_id,
            number=number,
            status=OperationStatus.CANCELLED,
            target_folder=op.target_folder(),
            error_kind=ErrorKind.CANCELLED,
        )
        for src, dst in planned_moves(op):
            outcome.files.append(
                FileOutcome(op.op_id, src, dst, FileStatus.CANCELLED, "cancelled", ErrorKind.CANCELLED)
            )
        if not started:
            self._emit(f"[local] Operation {number}: cancelled before start")
        return outcome

    def _apply_operation(
        self,
        op: Operation,
        number: int,
        cancel_event: Optional[threading.Event],
    ) -> OperationOutcome:
        folder = op.target_folder()
        if op.is_empty() or not folder:
            reason = "no files" if op.is_empty() else "no destination"
            self._emit(f"[local] Operation {number}: skipped ({reason})")
            return OperationOutcome(
                op_id=op.op_id,
                number=number,
                status=OperationStatus.SKIPPED,
                target_folder=folder,
                skip_reason=reason,
            )

        res = self.fs.ensure_folder_exists(folder)
        if not res.ok:
            self._emit(f"[local] Operation {number}: cannot create {folder}: {res.error}")
            return OperationOutcome(
                op_id=op.op_id,
                number=number,
                status=OperationStatus.FOLDER_FAILED,
                target_folder=folder,
                error=res.error,
                error_kind=ErrorKind.FOLDER_CREATE_FAILED,
            )

        outcome = OperationOutcome(op_id=op.op_id, number=number, status=OperationStatus.COMPLETED, target_folder=folder)
        for fd in op.files:
            name = op.resolved_name(fd)
            dst = target_path(folder, name)

            if _is_set(cancel_event):
                outcome.status = OperationStatus.CANCELLED
                outcome.error_kind = ErrorKind.CANCELLED
                outcome.files.append(
                    FileOutcome(op.op_id, fd.original_path, dst, FileStatus.CANCELLED, "cancelled", ErrorKind.CANCELLED)
                )
                continue

            try:
                validate_target_name(name)
            except InvalidName as exc:
                outcome.files.append(
                    FileOutcome(op.op_id, fd.original_path, dst, FileStatus.FAILED, str(exc), ErrorKind.MOVE_FAILED)
                )
                self._emit(f"[local] FAILED {fd.original_path}: {exc}")
                continue

            res = self.fs.move_file(fd.original_path, dst)
            if res.ok:
                outcome.files.append(FileOutcome(op.op_id, fd.original_path, dst, FileStatus.SUCCESS))
                self._emit(f"[local] moved {fd.original_path} -> {dst}")
            else:
                outcome.files.append(
                    FileOutcome(op.op_id, fd.original_path, dst, FileStatus.FAILED, res.error, ErrorKind.MOVE_FAILED)
                )
                self._emit(f"[local] FAILED {fd.original_path} -> {dst}: {res.error}")

        if outcome.status != OperationStatus.CANCELLED and any(
            f.status == FileStatus.FAILED for f in outcome.files
        ):
            outcome.status = OperationStatus.PARTIAL
        return outcome

    def revert(
        self,
        moves: Iterable[Tuple[str, str]],
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[FileOutcome]:
        """Best-effort execution of plain (source, target) moves, e.g. an undo list."""
        outcomes: List[FileOutcome] = []
        for src, dst in moves:
            if _is_set(cancel_event):
                outcomes.append(FileOutcome("", src, dst, FileStatus.CANCELLED, "cancelled", ErrorKind.CANCELLED))
                continue
            res = self.fs.move_file(src, dst)
            if res.ok:
                outcomes.append(FileOutcome("", src, dst, FileStatus.SUCCESS))
                self._emit(f"[local] restored {src} -> {dst}")
            else:
                outcomes.append(FileOutcome("", src, dst, FileStatus.FAILED, res.error, ErrorKind.MOVE_FAILED))
                self._emit(f"[local] FAILED restore {src} -> {dst}: {res.error}")
        return outcomes


def _is_set(event: Optional[threading.Event]) -> bool:
    return event is not None and event.is_set()


def apply_policy(store: OperationSet, report: ApplyReport, policy: AfterApply) -> List[str]:
    """Update the pending operations after a run; returns ids of removed operations."""

    if policy == AfterApply.KEEP:
        return []

    if policy == AfterApply.CLEAR_ON_FULL_SUCCESS:
        if not report.ok:
            return []
        removed = [op.op_id for op in store.operations]
        store.clear()
        return removed

    removed: List[str] = []
    if policy == AfterApply.CLEAR_COMPLETED:
        if not report.ok:
            return []
        for outcome in report.operations:
            if outcome.status == OperationStatus.COMPLETED and store.find(outcome.op_id) is not None:
                store.remove(outcome.op_id)
                removed.append(outcome.op_id)
        return removed

    # PRUNE_SUCCEEDED: keep only what still needs doing
    for f in report.succeeded():
        op = store.find(f.op_id)
        if op is None or op.find_file(f.source) is None:
            continue
        try:
            store.remove_file(f.op_id, f.source)
        except NotFound:
            continue
        if store.find(f.op_id) is None:
            removed.append(f.op_id)
    return removed
