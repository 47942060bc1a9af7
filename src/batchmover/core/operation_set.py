from __future__ import annotations

import copy
import threading
from typing import Callable, Iterator, List, Optional, TypeVar

from .files import FileDescriptor
from .operations import NotFound, Operation


T = TypeVar("T")


class OperationSet:
    """Ordered collection of pending operations (creation order).

    Owned by the controller and passed by reference to the views. `update` works on a
    copy and swaps it in under a lock, so readers never see a half-applied mutation.
    """

    def __init__(self, operations: Optional[List[Operation]] = None) -> None:
        self._ops: List[Operation] = list(operations or [])
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._ops)

    def __iter__(self) -> Iterator[Operation]:
        # Iterate over a snapshot; concurrent add/remove does not affect the loop
        with self._lock:
            return iter(list(self._ops))

    @property
    def operations(self) -> List[Operation]:
        with self._lock:
            return list(self._ops)

    def find(self, op_id: str) -> Optional[Operation]:
        with self._lock:
            for op in self._ops:
                if op.op_id == op_id:
                    return op
        return None

    def get(self, op_id: str) -> Operation:
        op = self.find(op_id)
        if op is None:
            raise NotFound(f"Unknown operation: {op_id}")
        return op

    def index_of(self, op_id: str) -> int:
        with self._lock:
            for i, op in enumerate(self._ops):
                if op.op_id == op_id:
                    return i
        raise NotFound(f"Unknown operation: {op_id}")

    def display_number(self, op_id: str) -> int:
        """1-based number shown as "Operation N"."""
        return self.index_of(op_id) + 1

    def add(self) -> Operation:
        op = Operation(expanded=True)
        with self._lock:
            while any(o.op_id == op.op_id for o in self._ops):
                op = Operation(expanded=True)
            self._ops.append(op)
        return op

    def remove(self, op_id: str) -> None:
        with self._lock:
            self._ops = [op for op in self._ops if op.op_id != op_id]

    def clear(self) -> None:
        with self._lock:
            self._ops = []

    def update(self, op_id: str, fn: Callable[[Operation], T]) -> T:
        """Apply `fn` to a copy of one operation and commit it.

        If `fn` raises, nothing is committed. If the mutation removed the last file of
        an operation that had files, the operation is dropped from the set.
        """

        with self._lock:
            idx = self.index_of(op_id)
            current = self._ops[idx]
            draft = copy.deepcopy(current)
            result = fn(draft)

            if current.files and not draft.files:
                del self._ops[idx]
            else:
                self._ops[idx] = draft
            return result

    # --- convenience wrappers used by the controller ---

    def remove_file(self, op_id: str, path: str) -> FileDescriptor:
        return self.update(op_id, lambda op: op.remove_file(path))

    def snapshot(self) -> List[Operation]:
        """Deep copy of all operations, safe to hand to a worker thread."""
        with self._lock:
            return copy.deepcopy(self._ops)

