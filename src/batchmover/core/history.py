from __future__ import annotations

"""History / undo helpers.

Used by the controller to:
- find the moves of a journalled apply run that actually happened
- generate the reverse moves for an undo

Undo is best-effort and conservative:
- only successful moves are reverted (failed or cancelled files never moved)
- reverse moves are generated in reverse order
- folders created during apply are not removed
"""

from typing import Any, Iterable, List, Optional, Tuple


Move = Tuple[str, str]


def moves_from_journal(record: dict[str, Any]) -> List[Move]:
    """Successful (source, target) pairs of an apply/undo journal record."""

    out: List[Move] = []
    for op in record.get("operations") or []:
        if not isinstance(op, dict):
            continue
        for item in op.get("files") or []:
            if not isinstance(item, dict):
                continue
            if item.get("status") != "success":
                continue
            src = str(item.get("source") or "")
            dst = str(item.get("target") or "")
            if src and dst:
                out.append((src, dst))
    return out


def build_undo_moves(moves: Iterable[Move]) -> List[Move]:
    return [(dst, src) for src, dst in reversed(list(moves))]


def last_undoable(records: List[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Most recent apply record that still has moves and was not undone yet."""

    undone: set[str] = set()
    for rec in reversed(records):
        kind = rec.get("kind")
        if kind == "undo":
            ref = rec.get("undo_of")
            if ref:
                undone.add(str(ref))
            continue
        if kind != "apply":
            continue
        if str(rec.get("run_id") or "") in undone:
            continue
        if moves_from_journal(rec):
            return rec
    return None


def undo_journal_record(source: dict[str, Any], outcomes: Iterable[Any]) -> dict[str, Any]:
    """Journal entry for an undo run; `outcomes` are apply FileOutcome objects."""

    files = [o.to_dict() for o in outcomes]
    return {
        "kind": "undo",
        "undo_of": source.get("run_id"),
        "ok": all(f["status"] == "success" for f in files),
        "operations": [{"op_id": "", "number": 0, "status": "undo", "files": files}],
    }
