from __future__ import annotations

from datetime import datetime, timezone
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from platformdirs import user_data_dir

from batchmover.infra.settings import APP_NAME

JOURNAL_FILE = "journal.jsonl"


def journal_path() -> Path:
    """Append-only JSONL file with one record per apply or undo run."""
    base = Path(user_data_dir(APP_NAME))
    base.mkdir(parents=True, exist_ok=True)
    return base / JOURNAL_FILE


def _utc_stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def append_journal(record: Dict[str, Any], *, path: Optional[Path] = None) -> None:
    target = path or journal_path()
    line = json.dumps({"timestamp_utc": _utc_stamp(), **record}, ensure_ascii=False)
    with target.open("a", encoding="utf-8") as f:
        f.write(line + "\n")


def read_journal(*, path: Optional[Path] = None, kind: Optional[str] = None) -> List[Dict[str, Any]]:
    """Journal records, oldest first, optionally only those of one `kind`.

    Lines that are not JSON objects (e.g. a half-written last line) are skipped.
    """
    source = path or journal_path()
    if not source.exists():
        return []

    records: List[Dict[str, Any]] = []
    with source.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                rec = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(rec, dict):
                continue
            if kind is not None and rec.get("kind") != kind:
                continue
            records.append(rec)
    return records
