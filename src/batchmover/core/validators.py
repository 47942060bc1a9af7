from __future__ import annotations

import re


class InvalidName(ValueError):
    pass


_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")


def assert_safe_text(value: str, *, what: str = "text") -> None:
    """Reject strings that cannot be a file name or would break the log.

    - NUL is disallowed (cannot exist in file paths anyway)
    - other control chars are disallowed because they break logs and tables
    """

    if "\x00" in value:
        raise InvalidName(f"{what} contains NUL byte, refusing.")
    if _CONTROL_RE.search(value):
        raise InvalidName(f"{what} contains control character, refusing.")


def validate_target_name(name: str) -> str:
    """Return `name` if it is usable as a single path component."""

    if not name or not name.strip():
        raise InvalidName("Target name is empty.")
    assert_safe_text(name, what="Target name")
    if name in (".", ".."):
        raise InvalidName(f"Target name is not a file name: {name}")
    if "/" in name or "\\" in name:
        raise InvalidName(f"Target name contains a path separator: {name}")
    return name
