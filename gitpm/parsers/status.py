"""Parse `git status --short` output into FileChange entries."""

import re
from typing import List

from gitpm.models import FileChange, FileStatus

_STATUS_MAP = {
    "A": FileStatus.ADDED,
    "??": FileStatus.ADDED,
    "M": FileStatus.MODIFIED,
    "MM": FileStatus.MODIFIED,
    "D": FileStatus.DELETED,
    "R": FileStatus.RENAMED,
}

RENAME_ARROW = " -> "

_ESCAPE_RE = re.compile(rb"\\([0-3][0-7]{2}|.)")
_C_ESCAPES = {
    b"a": b"\a",
    b"b": b"\b",
    b"t": b"\t",
    b"n": b"\n",
    b"v": b"\v",
    b"f": b"\f",
    b"r": b"\r",
}


def _unescape(m: re.Match) -> bytes:
    code = m.group(1)
    if len(code) == 3:
        return bytes([int(code, 8)])
    return _C_ESCAPES.get(code, code)


def _unquote(path: str) -> str:
    """Undo git's C-style path quoting.

    Paths with spaces, quotes or non-ASCII bytes come wrapped in double
    quotes; non-ASCII bytes are octal escapes of their UTF-8 encoding
    ("caf\\303\\251.txt" is café.txt).
    """
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        raw = _ESCAPE_RE.sub(_unescape, path[1:-1].encode("utf-8"))
        return raw.decode("utf-8", errors="replace")
    return path


def parse_status_line(line: str) -> FileChange | None:
    """Parse one porcelain line ("XY path"); None for blank or malformed lines."""
    if not line.strip() or len(line) < 3:
        return None
    code = line[:2].strip()
    path = line[2:].strip()
    if not path:
        return None
    status = _STATUS_MAP.get(code, FileStatus.MODIFIED)
    old_path = None
    if status is FileStatus.RENAMED and RENAME_ARROW in path:
        old, _, new = path.partition(RENAME_ARROW)
        old_path, path = _unquote(old.strip()), new.strip()
    return FileChange(path=_unquote(path), status=status, old_path=old_path)


def parse_status(output: str | None) -> List[FileChange]:
    """Parse the whole `git status --short` output. Empty input gives []."""
    if not output:
        return []
    changes = []
    for line in output.splitlines():
        change = parse_status_line(line)
        if change is not None:
            changes.append(change)
    return changes
