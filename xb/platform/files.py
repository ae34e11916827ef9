"""Filesystem helpers used by version writes and packaging."""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from collections.abc import Iterable
from pathlib import Path

__all__ = ["atomic_write_text", "copy_matching", "matches_any"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Replace path's content through a sibling temp file.

    A reader never observes a half-written manifest; newline translation is
    disabled so the original line endings survive a rewrite. An existing
    file's permission bits carry over to the replacement.
    """
    mode = stat.S_IMODE(path.stat().st_mode) if path.exists() else None
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    finally:
        tmp_path.unlink(missing_ok=True)


def matches_any(name: str, suffixes: Iterable[str]) -> bool:
    return any(name.endswith(s) for s in suffixes)


def copy_matching(src: Path, dest: Path, suffixes: Iterable[str]) -> list[Path]:
    """Copy top-level files of src whose name ends with one of suffixes.

    Returns the copied destination paths, sorted by name. dest is created
    only when something is copied.
    """
    wanted = tuple(suffixes)
    if not src.is_dir():
        return []

    copied: list[Path] = []
    for entry in sorted(src.iterdir()):
        if not entry.is_file() or not matches_any(entry.name, wanted):
            continue
        dest.mkdir(parents=True, exist_ok=True)
        target = dest / entry.name
        shutil.copy2(entry, target)
        copied.append(target)
    return copied
