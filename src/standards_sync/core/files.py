"""File helpers: atomic text writes, timestamped backups, read-only cleanup."""

from __future__ import annotations

import os
import shutil
import stat
import sys
import tempfile
from datetime import datetime
from pathlib import Path


def write_text_atomic(path: Path, content: str) -> None:
    """
    Write ``content`` to ``path`` via a temp file in the same directory and
    ``os.replace``. Text is written without newline translation.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = ""
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            delete=False,
            dir=path.parent,
            prefix=f".{path.name}.tmp.",
        ) as fh:
            tmp = fh.name
            fh.write(content)
        if path.exists():
            os.chmod(tmp, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp, path)
        tmp = ""
    finally:
        if tmp and os.path.exists(tmp):
            os.remove(tmp)


def read_text(path: Path) -> str:
    """Read UTF-8 text without newline translation."""
    with open(path, encoding="utf-8", newline="") as fh:
        return fh.read()


def backup_file(path: Path, now: datetime | None = None) -> Path | None:
    """Copy ``path`` to ``<path>.bak.<YYYYmmddHHMMSS>``; ``None`` if it does not exist."""
    path = Path(path)
    if not path.exists():
        return None
    stamp = (now or datetime.now()).strftime("%Y%m%d%H%M%S")
    backup = path.with_name(f"{path.name}.bak.{stamp}")
    counter = 1
    while backup.exists():
        backup = path.with_name(f"{path.name}.bak.{stamp}.{counter}")
        counter += 1
    shutil.copy2(path, backup)
    return backup


def _make_writable(func, path, *_: object) -> None:  # type: ignore[no-untyped-def]
    os.chmod(path, stat.S_IWRITE | stat.S_IREAD | stat.S_IEXEC)
    func(path)


def remove_tree(path: Path) -> None:
    """``shutil.rmtree`` that also removes read-only files."""
    if Path(path).exists():
        if sys.version_info >= (3, 12):
            shutil.rmtree(path, onexc=_make_writable)
        else:
            shutil.rmtree(path, onerror=_make_writable)
