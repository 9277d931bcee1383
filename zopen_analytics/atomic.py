"""Atomic JSON file replacement shared by the ledger and the feed cache."""
from __future__ import annotations

import contextlib
import json
import os
import stat
import tempfile
from pathlib import Path


def target_mode(path: Path) -> int:
    """Mode the replacement should carry: the existing file's, else 0666 minus umask."""
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_json_atomic(path: Path, data, indent: int | None = None, fsync: bool = True) -> None:
    """Write ``data`` to a temp file beside ``path`` and os.replace() it into place.

    mkstemp creates 0600 files; the temp file is chmod'ed first so a rewrite
    never narrows who can read ``path``.
    """
    path = Path(path)
    mode = target_mode(path)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            os.fchmod(f.fileno(), mode)
            json.dump(data, f, indent=indent)
            if fsync:
                f.flush()
                os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
