"""Small JSON state documents kept on local disk."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

FILE_MODE = 0o644


def read_json(path: Path) -> Any:
    """Return the parsed document at ``path``, or None if there is none.

    Raises:
        OSError: If the file exists but cannot be read.
        ValueError: If the file is not valid JSON.
    """
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def write_json_atomic(path: Path, document: Any) -> None:
    """Replace ``path`` with ``document``.

    The document goes to a temporary file in the same directory, is synced,
    renamed over ``path``, and the directory entry is synced too. Readers see
    either the previous document or the new one.

    Raises:
        OSError: If the file or its directory could not be written.
    """
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            os.fchmod(tmp.fileno(), FILE_MODE)
            json.dump(document, tmp, indent=2)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise
    _fsync_directory(directory)


def _fsync_directory(directory: Path) -> None:
    dir_fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)
