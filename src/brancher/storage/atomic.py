"""Atomic file replacement shared by every writer of repository state."""

import os
import tempfile
from pathlib import Path

from brancher.errors import BrancherIOError


def atomic_write(path: Path, data: bytes, prefix: str = ".tmp_") -> None:
    """Write ``data`` to ``path`` so readers never see a partial file.

    The bytes go to a temp file in the same directory, are fsynced, and
    the temp file is renamed over the target.

    Raises:
        BrancherIOError: If the write or rename fails.
    """
    path = Path(path)
    try:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=prefix)
    except OSError as e:
        raise BrancherIOError(f"Failed to write {path}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())

        # Atomic rename
        os.replace(tmp_path, path)

    except OSError as e:
        # Clean up temp file on error
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise BrancherIOError(f"Failed to write {path}: {e}") from e
