"""Staging area management for Brancher.

The staging area (index) lists the files queued for the next commit.
It is an append-only log: staging a path that is already staged adds a
second entry rather than replacing the first. Readers that need one
digest per path take the last entry.
"""

import json
import logging
from pathlib import Path
from typing import Any, List

from brancher.constants import INDEX_FILE
from brancher.errors import BrancherIOError, CorruptDataError
from brancher.hashing import is_digest
from brancher.models import IndexEntry
from brancher.storage.atomic import atomic_write

logger = logging.getLogger(__name__)


class StagingIndex:
    """Durable, ordered list of staged entries.

    Index format (JSON):
    [
        {"path": "relative/path/to/file", "hash": "sha1..."},
        ...
    ]

    Attributes:
        repo_dir: Path to the ``.brancher`` directory
        index_path: Path to the index file (``.brancher/index``)
    """

    def __init__(self, repo_dir: Path) -> None:
        self.repo_dir = Path(repo_dir)
        self.index_path = self.repo_dir / INDEX_FILE

    def stage(self, path: str, digest: str) -> IndexEntry:
        """Append an entry and persist the index before returning.

        Raises:
            ValueError: If the path is empty or the digest is malformed.
                The index is left unchanged.
        """
        if not isinstance(path, str) or not path:
            raise ValueError(f"Cannot stage an empty path: {path!r}")
        if not is_digest(digest):
            raise ValueError(f"Cannot stage {path} with invalid digest: {digest!r}")

        entries = self._load()
        entry = IndexEntry(path=path, digest=digest)
        entries.append(entry)
        self._save(entries)
        logger.debug("Staged %s -> %s", path, digest)
        return entry

    def snapshot(self) -> List[IndexEntry]:
        """Return the staged entries without clearing them."""
        return self._load()

    def clear(self) -> None:
        """Clear all staged entries."""
        self._save([])

    def is_empty(self) -> bool:
        """Check if staging area is empty."""
        return not self._load()

    def _load(self) -> List[IndexEntry]:
        """Load index from disk."""
        if not self.index_path.exists():
            return []

        try:
            raw = self.index_path.read_text(encoding="utf-8")
        except OSError as e:
            raise BrancherIOError(f"Failed to read index: {e}") from e

        # An index created by an interrupted init may be empty
        if not raw.strip():
            return []

        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Corrupted index file: {e}") from e

        if not isinstance(data, list):
            raise CorruptDataError("Corrupted index file: expected a JSON array")

        return [IndexEntry.from_dict(item) for item in data]

    def _save(self, entries: List[IndexEntry]) -> None:
        """Save index to disk."""
        data = json.dumps([entry.to_dict() for entry in entries], ensure_ascii=False)
        atomic_write(self.index_path, data.encode("utf-8"), prefix=".tmp_index_")
