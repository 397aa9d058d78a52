"""Record types shared by the staging index and the commit graph.

Both records round-trip through JSON. Decoding validates every field and
raises ``CorruptDataError`` instead of leaking ``KeyError``/``TypeError``
from malformed data.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from brancher.errors import CorruptDataError
from brancher.hashing import is_digest


@dataclass(frozen=True)
class IndexEntry:
    """A staged (path, digest) pair.

    Attributes:
        path: POSIX path relative to the workspace root
        digest: Digest of the file content in the object store
    """

    path: str
    digest: str

    def to_dict(self) -> Dict[str, str]:
        """Convert to the on-disk ``{"path", "hash"}`` form."""
        return {"path": self.path, "hash": self.digest}

    @classmethod
    def from_dict(cls, data: Any) -> "IndexEntry":
        """Build an entry from its on-disk form.

        Raises:
            CorruptDataError: If fields are missing or malformed.
        """
        if not isinstance(data, dict):
            raise CorruptDataError(f"Index entry must be an object, got {type(data).__name__}")
        path = data.get("path")
        digest = data.get("hash")
        if not isinstance(path, str) or not path:
            raise CorruptDataError(f"Index entry has invalid path: {path!r}")
        if not is_digest(digest):
            raise CorruptDataError(f"Index entry for {path} has invalid hash: {digest!r}")
        return cls(path=path, digest=digest)


@dataclass(frozen=True)
class Commit:
    """An immutable snapshot of staged files.

    ``id`` is the digest of the canonical serialization, which leaves
    ``id`` itself out.

    Attributes:
        id: Commit digest
        timestamp: ISO-8601 creation time (UTC)
        message: Commit message
        files: Staged entries in the order they were staged
        parent: Parent commit digest, or None for a root commit
    """

    id: str
    timestamp: str
    message: str
    files: Tuple[IndexEntry, ...] = field(default_factory=tuple)
    parent: Optional[str] = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def tree(self) -> Dict[str, str]:
        """Map each path to its digest.

        A path staged more than once keeps its last digest but its first
        position.
        """
        tree: Dict[str, str] = {}
        for entry in self.files:
            tree[entry.path] = entry.digest
        return tree

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form without ``id``."""
        return {
            "timestamp": self.timestamp,
            "message": self.message,
            "files": [entry.to_dict() for entry in self.files],
            "parent": self.parent,
        }

    @classmethod
    def from_dict(cls, commit_id: str, data: Any) -> "Commit":
        """Build a commit from its stored form.

        Raises:
            CorruptDataError: If the record is not a well-formed commit.
        """
        if not isinstance(data, dict):
            raise CorruptDataError(f"Object {commit_id} is not a commit record")

        timestamp = data.get("timestamp")
        message = data.get("message")
        files = data.get("files")
        parent = data.get("parent")

        if not isinstance(timestamp, str):
            raise CorruptDataError(f"Commit {commit_id} has invalid timestamp")
        if not isinstance(message, str):
            raise CorruptDataError(f"Commit {commit_id} has invalid message")
        if not isinstance(files, list):
            raise CorruptDataError(f"Commit {commit_id} has invalid file list")
        if parent is not None and not is_digest(parent):
            raise CorruptDataError(f"Commit {commit_id} has invalid parent: {parent!r}")

        entries: List[IndexEntry] = [IndexEntry.from_dict(item) for item in files]
        return cls(
            id=commit_id,
            timestamp=timestamp,
            message=message,
            files=tuple(entries),
            parent=parent,
        )
