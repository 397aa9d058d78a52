"""Commit creation, lookup and history traversal.

Commits are stored in the object store next to blobs. The stored bytes
are the canonical JSON of ``{timestamp, message, files, parent}``; the
commit id is the digest of those bytes, so ``ObjectStore.put`` both
persists the commit and computes its id.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Iterable, Iterator, Optional

from brancher.errors import (
    CommitNotFoundError,
    CorruptDataError,
    CorruptHistoryError,
    ObjectNotFoundError,
)
from brancher.models import Commit, IndexEntry
from brancher.storage.object_store import ObjectStore

logger = logging.getLogger(__name__)


def serialize_commit(
    timestamp: str,
    message: str,
    files: Iterable[IndexEntry],
    parent: Optional[str],
) -> bytes:
    """Canonical bytes of a commit record.

    Sorted keys, no whitespace, UTF-8. The id is never part of the input.
    """
    record = {
        "timestamp": timestamp,
        "message": message,
        "files": [entry.to_dict() for entry in files],
        "parent": parent,
    }
    canonical_json = json.dumps(
        record,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return canonical_json.encode("utf-8")


class CommitGraph:
    """Builder and reader for the parent-linked commit history.

    Attributes:
        object_store: Store that holds serialized commits
    """

    def __init__(self, object_store: ObjectStore) -> None:
        self.object_store = object_store

    def commit(
        self,
        message: str,
        staged_files: Iterable[IndexEntry],
        parent: Optional[str] = None,
    ) -> Commit:
        """Create and persist a new commit.

        An empty ``staged_files`` is allowed and yields a commit with no
        files.

        Args:
            message: Commit message
            staged_files: Entries to record, in order
            parent: Digest of the parent commit, or None for a root commit

        Returns:
            The stored commit
        """
        timestamp = datetime.now(timezone.utc).isoformat()
        files = tuple(staged_files)

        data = serialize_commit(timestamp, message, files, parent)
        commit_id = self.object_store.put(data)

        logger.info("Created commit %s (%d file(s))", commit_id, len(files))
        return Commit(
            id=commit_id,
            timestamp=timestamp,
            message=message,
            files=files,
            parent=parent,
        )

    def get(self, digest: str) -> Commit:
        """Load a commit.

        Raises:
            CommitNotFoundError: If no object with this digest exists
            CorruptDataError: If the object is not a commit record
        """
        try:
            data = self.object_store.get(digest)
        except ObjectNotFoundError as e:
            raise CommitNotFoundError(digest) from e

        try:
            record = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise CorruptDataError(f"Object {digest} is not a commit record") from e

        return Commit.from_dict(digest, record)

    def exists(self, digest: str) -> bool:
        try:
            self.get(digest)
        except (CommitNotFoundError, CorruptDataError):
            return False
        return True

    def history(self, start: str) -> Iterator[Commit]:
        """Walk parent links from ``start`` back to the root commit.

        The walk is lazy; each call starts a fresh one.

        Raises:
            CommitNotFoundError: If ``start`` itself does not exist
            CorruptHistoryError: If a parent link cannot be resolved
        """
        commit = self.get(start)
        yield commit

        while commit.parent is not None:
            try:
                parent = self.get(commit.parent)
            except (CommitNotFoundError, CorruptDataError) as e:
                raise CorruptHistoryError(commit.id, commit.parent) from e
            yield parent
            commit = parent

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        """Check whether ``ancestor`` is reachable from ``descendant``.

        A commit counts as its own ancestor.
        """
        return any(commit.id == ancestor for commit in self.history(descendant))
