"""Line-based diff engine.

``diff_text`` compares two strings line by line using a longest common
subsequence table and returns the result as contiguous runs tagged
unchanged, added or removed. ``DiffEngine`` applies it to the files of
two commits, or of one commit and its parent.
"""

import difflib
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from brancher.errors import CommitNotFoundError, CorruptHistoryError
from brancher.models import Commit
from brancher.storage.commit_graph import CommitGraph

logger = logging.getLogger(__name__)


class ChangeKind(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"


class FileStatus(str, Enum):
    """How a file compares against the other side of a diff."""

    MODIFIED = "modified"
    UNCHANGED = "unchanged"
    NEW = "new"


@dataclass(frozen=True)
class DiffPart:
    """A run of consecutive lines sharing one change kind.

    ``value`` keeps the original line terminators, so concatenating
    values reproduces the input text.
    """

    kind: ChangeKind
    value: str

    @property
    def added(self) -> bool:
        return self.kind is ChangeKind.ADDED

    @property
    def removed(self) -> bool:
        return self.kind is ChangeKind.REMOVED

    def to_dict(self) -> Dict[str, str]:
        return {"kind": self.kind.value, "value": self.value}


@dataclass(frozen=True)
class FileDiff:
    """Comparison of one path between two versions.

    Attributes:
        path: File path
        status: NEW when the other side does not track the path
        parts: Diff runs from old to new (empty for NEW files)
        old_digest: Digest on the old side, None for NEW files
        new_digest: Digest on the new side
    """

    path: str
    status: FileStatus
    parts: Tuple[DiffPart, ...] = field(default_factory=tuple)
    old_digest: Optional[str] = None
    new_digest: Optional[str] = None

    @property
    def has_changes(self) -> bool:
        return self.status is not FileStatus.UNCHANGED

    def old_text(self) -> str:
        return "".join(p.value for p in self.parts if not p.added)

    def new_text(self) -> str:
        return "".join(p.value for p in self.parts if not p.removed)

    def unified(self, context: int = 3) -> str:
        """Render the change as a unified diff."""
        old_lines = split_lines(self.old_text())
        new_lines = split_lines(self.new_text())
        diff = difflib.unified_diff(
            old_lines,
            new_lines,
            fromfile="/dev/null" if self.status is FileStatus.NEW else f"a/{self.path}",
            tofile=f"b/{self.path}",
            n=context,
        )
        return "".join(line if line.endswith("\n") else line + "\n" for line in diff)


@dataclass(frozen=True)
class CommitDiff:
    """Per-file comparison of a commit against its parent.

    Attributes:
        commit: The commit being inspected
        first_commit: True when the commit has no parent; ``files`` is empty
        files: One entry per path tracked by the commit
    """

    commit: Commit
    first_commit: bool
    files: Tuple[FileDiff, ...] = field(default_factory=tuple)


def split_lines(text: str) -> List[str]:
    """Split on newlines, keeping each line's terminator."""
    lines = text.split("\n")
    result = [line + "\n" for line in lines[:-1]]
    if lines[-1]:
        result.append(lines[-1])
    return result


def _common_suffix(old: List[str], new: List[str]) -> int:
    size = 0
    limit = min(len(old), len(new))
    while size < limit and old[-1 - size] == new[-1 - size]:
        size += 1
    return size


def _lcs_ops(old: List[str], new: List[str]) -> List[Tuple[ChangeKind, str]]:
    """Edit script between two line lists.

    Equal lines are matched as soon as they are seen, which picks the
    earliest possible common line; otherwise a removal is preferred over
    an addition when both keep the LCS.

    The table only covers the lines before the common suffix:
    ``lengths[i][j]`` is the LCS length of ``old[i:n_mid]`` and
    ``new[j:m_mid]``, which differs from the LCS of the full suffixes by
    the constant suffix length. Once one side of that middle is used up,
    the remaining lines of the longer side always end with the remaining
    lines of the shorter side, so the walk finishes greedily.
    """
    n, m = len(old), len(new)
    suffix = _common_suffix(old, new)
    n_mid, m_mid = n - suffix, m - suffix

    lengths = [[0] * (m_mid + 1) for _ in range(n_mid + 1)]
    for i in range(n_mid - 1, -1, -1):
        row, below = lengths[i], lengths[i + 1]
        line = old[i]
        for j in range(m_mid - 1, -1, -1):
            if line == new[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    ops: List[Tuple[ChangeKind, str]] = []
    i = j = 0
    while i < n_mid and j < m_mid:
        if old[i] == new[j]:
            ops.append((ChangeKind.UNCHANGED, old[i]))
            i += 1
            j += 1
        elif lengths[i + 1][j] >= lengths[i][j + 1]:
            ops.append((ChangeKind.REMOVED, old[i]))
            i += 1
        else:
            ops.append((ChangeKind.ADDED, new[j]))
            j += 1

    while n - i != m - j:
        if i < n and j < m and old[i] == new[j]:
            ops.append((ChangeKind.UNCHANGED, old[i]))
            i += 1
            j += 1
        elif n - i > m - j:
            ops.append((ChangeKind.REMOVED, old[i]))
            i += 1
        else:
            ops.append((ChangeKind.ADDED, new[j]))
            j += 1
    ops.extend((ChangeKind.UNCHANGED, line) for line in old[i:])
    return ops


def _to_runs(ops: List[Tuple[ChangeKind, str]]) -> List[DiffPart]:
    """Collapse single-line ops into runs.

    Between two unchanged runs all removed lines come before all added
    lines.
    """
    parts: List[DiffPart] = []
    unchanged: List[str] = []
    removed: List[str] = []
    added: List[str] = []

    def flush_changes() -> None:
        if removed:
            parts.append(DiffPart(ChangeKind.REMOVED, "".join(removed)))
            removed.clear()
        if added:
            parts.append(DiffPart(ChangeKind.ADDED, "".join(added)))
            added.clear()

    for kind, line in ops:
        if kind is ChangeKind.UNCHANGED:
            flush_changes()
            unchanged.append(line)
            continue
        if unchanged:
            parts.append(DiffPart(ChangeKind.UNCHANGED, "".join(unchanged)))
            unchanged.clear()
        if kind is ChangeKind.REMOVED:
            removed.append(line)
        else:
            added.append(line)

    flush_changes()
    if unchanged:
        parts.append(DiffPart(ChangeKind.UNCHANGED, "".join(unchanged)))
    return parts


def diff_text(old: str, new: str) -> List[DiffPart]:
    """Compare two texts line by line.

    Args:
        old: Previous content
        new: Current content

    Returns:
        Runs in order. Joining unchanged and removed values gives ``old``;
        joining unchanged and added values gives ``new``. Identical inputs
        (including two empty strings) give a single unchanged run.

    Example:
        >>> [(p.kind.value, p.value) for p in diff_text("a\\nb\\n", "a\\nc\\n")]
        [('unchanged', 'a\\n'), ('removed', 'b\\n'), ('added', 'c\\n')]
    """
    if old == new:
        return [DiffPart(ChangeKind.UNCHANGED, old)]

    old_lines = split_lines(old)
    new_lines = split_lines(new)

    # Common prefix needs no table
    prefix = 0
    limit = min(len(old_lines), len(new_lines))
    while prefix < limit and old_lines[prefix] == new_lines[prefix]:
        prefix += 1

    ops = [(ChangeKind.UNCHANGED, line) for line in old_lines[:prefix]]
    ops.extend(_lcs_ops(old_lines[prefix:], new_lines[prefix:]))
    return _to_runs(ops)


class DiffEngine:
    """Compares the files recorded in commits.

    Attributes:
        commit_graph: Graph used to load parent commits
    """

    def __init__(self, commit_graph: CommitGraph) -> None:
        self.commit_graph = commit_graph
        self.object_store = commit_graph.object_store

    def read_text(self, digest: str) -> str:
        """Load a blob as text; undecodable bytes become U+FFFD."""
        return self.object_store.get(digest).decode("utf-8", errors="replace")

    def diff_file(self, path: str, old_digest: Optional[str], new_digest: str) -> FileDiff:
        """Diff one path, treating a missing old digest as a new file."""
        if old_digest is None:
            return FileDiff(path=path, status=FileStatus.NEW, new_digest=new_digest)

        new_text = self.read_text(new_digest)
        if old_digest == new_digest:
            parts = diff_text(new_text, new_text)
            status = FileStatus.UNCHANGED
        else:
            parts = diff_text(self.read_text(old_digest), new_text)
            status = FileStatus.MODIFIED

        return FileDiff(
            path=path,
            status=status,
            parts=tuple(parts),
            old_digest=old_digest,
            new_digest=new_digest,
        )

    def diff_commits(self, current: Commit, other: Commit) -> List[FileDiff]:
        """Diff every file of ``current`` against the same path in ``other``.

        ``other`` is the old side. Files that only ``other`` tracks are not
        reported.
        """
        other_tree = other.tree()
        return [
            self.diff_file(path, other_tree.get(path), digest)
            for path, digest in current.tree().items()
        ]

    def diff_against_parent(self, commit: Commit) -> CommitDiff:
        """Diff every file of ``commit`` against its parent.

        A root commit is reported as the first commit without diffing.

        Raises:
            CorruptHistoryError: If the parent commit cannot be loaded
        """
        if commit.parent is None:
            return CommitDiff(commit=commit, first_commit=True)

        try:
            parent = self.commit_graph.get(commit.parent)
        except CommitNotFoundError:
            raise CorruptHistoryError(commit.id, commit.parent) from None
        logger.debug("Diffing %s against parent %s", commit.id, parent.id)
        return CommitDiff(
            commit=commit,
            first_commit=False,
            files=tuple(self.diff_commits(commit, parent)),
        )
