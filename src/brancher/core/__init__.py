"""Core engine layer for Brancher.

This module provides the staging index, branch references, the diff
engine and the repository handle that ties them to the storage layer.
"""

from brancher.core.diff_engine import (
    ChangeKind,
    CommitDiff,
    DiffEngine,
    DiffPart,
    FileDiff,
    FileStatus,
    diff_text,
)
from brancher.core.refs import RefManager
from brancher.core.repository import MergeOutcome, MergeResult, Repository
from brancher.core.staging import StagingIndex

__all__ = [
    "ChangeKind",
    "CommitDiff",
    "DiffEngine",
    "DiffPart",
    "FileDiff",
    "FileStatus",
    "diff_text",
    "RefManager",
    "MergeOutcome",
    "MergeResult",
    "Repository",
    "StagingIndex",
]
