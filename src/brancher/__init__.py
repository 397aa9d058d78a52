"""Brancher - a minimal local version control engine.

Brancher tracks snapshots of a file tree with content-addressed storage
for file bodies, an immutable parent-linked commit history, branches,
and a line-based diff engine.
"""

__version__ = "0.1.0"
__author__ = "Brancher Contributors"

from brancher.core import MergeOutcome, Repository, diff_text
from brancher.models import Commit, IndexEntry

__all__ = [
    "__version__",
    "__author__",
    "Commit",
    "IndexEntry",
    "MergeOutcome",
    "Repository",
    "diff_text",
]
