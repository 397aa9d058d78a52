"""Storage layer for Brancher.

This module provides the content-addressable object store and the commit
graph built on top of it.
"""

from brancher.storage.object_store import (
    FileObjectStore,
    MemoryObjectStore,
    ObjectStore,
)
from brancher.storage.commit_graph import CommitGraph

__all__ = [
    "ObjectStore",
    "FileObjectStore",
    "MemoryObjectStore",
    "CommitGraph",
]
