"""Content-addressable object storage for Brancher.

Blobs (file bodies) and serialized commits share one address space keyed
by the SHA-1 digest of their bytes. Writing identical content twice is a
no-op the second time, and nothing is ever deleted.

Storage layout:
    .brancher/objects/<digest>
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Iterable

from brancher.constants import MIN_ABBREV_LENGTH, OBJECTS_DIR
from brancher.errors import (
    AmbiguousDigestError,
    BrancherIOError,
    ObjectNotFoundError,
)
from brancher.hashing import HEX_DIGITS, compute_digest, is_digest
from brancher.storage.atomic import atomic_write

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """Abstract content-addressed store.

    Subclasses provide raw byte persistence; hashing, validation and
    abbreviation lookup live here so every backend behaves the same.

    Example:
        >>> store = MemoryObjectStore()
        >>> digest = store.put(b"hello\\n")
        >>> store.get(digest)
        b'hello\\n'
    """

    def put(self, content: bytes) -> str:
        """Store ``content`` and return its digest.

        Storing content that is already present returns the same digest
        without writing anything.

        Raises:
            BrancherIOError: If the backend cannot persist the bytes.
        """
        digest = compute_digest(content)

        # Deduplication
        if self._has(digest):
            logger.debug("Object %s already stored", digest)
            return digest

        self._write(digest, content)
        logger.debug("Stored object %s (%d bytes)", digest, len(content))
        return digest

    def get(self, digest: str) -> bytes:
        """Return the bytes stored under ``digest``.

        Raises:
            ObjectNotFoundError: If the digest is malformed or not stored.
        """
        if not is_digest(digest) or not self._has(digest):
            raise ObjectNotFoundError(digest)
        return self._read(digest)

    def exists(self, digest: str) -> bool:
        """Check if an object with this digest is stored."""
        return is_digest(digest) and self._has(digest)

    def resolve(self, prefix: str) -> str:
        """Expand an abbreviated digest to the single stored digest it names.

        Args:
            prefix: Full digest or at least ``MIN_ABBREV_LENGTH`` leading
                hex characters of one.

        Returns:
            The full digest.

        Raises:
            ObjectNotFoundError: If nothing matches or the prefix is too short.
            AmbiguousDigestError: If more than one object matches.
        """
        prefix = prefix.strip().lower()
        if is_digest(prefix):
            if self._has(prefix):
                return prefix
            raise ObjectNotFoundError(prefix)

        if len(prefix) < MIN_ABBREV_LENGTH or not set(prefix) <= HEX_DIGITS:
            raise ObjectNotFoundError(prefix)

        matches = [d for d in self.digests() if d.startswith(prefix)]
        if not matches:
            raise ObjectNotFoundError(prefix)
        if len(matches) > 1:
            raise AmbiguousDigestError(prefix, matches)
        return matches[0]

    @abstractmethod
    def digests(self) -> Iterable[str]:
        """Iterate over every stored digest."""

    @abstractmethod
    def _has(self, digest: str) -> bool:
        """Check presence of an already-validated digest."""

    @abstractmethod
    def _read(self, digest: str) -> bytes:
        """Read bytes for a digest known to be present."""

    @abstractmethod
    def _write(self, digest: str, content: bytes) -> None:
        """Persist bytes under a digest not yet present."""


class FileObjectStore(ObjectStore):
    """Object store backed by one file per object under ``objects/``.

    Attributes:
        repo_dir: Path to the ``.brancher`` directory
        objects_dir: Path to the objects directory
    """

    def __init__(self, repo_dir: Path) -> None:
        """Initialize the object store.

        Args:
            repo_dir: Path to the ``.brancher`` directory

        Raises:
            ValueError: If repo_dir doesn't exist
        """
        self.repo_dir = Path(repo_dir)
        self.objects_dir = self.repo_dir / OBJECTS_DIR

        if not self.repo_dir.exists():
            raise ValueError(f"Brancher directory not found: {repo_dir}")

    def digests(self) -> Iterable[str]:
        if not self.objects_dir.exists():
            return
        for path in self.objects_dir.iterdir():
            if is_digest(path.name):
                yield path.name

    def object_path(self, digest: str) -> Path:
        """Get the filesystem path for an object."""
        return self.objects_dir / digest

    def _has(self, digest: str) -> bool:
        return self.object_path(digest).is_file()

    def _read(self, digest: str) -> bytes:
        try:
            return self.object_path(digest).read_bytes()
        except FileNotFoundError as e:
            raise ObjectNotFoundError(digest) from e
        except OSError as e:
            raise BrancherIOError(f"Failed to read object {digest}: {e}") from e

    def _write(self, digest: str, content: bytes) -> None:
        try:
            self.objects_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BrancherIOError(f"Failed to create {self.objects_dir}: {e}") from e
        atomic_write(self.object_path(digest), content, prefix=".tmp_obj_")


class MemoryObjectStore(ObjectStore):
    """Dict-backed object store for tests and throwaway repositories."""

    def __init__(self) -> None:
        self._objects: Dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._objects)

    def digests(self) -> Iterable[str]:
        return list(self._objects)

    def _has(self, digest: str) -> bool:
        return digest in self._objects

    def _read(self, digest: str) -> bytes:
        return self._objects[digest]

    def _write(self, digest: str, content: bytes) -> None:
        self._objects[digest] = bytes(content)
