"""Error types raised by the Brancher core.

Store and graph lookups raise these to their immediate caller; the
front end decides how to report them.
"""

from typing import List


class BrancherError(Exception):
    """Base class for all Brancher errors."""


class ObjectNotFoundError(BrancherError):
    """Raised when no object with the requested digest is stored."""

    def __init__(self, digest: str) -> None:
        self.digest = digest
        super().__init__(f"Object not found: {digest}")


class AmbiguousDigestError(BrancherError):
    """Raised when an abbreviated digest matches more than one object.

    Attributes:
        prefix: The abbreviation that was looked up.
        candidates: Every stored digest starting with ``prefix``.
    """

    def __init__(self, prefix: str, candidates: List[str]) -> None:
        self.prefix = prefix
        self.candidates = sorted(candidates)
        super().__init__(
            f"Ambiguous digest {prefix!r} matches {len(candidates)} objects"
        )


class CommitNotFoundError(BrancherError):
    """Raised when a commit digest does not resolve to a stored commit."""

    def __init__(self, digest: str) -> None:
        self.digest = digest
        super().__init__(f"Commit not found: {digest}")


class BranchNotFoundError(BrancherError):
    """Raised when a branch reference does not exist."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Branch {name} does not exist")


class InvalidBranchNameError(BrancherError, ValueError):
    """Raised for branch names that cannot be stored as a reference file."""


class CorruptHistoryError(BrancherError):
    """Raised when a parent link points at a commit that cannot be loaded.

    Attributes:
        child: Digest of the commit holding the broken link.
        parent: Digest the link points at.
    """

    def __init__(self, child: str, parent: str) -> None:
        self.child = child
        self.parent = parent
        super().__init__(
            f"Broken history: commit {child} references missing parent {parent}"
        )


class AlreadyInitializedError(BrancherError):
    """Signals that a repository already exists. Treated as success by init."""


class NotARepositoryError(BrancherError):
    """Raised when a workspace has no repository directory."""


class BrancherIOError(BrancherError):
    """Raised when reading or writing repository storage fails."""


class CorruptDataError(BrancherIOError):
    """Raised when stored data cannot be decoded into the expected record."""
