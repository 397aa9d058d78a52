"""Branch references and HEAD.

Each branch is a file ``.brancher/refs/<name>`` holding the digest of
its tip commit, or nothing when the branch has no commits yet. ``HEAD``
holds ``refs/<name>`` for the current branch.
"""

import logging
from pathlib import Path
from typing import List, Optional

from brancher.constants import HEAD_FILE, REFS_DIR, REFS_PREFIX
from brancher.errors import (
    BrancherIOError,
    BranchNotFoundError,
    CorruptDataError,
    InvalidBranchNameError,
)
from brancher.hashing import is_digest
from brancher.storage.atomic import atomic_write

logger = logging.getLogger(__name__)


def validate_branch_name(name: str) -> str:
    """Return ``name`` if it can be used as a reference file name.

    Raises:
        InvalidBranchNameError: For empty names, names containing path
            separators or whitespace, and names starting with a dot.
    """
    if not isinstance(name, str) or not name:
        raise InvalidBranchNameError("Branch name must not be empty")
    if "/" in name or "\\" in name:
        raise InvalidBranchNameError(f"Branch name must not contain path separators: {name!r}")
    if name.startswith("."):
        raise InvalidBranchNameError(f"Branch name must not start with '.': {name!r}")
    if any(c.isspace() for c in name):
        raise InvalidBranchNameError(f"Branch name must not contain whitespace: {name!r}")
    return name


class RefManager:
    """Named branch pointers plus the HEAD indirection.

    Attributes:
        repo_dir: Path to the ``.brancher`` directory
        refs_dir: Path to the branch reference files
        head_path: Path to the HEAD file
    """

    def __init__(self, repo_dir: Path) -> None:
        self.repo_dir = Path(repo_dir)
        self.refs_dir = self.repo_dir / REFS_DIR
        self.head_path = self.repo_dir / HEAD_FILE

    def ref_path(self, name: str) -> Path:
        return self.refs_dir / validate_branch_name(name)

    def init_branch(self, name: str, digest: Optional[str] = None) -> None:
        """Create (or overwrite) a branch pointing at ``digest`` or nothing."""
        path = self.ref_path(name)
        try:
            self.refs_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BrancherIOError(f"Failed to create {self.refs_dir}: {e}") from e
        atomic_write(path, (digest or "").encode("utf-8"), prefix=".tmp_ref_")
        logger.info("Created branch %s at %s", name, digest or "(no commits)")

    def exists(self, name: str) -> bool:
        try:
            return self.ref_path(name).is_file()
        except InvalidBranchNameError:
            return False

    def read(self, name: str) -> Optional[str]:
        """Return the tip digest of a branch, or None if it has no commits.

        Raises:
            BranchNotFoundError: If the branch does not exist
            CorruptDataError: If the reference holds something other than a digest
        """
        if not self.exists(name):
            raise BranchNotFoundError(name)

        try:
            content = self.ref_path(name).read_text(encoding="utf-8").strip()
        except OSError as e:
            raise BrancherIOError(f"Failed to read branch {name}: {e}") from e

        if not content:
            return None
        if not is_digest(content):
            raise CorruptDataError(f"Branch {name} holds an invalid digest: {content!r}")
        return content

    def update(self, name: str, digest: str) -> None:
        """Point an existing branch at ``digest``.

        Raises:
            BranchNotFoundError: If the branch does not exist
        """
        if not self.exists(name):
            raise BranchNotFoundError(name)
        atomic_write(self.ref_path(name), digest.encode("utf-8"), prefix=".tmp_ref_")
        logger.info("Moved branch %s to %s", name, digest)

    def list_branches(self) -> List[str]:
        """Return all branch names, sorted."""
        if not self.refs_dir.exists():
            return []
        return sorted(
            path.name
            for path in self.refs_dir.iterdir()
            if path.is_file() and not path.name.startswith(".")
        )

    def current_branch_name(self) -> str:
        """Read the branch name HEAD points at."""
        try:
            content = self.head_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise BrancherIOError(f"Failed to read HEAD: {e}") from e

        if content.startswith(REFS_PREFIX):
            content = content[len(REFS_PREFIX):]
        if not content:
            raise CorruptDataError("HEAD does not name a branch")
        return content

    def current_tip(self) -> Optional[str]:
        """Return the tip digest of the current branch, or None."""
        return self.read(self.current_branch_name())

    def set_head(self, name: str) -> None:
        atomic_write(self.head_path, f"{REFS_PREFIX}{name}".encode("utf-8"), prefix=".tmp_head_")

    def switch(self, name: str) -> None:
        """Make ``name`` the current branch.

        Only HEAD changes; no files are written to the workspace.

        Raises:
            BranchNotFoundError: If the branch does not exist (HEAD is left as is)
        """
        if not self.exists(name):
            raise BranchNotFoundError(name)
        self.set_head(name)
        logger.info("Switched to branch %s", name)

    def branch(self, name: str) -> Optional[str]:
        """Create a branch at the current tip and return that tip."""
        tip = self.current_tip()
        self.init_branch(name, tip)
        return tip
