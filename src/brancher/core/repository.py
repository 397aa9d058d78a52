"""Repository handle.

A ``Repository`` is built once for a workspace and owns the object store,
staging index, commit graph, reference manager and diff engine. Every
front-end operation is a method on it.
"""

import logging
import shutil
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Union

from brancher.constants import (
    BRANCHER_DIR,
    DEFAULT_BRANCH,
    INDEX_FILE,
    OBJECTS_DIR,
    REFS_DIR,
)
from brancher.core.diff_engine import CommitDiff, DiffEngine, FileDiff
from brancher.core.refs import RefManager
from brancher.core.staging import StagingIndex
from brancher.errors import (
    AlreadyInitializedError,
    BrancherIOError,
    NotARepositoryError,
)
from brancher.models import Commit, IndexEntry
from brancher.storage.commit_graph import CommitGraph
from brancher.storage.object_store import FileObjectStore, ObjectStore

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class MergeOutcome(str, Enum):
    """What ``Repository.merge`` found. No outcome creates a commit."""

    NOTHING_TO_MERGE = "nothing-to-merge"
    UP_TO_DATE = "up-to-date"
    FAST_FORWARD = "fast-forward"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class MergeResult:
    """Outcome of a merge attempt.

    Attributes:
        outcome: Which case was detected
        branch: Name of the branch merged from
        current_tip: Tip of the current branch before the merge
        target_tip: Tip of the merged branch
    """

    outcome: MergeOutcome
    branch: str
    current_tip: Optional[str]
    target_tip: Optional[str]


@dataclass(frozen=True)
class Status:
    branch: str
    tip: Optional[str]
    staged: List[IndexEntry]


class Repository:
    """Handle on one workspace's ``.brancher`` directory.

    Attributes:
        workspace_root: Directory whose files are tracked
        repo_dir: The ``.brancher`` directory (repository root)
        objects: Content store for blobs and commits
        index: Staging index
        commits: Commit graph
        refs: Branch references and HEAD
        differ: Diff engine

    Example:
        >>> repo = Repository(Path("."))
        >>> created = repo.init()
        >>> entry = repo.add("notes.txt")
        >>> commit = repo.commit("Initial notes")
    """

    def __init__(
        self,
        workspace_root: PathLike,
        object_store: Optional[ObjectStore] = None,
    ) -> None:
        """Initialize the handle. Nothing is read or written.

        Args:
            workspace_root: Root directory of the workspace
            object_store: Store to use instead of ``.brancher/objects``
        """
        self.workspace_root = Path(workspace_root).resolve()
        self.repo_dir = self.workspace_root / BRANCHER_DIR
        self._object_store = object_store
        self.index = StagingIndex(self.repo_dir)
        self.refs = RefManager(self.repo_dir)

    @classmethod
    def open(
        cls,
        workspace_root: PathLike,
        object_store: Optional[ObjectStore] = None,
    ) -> "Repository":
        """Open an existing repository.

        Raises:
            NotARepositoryError: If the workspace has no ``.brancher`` directory
        """
        repo = cls(workspace_root, object_store=object_store)
        if not repo.is_initialized():
            raise NotARepositoryError(
                f"Not a Brancher repository (no {BRANCHER_DIR}/ found in {repo.workspace_root})"
            )
        return repo

    @property
    def objects(self) -> ObjectStore:
        if self._object_store is None:
            self._object_store = FileObjectStore(self.repo_dir)
        return self._object_store

    @property
    def commits(self) -> CommitGraph:
        return CommitGraph(self.objects)

    @property
    def differ(self) -> DiffEngine:
        return DiffEngine(self.commits)

    def is_initialized(self) -> bool:
        return self.refs.head_path.is_file()

    def init(self) -> bool:
        """Create the repository layout.

        Running it on an existing repository changes nothing.

        Returns:
            True if a repository was created, False if one already existed
        """
        try:
            self._create_layout()
        except AlreadyInitializedError:
            logger.info("Repository already initialized at %s", self.repo_dir)
            return False
        logger.info("Initialized a new repository at %s", self.repo_dir)
        return True

    def _create_layout(self) -> None:
        if self.is_initialized():
            raise AlreadyInitializedError(str(self.repo_dir))

        try:
            (self.repo_dir / OBJECTS_DIR).mkdir(parents=True, exist_ok=True)
            (self.repo_dir / REFS_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BrancherIOError(f"Failed to create {self.repo_dir}: {e}") from e

        if not self.refs.exists(DEFAULT_BRANCH):
            self.refs.init_branch(DEFAULT_BRANCH)
        if not (self.repo_dir / INDEX_FILE).exists():
            self.index.clear()
        # HEAD last: its presence marks a complete repository
        self.refs.set_head(DEFAULT_BRANCH)

    def relative_path(self, path: PathLike) -> str:
        """POSIX path of ``path`` relative to the workspace root.

        Raises:
            ValueError: If the path is outside the workspace
        """
        path = Path(path)
        abs_path = path if path.is_absolute() else self.workspace_root / path
        abs_path = abs_path.resolve()
        try:
            return abs_path.relative_to(self.workspace_root).as_posix()
        except ValueError:
            raise ValueError(
                f"Path {path} is outside workspace root {self.workspace_root}"
            ) from None

    def add(self, path: PathLike) -> IndexEntry:
        """Store a file's content and stage it.

        Both the blob and the updated index are on disk when this returns.

        Raises:
            BrancherIOError: If the file cannot be read
            ValueError: If the path is outside the workspace or inside ``.brancher``
        """
        rel_path = self.relative_path(path)
        if rel_path == BRANCHER_DIR or rel_path.startswith(f"{BRANCHER_DIR}/"):
            raise ValueError(f"Cannot add repository internals: {rel_path}")

        try:
            content = (self.workspace_root / rel_path).read_bytes()
        except OSError as e:
            raise BrancherIOError(f"Failed to read {path}: {e}") from e

        digest = self.objects.put(content)
        entry = self.index.stage(rel_path, digest)
        logger.info("Added %s", rel_path)
        return entry

    def commit(self, message: str) -> Commit:
        """Commit the staged entries on the current branch.

        The index is cleared only after the branch has moved.
        """
        branch = self.refs.current_branch_name()
        parent = self.refs.read(branch)
        commit = self.commits.commit(message, self.index.snapshot(), parent)
        self.refs.update(branch, commit.id)
        self.index.clear()
        return commit

    def log(self) -> Iterator[Commit]:
        """History of the current branch from tip to root."""
        tip = self.refs.current_tip()
        if tip is None:
            return iter(())
        return self.commits.history(tip)

    def show(self, digest: str) -> Commit:
        """Load a commit by full or abbreviated digest."""
        return self.commits.get(self.objects.resolve(digest))

    def create_branch(self, name: str) -> Optional[str]:
        return self.refs.branch(name)

    def switch_branch(self, name: str) -> None:
        self.refs.switch(name)

    def list_branches(self) -> List[str]:
        return self.refs.list_branches()

    def current_branch(self) -> str:
        return self.refs.current_branch_name()

    def merge(self, name: str) -> MergeResult:
        """Check how branch ``name`` relates to the current branch.

        A fast-forward moves the current branch to the target tip. In every
        other case nothing changes; diverged histories are reported, not
        merged.

        Raises:
            BranchNotFoundError: If ``name`` does not exist
        """
        target_tip = self.refs.read(name)
        current = self.refs.current_branch_name()
        current_tip = self.refs.read(current)

        if current_tip is None or target_tip is None:
            outcome = MergeOutcome.NOTHING_TO_MERGE
        elif current_tip == target_tip or self.commits.is_ancestor(target_tip, current_tip):
            outcome = MergeOutcome.UP_TO_DATE
        elif self.commits.is_ancestor(current_tip, target_tip):
            self.refs.update(current, target_tip)
            outcome = MergeOutcome.FAST_FORWARD
        else:
            outcome = MergeOutcome.DIVERGED

        logger.info("Merge %s into %s: %s", name, current, outcome.value)
        return MergeResult(
            outcome=outcome,
            branch=name,
            current_tip=current_tip,
            target_tip=target_tip,
        )

    def diff_branch(self, name: str) -> Optional[List[FileDiff]]:
        """Diff the current tip against the tip of branch ``name``.

        Returns:
            One entry per file of the current tip, or None when either
            branch has no commits

        Raises:
            BranchNotFoundError: If ``name`` does not exist
        """
        target_tip = self.refs.read(name)
        current_tip = self.refs.current_tip()
        if current_tip is None or target_tip is None:
            return None
        return self.differ.diff_commits(
            self.commits.get(current_tip),
            self.commits.get(target_tip),
        )

    def diff_against_parent(self, digest: str) -> CommitDiff:
        return self.differ.diff_against_parent(self.show(digest))

    def status(self) -> Status:
        branch = self.refs.current_branch_name()
        return Status(branch=branch, tip=self.refs.read(branch), staged=self.index.snapshot())

    def clone(self, destination: PathLike) -> "Repository":
        """Copy the repository directory into ``destination``.

        Only ``.brancher`` is copied; workspace files are not.

        Raises:
            BrancherIOError: If the destination already holds a repository
                or the copy fails
        """
        dest_root = Path(destination).resolve()
        dest_repo_dir = dest_root / BRANCHER_DIR
        if dest_repo_dir.exists():
            raise BrancherIOError(f"Destination already contains a repository: {dest_repo_dir}")

        try:
            dest_root.mkdir(parents=True, exist_ok=True)
            shutil.copytree(self.repo_dir, dest_repo_dir)
        except OSError as e:
            raise BrancherIOError(f"Failed to clone to {dest_root}: {e}") from e

        logger.info("Cloned repository to %s", dest_root)
        return Repository(dest_root)
