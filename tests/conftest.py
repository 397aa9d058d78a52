"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path

from brancher.core import Repository


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for testing."""
    return tmp_path


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary workspace with a few text files."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    (repo / "a.txt").write_text("hello")
    (repo / "notes.md").write_text(
        "# Notes\n"
        "first line\n"
        "second line\n"
    )
    (repo / "src").mkdir()
    (repo / "src" / "app.py").write_text(
        "def main():\n"
        "    return 1\n"
    )

    return repo


@pytest.fixture
def repo(temp_repo: Path) -> Repository:
    """An initialized repository over ``temp_repo``."""
    repository = Repository(temp_repo)
    repository.init()
    return repository
