"""Fixtures for integration tests."""

import subprocess
import sys
from pathlib import Path

import pytest


def _run_brancher(*args: str, cwd: Path) -> subprocess.CompletedProcess:
    """Run the CLI in a child process."""
    return subprocess.run(
        [sys.executable, "-m", "brancher.cli.main", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
    )


@pytest.fixture
def run_brancher():
    """Callable that runs the CLI in a child process."""
    return _run_brancher


@pytest.fixture
def initialized_repo(tmp_path):
    """Create a temporary directory with an initialized repository.

    Returns:
        Path: Path to the workspace root
    """
    workspace = tmp_path / "test_workspace"
    workspace.mkdir()

    result = _run_brancher("init", "--quiet", cwd=workspace)

    if result.returncode != 0:
        raise RuntimeError(f"Failed to initialize repo: {result.stdout}\n{result.stderr}")

    return workspace
