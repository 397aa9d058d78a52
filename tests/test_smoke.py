"""Basic smoke tests to verify project setup."""

import pytest
from brancher import __version__


def test_version() -> None:
    """Test that version is correctly defined."""
    assert __version__ == "0.1.0"


def test_import_storage() -> None:
    """Test that storage module can be imported."""
    from brancher import storage  # noqa: F401


def test_import_core() -> None:
    """Test that core module can be imported."""
    from brancher import core  # noqa: F401


def test_import_cli() -> None:
    """Test that cli module can be imported."""
    from brancher.cli import main  # noqa: F401


def test_temp_repo_fixture(temp_repo) -> None:
    """Test that temp_repo fixture creates workspace files."""
    assert (temp_repo / "a.txt").exists()
    assert (temp_repo / "notes.md").exists()
    assert (temp_repo / "src" / "app.py").exists()

    assert (temp_repo / "a.txt").read_text() == "hello"
