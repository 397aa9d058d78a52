"""Unit tests for brancher init command."""

import os
from pathlib import Path

import pytest
from typer.testing import CliRunner

from brancher.cli.main import app
from brancher.constants import BRANCHER_DIR

runner = CliRunner()


class TestInitCommand:
    """Test brancher init command."""

    def test_init_creates_directory_structure(self, tmp_path: Path) -> None:
        """Test that init creates required directories and files."""
        original_cwd = Path.cwd()
        os.chdir(tmp_path)

        try:
            result = runner.invoke(app, ["init", "--quiet"])

            assert result.exit_code == 0

            repo_dir = tmp_path / BRANCHER_DIR
            assert (repo_dir / "objects").is_dir()
            assert (repo_dir / "refs" / "main").is_file()
            assert (repo_dir / "HEAD").read_text(encoding="utf-8") == "refs/main"
            assert (repo_dir / "index").read_text(encoding="utf-8") == "[]"
        finally:
            os.chdir(original_cwd)

    def test_init_shows_panel(self, tmp_path: Path) -> None:
        """Test the success message."""
        original_cwd = Path.cwd()
        os.chdir(tmp_path)

        try:
            result = runner.invoke(app, ["init"])

            assert result.exit_code == 0
            assert "Initialized a new repository" in result.stdout
            assert "brancher add" in result.stdout
        finally:
            os.chdir(original_cwd)

    def test_init_twice_is_not_an_error(self, tmp_path: Path) -> None:
        """Test that init on an existing repository succeeds and keeps data."""
        original_cwd = Path.cwd()
        os.chdir(tmp_path)

        try:
            result1 = runner.invoke(app, ["init", "--quiet"])
            assert result1.exit_code == 0

            (tmp_path / "a.txt").write_text("hello")
            runner.invoke(app, ["add", "a.txt"])
            runner.invoke(app, ["commit", "-m", "first"])
            tip = (tmp_path / BRANCHER_DIR / "refs" / "main").read_text(encoding="utf-8")

            result2 = runner.invoke(app, ["init"])

            assert result2.exit_code == 0
            assert "already initialized" in result2.stdout
            assert (tmp_path / BRANCHER_DIR / "refs" / "main").read_text(encoding="utf-8") == tip
        finally:
            os.chdir(original_cwd)

    def test_version(self) -> None:
        """Test the version command."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.stdout

    @pytest.mark.parametrize("command", [["log"], ["status"], ["commit", "-m", "x"], ["switch", "dev"]])
    def test_commands_require_repository(self, tmp_path: Path, command) -> None:
        """Test that commands fail cleanly outside a repository."""
        original_cwd = Path.cwd()
        os.chdir(tmp_path)

        try:
            result = runner.invoke(app, command)

            assert result.exit_code == 1
            assert "Not a Brancher repository" in result.stdout
        finally:
            os.chdir(original_cwd)
