"""Main CLI entry point for Brancher."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from brancher.constants import (
    BRANCHER_DIR,
    EXIT_DATA_ERROR,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    SHORT_HASH_LENGTH,
)
from brancher.core import FileDiff, FileStatus, MergeOutcome, Repository
from brancher.errors import (
    BrancherError,
    BrancherIOError,
    CorruptDataError,
    CorruptHistoryError,
    NotARepositoryError,
)

console = Console()
app = typer.Typer(
    name="brancher",
    help="Minimal local version control with branches and line diffs",
    add_completion=False,
)


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log repository operations to stderr",
    ),
) -> None:
    """Minimal local version control with branches and line diffs."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
            force=True,
        )


def _short(digest: Optional[str]) -> str:
    return digest[:SHORT_HASH_LENGTH] if digest else "(none)"


def _fail(error: Exception) -> NoReturn:
    """Report an error and exit with the matching code."""
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}", style="red", highlight=False)

    if isinstance(error, (CorruptDataError, CorruptHistoryError)):
        code = EXIT_DATA_ERROR
    elif isinstance(error, BrancherIOError):
        code = EXIT_SYSTEM_ERROR
    else:
        code = EXIT_USER_ERROR
    raise typer.Exit(code)


def _open_repo() -> Repository:
    """Open the repository in the current directory or exit."""
    try:
        return Repository.open(Path.cwd())
    except NotARepositoryError:
        console.print(
            "[bold red]Error:[/bold red] Not a Brancher repository",
            style="red",
        )
        console.print(
            f"  No {BRANCHER_DIR}/ directory found in {escape(str(Path.cwd()))}",
            style="dim",
            highlight=False,
        )
        console.print(
            "\nRun [bold]brancher init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)


def _print_parts(file_diff: FileDiff, unified: bool) -> None:
    if unified:
        console.print(file_diff.unified(), end="", markup=False, highlight=False)
        return

    for part in file_diff.parts:
        if part.added:
            style = "green"
        elif part.removed:
            style = "red"
        else:
            style = None
        console.print(Text(part.value, style=style or ""), end="")
    console.print()


def _print_file_diffs(file_diffs: Iterable[FileDiff], new_label: str, unified: bool) -> None:
    for file_diff in file_diffs:
        if file_diff.status is FileStatus.NEW:
            console.print(
                f"[bold green]+ {escape(file_diff.path)}[/bold green] is new in {new_label}",
                highlight=False,
            )
            continue
        if file_diff.status is FileStatus.UNCHANGED and unified:
            continue
        console.print(f"[bold]Diff for file {escape(file_diff.path)}:[/bold]", highlight=False)
        _print_parts(file_diff, unified)


@app.command()
def version() -> None:
    """Show Brancher version."""
    from brancher import __version__
    typer.echo(f"Brancher version {__version__}")


@app.command()
def init(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a repository in the current directory."""
    repo = Repository(Path.cwd())
    try:
        created = repo.init()
    except BrancherError as e:
        _fail(e)

    if quiet:
        return
    if not created:
        console.print("[yellow]Repository already initialized.[/yellow]")
        return

    success_message = f"""[bold green]✓[/bold green] Initialized a new repository

[dim]Repository root:[/dim] {escape(str(repo.workspace_root))}
[dim]Storage location:[/dim] {escape(str(repo.repo_dir))}
[dim]Current branch:[/dim] {escape(repo.current_branch())}

[bold]Next steps:[/bold]
  1. Stage files: [cyan]brancher add <file>[/cyan]
  2. Create a commit: [cyan]brancher commit -m "Initial commit"[/cyan]
"""
    console.print(Panel(success_message, border_style="green", title="Brancher Initialized"))


@app.command()
def add(
    paths: List[str] = typer.Argument(..., help="Files to stage"),
) -> None:
    """Add files to the staging area."""
    repo = _open_repo()

    staged = 0
    failed = False
    for path in paths:
        try:
            entry = repo.add(path)
        except (BrancherError, ValueError) as e:
            console.print(f"  [red]x[/red] {escape(path)}: {escape(str(e))}", highlight=False)
            failed = True
            continue
        console.print(
            f"  [green]+[/green] Added {escape(entry.path)}  [dim]({_short(entry.digest)})[/dim]",
            highlight=False,
        )
        staged += 1

    if staged:
        console.print(f"\n[bold green]>[/bold green] {staged} file(s) staged for commit")
    if failed:
        raise typer.Exit(EXIT_USER_ERROR)


@app.command()
def commit(
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (required)",
    ),
) -> None:
    """Commit staged files as a snapshot."""
    repo = _open_repo()

    if not message:
        console.print(
            "[bold red]Error:[/bold red] Commit message is required",
            style="red",
        )
        console.print(
            "  Use [bold]-m \"your message\"[/bold] to provide a commit message",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    try:
        new_commit = repo.commit(message)
    except BrancherError as e:
        _fail(e)

    if not new_commit.files:
        console.print("[dim]Created an empty commit (nothing was staged)[/dim]")
    console.print(
        f"[bold green]✓[/bold green] Commit successfully created: {new_commit.id}",
        highlight=False,
    )


def _format_date(timestamp: str) -> str:
    try:
        dt = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return timestamp
    return dt.strftime("%Y-%m-%d %H:%M:%S")


@app.command()
def log(
    max_count: Optional[int] = typer.Option(
        None,
        "--max-count",
        "-n",
        help="Limit number of commits to show",
    ),
    oneline: bool = typer.Option(
        False,
        "--oneline",
        help="Show each commit on a single line",
    ),
) -> None:
    """Show the history of the current branch."""
    repo = _open_repo()

    shown = 0
    try:
        for entry in repo.log():
            if max_count is not None and shown >= max_count:
                break
            if oneline:
                first_line = entry.message.split("\n")[0]
                console.print(f"[yellow]{_short(entry.id)}[/yellow] {escape(first_line)}", highlight=False)
            else:
                if shown:
                    console.print()
                console.print(f"[bold yellow]commit {entry.id}[/bold yellow]", highlight=False)
                if entry.parent:
                    console.print(f"[dim]Parent: {_short(entry.parent)}[/dim]", highlight=False)
                else:
                    console.print("[dim]Parent: (root commit)[/dim]")
                console.print(f"[bold]Date:[/bold]   {_format_date(entry.timestamp)}", highlight=False)
                console.print()
                for line in entry.message.split("\n"):
                    console.print(f"    {line}", markup=False, highlight=False)
            shown += 1
    except BrancherError as e:
        _fail(e)

    if not shown:
        console.print("[dim]No commits yet[/dim]")


@app.command()
def show(
    digest: str = typer.Argument(..., help="Commit digest (may be abbreviated)"),
) -> None:
    """Show a commit and the files it records."""
    repo = _open_repo()
    try:
        shown = repo.show(digest)
    except BrancherError as e:
        _fail(e)

    console.print(f"[bold]Commit:[/bold] {shown.id}", highlight=False)
    console.print(f"[bold]Date:[/bold] {shown.timestamp}", highlight=False)
    console.print(f"[bold]Parent:[/bold] {shown.parent or '(root commit)'}", highlight=False)
    console.print("[bold]Message:[/bold] ", end="")
    console.print(shown.message, markup=False, highlight=False)
    console.print("\n[bold]Changed Files:[/bold]")
    if not shown.files:
        console.print("  [dim](none)[/dim]")
    for entry in shown.files:
        console.print(f"- {entry.path}", markup=False, highlight=False)


@app.command()
def branch(
    name: Optional[str] = typer.Argument(None, help="Name of the branch to create"),
) -> None:
    """Create a branch at the current commit, or list branches."""
    repo = _open_repo()
    try:
        if name is None:
            current = repo.current_branch()
            for branch_name in repo.list_branches():
                if branch_name == current:
                    console.print(f"* [green]{escape(branch_name)}[/green]", highlight=False)
                else:
                    console.print(f"  {branch_name}", markup=False, highlight=False)
            return
        tip = repo.create_branch(name)
    except BrancherError as e:
        _fail(e)

    console.print(f"Branch {name} created at {_short(tip)}.", markup=False, highlight=False)


@app.command()
def switch(
    name: str = typer.Argument(..., help="Branch to switch to"),
) -> None:
    """Make another branch current."""
    repo = _open_repo()
    try:
        repo.switch_branch(name)
    except BrancherError as e:
        _fail(e)
    console.print(f"Switched to branch {name}", markup=False, highlight=False)


@app.command()
def merge(
    name: str = typer.Argument(..., help="Branch to merge into the current branch"),
) -> None:
    """Fast-forward to another branch when possible.

    Diverged histories are reported, never merged.
    """
    repo = _open_repo()
    try:
        result = repo.merge(name)
    except BrancherError as e:
        _fail(e)

    if result.outcome is MergeOutcome.NOTHING_TO_MERGE:
        console.print("Nothing to merge.")
    elif result.outcome is MergeOutcome.UP_TO_DATE:
        console.print("Branches are already up-to-date.")
    elif result.outcome is MergeOutcome.FAST_FORWARD:
        console.print(
            f"Fast-forwarded to {escape(name)} "
            f"({_short(result.current_tip)} -> {_short(result.target_tip)}).",
            highlight=False,
        )
    else:
        console.print(
            f"[bold yellow]Branches have diverged:[/bold yellow] "
            f"{_short(result.current_tip)} and {escape(name)} at {_short(result.target_tip)}",
            highlight=False,
        )
        console.print("  Content-level merging is not supported.", style="dim")
        raise typer.Exit(EXIT_USER_ERROR)


@app.command()
def diff(
    branch_name: Optional[str] = typer.Argument(
        None,
        metavar="BRANCH",
        help="Branch to compare the current branch against",
    ),
    commit_digest: Optional[str] = typer.Option(
        None,
        "--commit",
        "-c",
        help="Compare this commit against its parent",
    ),
    unified: bool = typer.Option(
        False,
        "--unified",
        "-u",
        help="Print unified diffs",
    ),
) -> None:
    """Compare the current branch with another, or a commit with its parent.

    Without arguments the tip of the current branch is compared with its
    parent.
    """
    if branch_name is not None and commit_digest is not None:
        console.print(
            "[bold red]Error:[/bold red] Give either a branch or --commit, not both",
            style="red",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    repo = _open_repo()

    try:
        if branch_name is not None:
            file_diffs = repo.diff_branch(branch_name)
            if file_diffs is None:
                console.print("Nothing to diff.")
                return
            _print_file_diffs(file_diffs, "the current branch", unified)
            return

        if commit_digest is None:
            commit_digest = repo.refs.current_tip()
            if commit_digest is None:
                console.print("[dim]No commits yet[/dim]")
                return

        commit_diff = repo.diff_against_parent(commit_digest)
    except BrancherError as e:
        _fail(e)

    if commit_diff.first_commit:
        console.print(
            f"Commit {_short(commit_diff.commit.id)} is the first commit; nothing to compare.",
            highlight=False,
        )
        return
    _print_file_diffs(commit_diff.files, "this commit", unified)


@app.command()
def status() -> None:
    """Show the current branch and the staged files."""
    repo = _open_repo()
    try:
        current = repo.status()
    except BrancherError as e:
        _fail(e)

    console.print(f"On branch [bold]{escape(current.branch)}[/bold]", highlight=False)
    console.print(f"[dim]Tip: {_short(current.tip)}[/dim]", highlight=False)
    if not current.staged:
        console.print("\nNothing staged")
        return
    console.print("\n[bold green]Staged:[/bold green]")
    for entry in current.staged:
        console.print(
            f"  [green]+[/green] {escape(entry.path)}  [dim]({_short(entry.digest)})[/dim]",
            highlight=False,
        )


@app.command()
def clone(
    destination: str = typer.Argument(..., help="Directory to copy the repository into"),
) -> None:
    """Copy the repository directory to another location."""
    repo = _open_repo()
    try:
        cloned = repo.clone(destination)
    except BrancherError as e:
        _fail(e)
    console.print(f"Cloned repository to {cloned.workspace_root}", markup=False, highlight=False)


if __name__ == "__main__":
    app()
