"""Tests for the line diff engine."""

import time

import pytest

from brancher.core.diff_engine import (
    ChangeKind,
    DiffEngine,
    DiffPart,
    FileStatus,
    diff_text,
    split_lines,
)
from brancher.errors import CorruptHistoryError
from brancher.models import IndexEntry
from brancher.storage.commit_graph import CommitGraph
from brancher.storage.object_store import MemoryObjectStore


def rebuild_old(parts) -> str:
    return "".join(p.value for p in parts if p.kind is not ChangeKind.ADDED)


def rebuild_new(parts) -> str:
    return "".join(p.value for p in parts if p.kind is not ChangeKind.REMOVED)


def kinds(parts):
    return [(p.kind.value, p.value) for p in parts]


class TestSplitLines:
    """Test line splitting."""

    def test_keeps_terminators(self) -> None:
        assert split_lines("a\nb\n") == ["a\n", "b\n"]

    def test_last_line_without_newline(self) -> None:
        assert split_lines("a\nb") == ["a\n", "b"]

    def test_empty(self) -> None:
        assert split_lines("") == []


class TestDiffText:
    """Test diff_text."""

    @pytest.mark.parametrize("text", ["", "hello", "a\nb\nc\n", "no newline\nat end"])
    def test_identical_inputs_single_unchanged_run(self, text: str) -> None:
        assert diff_text(text, text) == [DiffPart(ChangeKind.UNCHANGED, text)]

    def test_replaced_single_line(self) -> None:
        parts = diff_text("hello", "hello world")

        assert kinds(parts) == [("removed", "hello"), ("added", "hello world")]

    def test_added_lines(self) -> None:
        parts = diff_text("a\nb\n", "a\nb\nc\nd\n")

        assert kinds(parts) == [("unchanged", "a\nb\n"), ("added", "c\nd\n")]

    def test_removed_lines(self) -> None:
        parts = diff_text("a\nb\nc\n", "a\nc\n")

        assert kinds(parts) == [("unchanged", "a\n"), ("removed", "b\n"), ("unchanged", "c\n")]

    def test_from_empty(self) -> None:
        assert kinds(diff_text("", "x\ny\n")) == [("added", "x\ny\n")]

    def test_to_empty(self) -> None:
        assert kinds(diff_text("x\ny\n", "")) == [("removed", "x\ny\n")]

    def test_removed_before_added_in_change_block(self) -> None:
        """Test that each changed region lists removals first."""
        parts = diff_text("keep\nold1\nold2\nkeep2\n", "keep\nnew1\nnew2\nkeep2\n")

        assert kinds(parts) == [
            ("unchanged", "keep\n"),
            ("removed", "old1\nold2\n"),
            ("added", "new1\nnew2\n"),
            ("unchanged", "keep2\n"),
        ]

    def test_prefers_earliest_common_line(self) -> None:
        """Test the tie-break between equally long matchings."""
        parts = diff_text("p\nx\n", "x\nq\nx\n")

        assert kinds(parts) == [
            ("removed", "p\n"),
            ("unchanged", "x\n"),
            ("added", "q\nx\n"),
        ]

    def test_minimal_edit(self) -> None:
        """Test that the longest common subsequence is kept."""
        old = "a\nb\nc\nd\ne\n"
        new = "a\nc\nd\nx\ne\n"

        parts = diff_text(old, new)

        unchanged = "".join(p.value for p in parts if p.kind is ChangeKind.UNCHANGED)
        assert unchanged == "a\nc\nd\ne\n"

    def test_deterministic(self) -> None:
        old = "1\n2\n3\n2\n1\n"
        new = "2\n1\n3\n1\n2\n"

        assert diff_text(old, new) == diff_text(old, new)

    def test_adjacent_runs_differ_in_kind(self) -> None:
        parts = diff_text("a\nb\nc\nd\n", "b\nx\nd\ny\n")

        for left, right in zip(parts, parts[1:]):
            assert left.kind is not right.kind

    def test_edit_on_first_line_of_large_text(self) -> None:
        """Test that a long shared tail does not slow the comparison down."""
        body = "".join(f"line {i}\n" for i in range(1, 20000))
        old = "header\n" + body
        new = "new header\n" + body

        start = time.perf_counter()
        parts = diff_text(old, new)
        elapsed = time.perf_counter() - start

        assert kinds(parts) == [
            ("removed", "header\n"),
            ("added", "new header\n"),
            ("unchanged", body),
        ]
        assert elapsed < 1.0

    def test_earliest_match_with_shared_tail(self) -> None:
        """Test that a common ending does not pull matches towards the end."""
        parts = diff_text("a\nz\nend\n", "z\nb\nz\nend\n")

        assert kinds(parts) == [
            ("removed", "a\n"),
            ("unchanged", "z\n"),
            ("added", "b\nz\n"),
            ("unchanged", "end\n"),
        ]

    def test_removed_lines_before_shared_tail(self) -> None:
        parts = diff_text("x\ny\nx\ntail\n", "x\ntail\n")

        assert kinds(parts) == [
            ("unchanged", "x\n"),
            ("removed", "y\nx\n"),
            ("unchanged", "tail\n"),
        ]

    @pytest.mark.parametrize(
        "old,new",
        [
            ("a\nb\nc\n", "c\nb\na\n"),
            ("one\ntwo\nthree", "one\n2\nthree\nfour"),
            ("x\r\ny\r\n", "x\r\nz\r\n"),
            ("same\nsame\nsame\n", "same\n"),
            ("", "only new"),
        ],
    )
    def test_runs_rebuild_both_sides(self, old: str, new: str) -> None:
        """Test that the runs partition both inputs exactly."""
        parts = diff_text(old, new)

        assert rebuild_old(parts) == old
        assert rebuild_new(parts) == new


@pytest.fixture
def store() -> MemoryObjectStore:
    return MemoryObjectStore()


@pytest.fixture
def graph(store: MemoryObjectStore) -> CommitGraph:
    return CommitGraph(store)


@pytest.fixture
def engine(graph: CommitGraph) -> DiffEngine:
    return DiffEngine(graph)


def stage(store: MemoryObjectStore, path: str, content: str) -> IndexEntry:
    return IndexEntry(path=path, digest=store.put(content.encode("utf-8")))


class TestDiffCommits:
    """Test comparing two commits."""

    def test_modified_file(self, store, graph, engine) -> None:
        old = graph.commit("old", [stage(store, "a.txt", "hello")])
        new = graph.commit("new", [stage(store, "a.txt", "hello world")])

        (file_diff,) = engine.diff_commits(new, old)

        assert file_diff.path == "a.txt"
        assert file_diff.status is FileStatus.MODIFIED
        assert kinds(file_diff.parts) == [("removed", "hello"), ("added", "hello world")]

    def test_unchanged_file(self, store, graph, engine) -> None:
        entry = stage(store, "a.txt", "same\n")
        old = graph.commit("old", [entry])
        new = graph.commit("new", [entry])

        (file_diff,) = engine.diff_commits(new, old)

        assert file_diff.status is FileStatus.UNCHANGED
        assert not file_diff.has_changes
        assert kinds(file_diff.parts) == [("unchanged", "same\n")]

    def test_new_file(self, store, graph, engine) -> None:
        old = graph.commit("old", [])
        new = graph.commit("new", [stage(store, "b.txt", "b")])

        (file_diff,) = engine.diff_commits(new, old)

        assert file_diff.status is FileStatus.NEW
        assert file_diff.parts == ()
        assert file_diff.old_digest is None

    def test_files_only_in_other_are_not_reported(self, store, graph, engine) -> None:
        """Test the one-sided comparison: removed files are not listed."""
        old = graph.commit("old", [stage(store, "gone.txt", "x"), stage(store, "a.txt", "a")])
        new = graph.commit("new", [stage(store, "a.txt", "a")])

        assert [d.path for d in engine.diff_commits(new, old)] == ["a.txt"]

    def test_duplicate_paths_use_last_entry(self, store, graph, engine) -> None:
        old = graph.commit("old", [stage(store, "a.txt", "v1\n")])
        new = graph.commit(
            "new",
            [stage(store, "a.txt", "stale\n"), stage(store, "a.txt", "v2\n")],
        )

        (file_diff,) = engine.diff_commits(new, old)

        assert kinds(file_diff.parts) == [("removed", "v1\n"), ("added", "v2\n")]


class TestDiffAgainstParent:
    """Test comparing a commit with its parent."""

    def test_first_commit(self, store, graph, engine) -> None:
        root = graph.commit("first", [stage(store, "a.txt", "hello")])

        result = engine.diff_against_parent(root)

        assert result.first_commit
        assert result.files == ()

    def test_second_commit(self, store, graph, engine) -> None:
        root = graph.commit("first", [stage(store, "a.txt", "hello")])
        second = graph.commit(
            "second",
            [stage(store, "a.txt", "hello world"), stage(store, "b.txt", "new")],
            root.id,
        )

        result = engine.diff_against_parent(second)

        assert not result.first_commit
        a_diff, b_diff = result.files
        assert kinds(a_diff.parts) == [("removed", "hello"), ("added", "hello world")]
        assert b_diff.status is FileStatus.NEW

    def test_missing_parent_is_broken_history(self, store, graph, engine) -> None:
        """Test that an unloadable parent is reported as corrupt history."""
        orphan = graph.commit("orphan", [stage(store, "a.txt", "a")], parent="e" * 40)

        with pytest.raises(CorruptHistoryError) as exc_info:
            engine.diff_against_parent(orphan)

        assert exc_info.value.child == orphan.id
        assert exc_info.value.parent == "e" * 40


class TestUnified:
    """Test unified rendering."""

    def test_unified_output(self, store, graph, engine) -> None:
        old = graph.commit("old", [stage(store, "a.txt", "one\ntwo\n")])
        new = graph.commit("new", [stage(store, "a.txt", "one\n2\n")])

        (file_diff,) = engine.diff_commits(new, old)
        text = file_diff.unified()

        assert "--- a/a.txt" in text
        assert "+++ b/a.txt" in text
        assert "-two\n" in text
        assert "+2\n" in text

    def test_unified_unchanged_is_empty(self, store, graph, engine) -> None:
        entry = stage(store, "a.txt", "same\n")
        old = graph.commit("old", [entry])
        new = graph.commit("new", [entry])

        (file_diff,) = engine.diff_commits(new, old)

        assert file_diff.unified() == ""
