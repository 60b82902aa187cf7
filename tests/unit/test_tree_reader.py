"""Tests for scoped file reads."""

from __future__ import annotations

import pytest

from omnipr.errors import BranchNotFound, ReadFailed, UpstreamError
from omnipr.tree import read_files


@pytest.fixture
def seeded(provider):
    provider.seed(
        "main",
        {
            "README.md": "root",
            "docs/index.md": "index",
            "docs/guide/intro.md": "intro",
            "docsearch.json": "{}",
        },
    )
    return provider


class TestReadFiles:
    """Tests for read_files."""

    def test_root_non_recursive_lists_direct_children(self, seeded, session) -> None:
        """A non-recursive root read returns only top-level files."""
        assert read_files(seeded, session, "main") == {"README.md": "root", "docsearch.json": "{}"}

    def test_scope_prefix_is_stripped(self, seeded, session) -> None:
        """Returned paths are relative to the scope."""
        assert read_files(seeded, session, "main", scope="docs") == {"index.md": "index"}

    def test_recursive_includes_nested_files(self, seeded, session) -> None:
        """A recursive read includes nested files."""
        files = read_files(seeded, session, "main", scope="./docs/", recursive=True)
        assert files == {"index.md": "index", "guide/intro.md": "intro"}

    def test_specific_files_projects_the_result(self, seeded, session) -> None:
        """Named files narrow the result after the scope filter."""
        files = read_files(
            seeded,
            session,
            "main",
            scope="docs",
            specific_files=["guide/intro.md", "missing.md"],
            recursive=True,
        )
        assert files == {"guide/intro.md": "intro"}

    def test_empty_projection_reads_nothing(self, seeded, session) -> None:
        """An empty file list returns nothing without listing."""
        assert read_files(seeded, session, "main", specific_files=[]) == {}
        assert "list_files" not in seeded.calls

    def test_file_vanishing_before_fetch_is_left_out(self, seeded, session) -> None:
        """A file gone before its fetch is left out."""
        seeded.vanished.add("docs/index.md")
        assert read_files(seeded, session, "main", scope="docs", recursive=True) == {
            "guide/intro.md": "intro"
        }

    def test_fetch_failure_is_a_read_failure(self, seeded, session) -> None:
        """A failed content fetch raises ReadFailed naming the path."""
        seeded.failures["get_file_content"] = UpstreamError(500, "boom", "/contents/README.md")

        with pytest.raises(ReadFailed) as excinfo:
            read_files(seeded, session, "main", specific_files=["README.md"])

        assert excinfo.value.path == "README.md"
        assert excinfo.value.details["status"] == 500

    def test_listing_failure_is_a_read_failure(self, seeded, session) -> None:
        """A failed listing raises ReadFailed."""
        seeded.failures["list_files"] = UpstreamError(503, "unavailable", "/tree")

        with pytest.raises(ReadFailed, match="Couldn't read files"):
            read_files(seeded, session, "main")

    def test_missing_branch(self, provider, session) -> None:
        """Reading a missing branch raises BranchNotFound."""
        with pytest.raises(BranchNotFound):
            read_files(provider, session, "nope")
