"""Tests for branch preparation."""

from __future__ import annotations

import pytest

from omnipr.branches import prepare_branches
from omnipr.errors import BranchNotFound, BranchOperationFailed, UpstreamError


class TestPrepareBranches:
    """Tests for prepare_branches."""

    def test_creates_missing_source_from_target_head(self, provider, session) -> None:
        """A missing source branch is created at the target's head."""
        target_head = provider.seed("main", {"a.txt": "1"})

        branch = prepare_branches(provider, session, "feature", "main")

        assert branch.name == "feature"
        assert branch.head_commit_id == target_head
        assert provider.branches["feature"] == target_head

    def test_existing_source_is_reused_without_changes(self, provider, session) -> None:
        """An existing source branch is returned untouched."""
        provider.seed("main", {"a.txt": "1"})
        feature_head = provider.seed("feature", {"b.txt": "2"})

        first = prepare_branches(provider, session, "feature", "main")
        second = prepare_branches(provider, session, "feature", "main")

        assert first == second
        assert second.head_commit_id == feature_head
        assert "create_branch" not in provider.calls
        assert "delete_branch" not in provider.calls

    def test_reset_points_source_at_target_head(self, provider, session) -> None:
        """Reset deletes the source and recreates it at the target's head."""
        provider.seed("feature", {"stale.txt": "old"})
        provider.seed("feature", {"staler.txt": "older"})
        target_head = provider.seed("main", {"a.txt": "1"})

        branch = prepare_branches(provider, session, "feature", "main", reset_if_exists=True)

        assert branch.head_commit_id == target_head
        assert provider.tree("feature") == provider.tree("main")
        assert provider.calls.count("delete_branch") == 1

    def test_missing_target_is_fatal_and_has_no_side_effects(self, provider, session) -> None:
        """A missing target raises before any branch is written."""
        with pytest.raises(BranchNotFound) as excinfo:
            prepare_branches(provider, session, "feature", "release")

        assert excinfo.value.branch == "release"
        assert "feature" not in provider.branches
        assert "create_branch" not in provider.calls

    def test_failed_create_after_delete_recovers_on_next_call(self, provider, session) -> None:
        """A reset interrupted after the delete completes on the next call."""
        target_head = provider.seed("main", {"a.txt": "1"})
        provider.seed("feature", {"b.txt": "2"})
        provider.failures["create_branch"] = UpstreamError(502, "Bad Gateway", "/git/refs")

        with pytest.raises(BranchOperationFailed) as excinfo:
            prepare_branches(provider, session, "feature", "main", reset_if_exists=True)

        assert excinfo.value.operation == "create"
        assert excinfo.value.details["status"] == 502
        assert "feature" not in provider.branches

        branch = prepare_branches(provider, session, "feature", "main", reset_if_exists=True)
        assert branch.head_commit_id == target_head

    def test_lookup_failure_is_a_branch_operation_failure(self, provider, session) -> None:
        """Lookup request failures surface as BranchOperationFailed."""
        provider.failures["get_branch"] = UpstreamError(0, "connection reset", "/branches/main")

        with pytest.raises(BranchOperationFailed, match='resolve branch "main"'):
            prepare_branches(provider, session, "feature", "main")
