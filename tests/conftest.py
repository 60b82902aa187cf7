"""Pytest configuration and fixtures for OmniPR tests.

This module provides an in-memory Git provider so the reconcile stages can be
tested without any hosting service.

IMPORTANT: Environment variables must be set BEFORE importing omnipr.state,
which loads configuration at import time.
"""

from __future__ import annotations

import os

# Set environment variables BEFORE any omnipr imports
os.environ.setdefault("GITHUB_TOKEN", "test-github-token")
os.environ.setdefault("GITLAB_TOKEN", "test-gitlab-token")
os.environ.setdefault("BITBUCKET_TOKEN", "test-bitbucket-token")
os.environ.setdefault("ALLOWED_REPOS", "acme/*,test/*")

from collections.abc import Sequence
from datetime import datetime, timezone

import httpx
import pytest

from omnipr.errors import BranchAlreadyExists, BranchNotFound, PullRequestAlreadyExists, UpstreamError
from omnipr.models import Action, ActionKind, Author, Branch, Commit, PullRequest
from omnipr.session import ApiSession


class InMemoryProvider:
    """A provider keeping branches, commits and pull requests in dictionaries.

    This is ONLY for testing - not used in production.

    ``failures`` maps an operation name to an exception raised the next time
    that operation runs.  ``vanished`` lists paths that are still listed but
    whose content fetch answers "not found".
    """

    name = "memory"

    def __init__(self, search_before_create: bool = False) -> None:
        self.search_before_create = search_before_create
        self.branches: dict[str, str] = {"main": "c0"}
        self.trees: dict[str, dict[str, str]] = {"c0": {}}
        self.commits: dict[str, Commit] = {
            "c0": Commit(sha="c0", message="root", author=Author("mock", "mock@example.com"))
        }
        self.pull_requests: list[dict[str, object]] = []
        self.failures: dict[str, Exception] = {}
        self.vanished: set[str] = set()
        self.calls: list[str] = []
        self._next_sha = 1
        self._next_pr = 1

    # Helpers for tests

    def seed(self, branch: str, files: dict[str, str]) -> str:
        """Put ``files`` on ``branch`` as one commit, creating the branch if needed."""
        parent = self.branches.get(branch, "c0")
        sha = self._new_sha()
        self.trees[sha] = {**self.trees[parent], **files}
        self.commits[sha] = Commit(sha=sha, message="seed", author=Author("mock", "mock@example.com"))
        self.branches[branch] = sha
        return sha

    def tree(self, branch: str) -> dict[str, str]:
        return dict(self.trees[self.branches[branch]])

    def open_pull_requests(self, source: str, target: str) -> list[dict[str, object]]:
        return [
            pr
            for pr in self.pull_requests
            if pr["source"] == source and pr["target"] == target and pr["state"] == "open"
        ]

    def _new_sha(self) -> str:
        sha = f"c{self._next_sha}"
        self._next_sha += 1
        return sha

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        failure = self.failures.pop(operation, None)
        if failure is not None:
            raise failure

    def _pr(self, record: dict[str, object]) -> PullRequest:
        return PullRequest(
            id=str(record["id"]),
            source_branch=record["source"],
            target_branch=record["target"],
            title=record["title"],
            description=record["description"],
            link=f"https://example.com/pr/{record['id']}",
        )

    # GitProvider

    def setup(self, token: str, url: str, **kwargs: object) -> ApiSession:
        self._record("setup")
        return make_session()

    def get_branch(self, session: ApiSession, name: str) -> Branch | None:
        self._record("get_branch")
        sha = self.branches.get(name)
        return Branch(name, sha) if sha else None

    def create_branch(self, session: ApiSession, name: str, sha: str) -> Branch:
        self._record("create_branch")
        if name in self.branches:
            raise BranchAlreadyExists(name)
        self.branches[name] = sha
        return Branch(name, sha)

    def delete_branch(self, session: ApiSession, name: str) -> None:
        self._record("delete_branch")
        del self.branches[name]

    def list_files(self, session: ApiSession, ref: str, scope: str, recursive: bool) -> list[str]:
        self._record("list_files")
        if ref not in self.branches:
            raise BranchNotFound(ref)
        return sorted(self.tree(ref))

    def get_file_content(self, session: ApiSession, ref: str, path: str) -> str | None:
        self._record("get_file_content")
        if path in self.vanished:
            return None
        return self.tree(ref).get(path)

    def commit(self, session: ApiSession, branch: str, actions: Sequence[Action], message: str) -> Commit:
        self._record("commit")
        if branch not in self.branches:
            raise BranchNotFound(branch)
        parent = self.branches[branch]
        tree = dict(self.trees[parent])
        for action in actions:
            if action.kind is ActionKind.DELETE:
                tree.pop(action.path, None)
            else:
                tree[action.path] = action.content or ""
        sha = self._new_sha()
        self.trees[sha] = tree
        commit = Commit(
            sha=sha,
            message=message,
            author=Author("mock", "mock@example.com"),
            date=datetime.now(timezone.utc),
        )
        self.commits[sha] = commit
        self.branches[branch] = sha
        return commit

    def create_pull_request(
        self, session: ApiSession, source: str, target: str, title: str, description: str
    ) -> PullRequest:
        self._record("create_pull_request")
        if self.open_pull_requests(source, target):
            raise PullRequestAlreadyExists(source, target)
        record = {
            "id": self._next_pr,
            "source": source,
            "target": target,
            "title": title,
            "description": description,
            "state": "open",
        }
        self._next_pr += 1
        self.pull_requests.append(record)
        return self._pr(record)

    def find_open_pull_request(self, session: ApiSession, source: str, target: str) -> PullRequest | None:
        self._record("find_open_pull_request")
        matches = self.open_pull_requests(source, target)
        return self._pr(matches[0]) if matches else None

    def update_pull_request(
        self, session: ApiSession, pr_id: str, title: str, description: str
    ) -> PullRequest:
        self._record("update_pull_request")
        for record in self.pull_requests:
            if str(record["id"]) == pr_id:
                record["title"] = title
                record["description"] = description
                return self._pr(record)
        raise UpstreamError(404, "Not Found", f"/pulls/{pr_id}")


def make_session(max_workers: int = 4) -> ApiSession:
    """A session whose client never reaches the network."""
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(599)))
    return ApiSession(
        provider="memory",
        base_url="https://example.invalid/repos/acme/widgets",
        client=client,
        token="test-token",
        repository="acme/widgets",
        owner="acme",
        max_workers=max_workers,
    )


@pytest.fixture
def provider() -> InMemoryProvider:
    return InMemoryProvider()


@pytest.fixture
def session():
    s = make_session()
    yield s
    s.close()


@pytest.fixture
def provider_factory():
    """Build in-memory providers with non-default options."""
    return InMemoryProvider
