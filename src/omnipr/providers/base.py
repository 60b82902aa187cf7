"""Provider-agnostic capability interface."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import httpx

from ..models import Action, Branch, Commit, PullRequest
from ..session import ApiSession


@runtime_checkable
class GitProvider(Protocol):
    """Operations every Git hosting provider supplies.

    Providers hold no connection state: ``setup`` returns an ``ApiSession``
    which is passed explicitly to every other operation.
    """

    name: str
    # Look for an open pull request before trying to create one.
    search_before_create: bool

    def setup(
        self,
        token: str,
        url: str,
        *,
        api_url: str | None = None,
        project_id: str | None = None,
        client: httpx.Client | None = None,
    ) -> ApiSession:
        """Authenticate against the repository named by ``url``."""
        ...

    def get_branch(self, session: ApiSession, name: str) -> Branch | None:
        """Return the branch, or ``None`` when it does not exist."""
        ...

    def create_branch(self, session: ApiSession, name: str, sha: str) -> Branch:
        ...

    def delete_branch(self, session: ApiSession, name: str) -> None:
        ...

    def list_files(self, session: ApiSession, ref: str, scope: str, recursive: bool) -> list[str]:
        """Full paths of every file below ``scope`` on ``ref``, all pages followed."""
        ...

    def get_file_content(self, session: ApiSession, ref: str, path: str) -> str | None:
        """Raw file content, or ``None`` when the file does not exist."""
        ...

    def commit(self, session: ApiSession, branch: str, actions: Sequence[Action], message: str) -> Commit:
        """Apply ``actions`` to ``branch`` as exactly one commit."""
        ...

    def create_pull_request(
        self, session: ApiSession, source: str, target: str, title: str, description: str
    ) -> PullRequest:
        """Open a pull request; raises ``PullRequestAlreadyExists`` on a duplicate."""
        ...

    def find_open_pull_request(self, session: ApiSession, source: str, target: str) -> PullRequest | None:
        ...

    def update_pull_request(
        self, session: ApiSession, pr_id: str, title: str, description: str
    ) -> PullRequest:
        ...
