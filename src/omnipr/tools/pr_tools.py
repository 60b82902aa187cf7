"""Pull request tool implementations.

Wraps the reconcile entry operations for MCP clients.  Change values arrive
as JSON, so only literal content (a string) and deletion (``null``) are
available here; resolver functions are a library-only feature.

All tools enforce the repository allowlist and the changeset size limit
before any request is sent.
"""

from __future__ import annotations

import logging

from .. import state
from ..models import ReconcileOptions
from ..policy.allowlist import repo_allowed
from ..policy.limits import enforce_changeset_limits
from ..providers import get_provider
from ..providers.base import GitProvider
from ..reconcile import pull_files as read_branch_files
from ..reconcile import reconcile
from ..session import ApiSession
from ..urls import parse_repository_url

logger = logging.getLogger(__name__)


def _repository_url(provider: GitProvider, repo_url: str) -> str:
    """Expand a bare GitLab project path against the configured instance."""
    if provider.name == "gitlab" and "://" not in repo_url and not repo_url.startswith("git@"):
        return f"{state.CONFIG.gitlab_url}/{repo_url.strip('/')}"
    return repo_url


def _connect(provider_name: str, repo_url: str) -> tuple[GitProvider, ApiSession]:
    """Check the allowlist, then set up a session with the configured token."""
    provider = get_provider(provider_name)
    url = _repository_url(provider, repo_url)
    repository = parse_repository_url(url).path
    if not repo_allowed(repository, state.CONFIG.allowed_repos):
        raise PermissionError(f"Repository '{repository}' is not in the allowlist")
    token = state.CONFIG.token_for(provider.name)
    return provider, provider.setup(token, url)


def open_pull_request(
    provider: str,
    repo_url: str,
    source_branch: str,
    target_branch: str,
    title: str,
    commit_message: str,
    changes: dict[str, str | None],
    description: str = "",
    path: str | None = None,
    reset_source_branch_if_exists: bool = False,
) -> dict[str, object]:
    """Commit ``changes`` to ``source_branch`` and open (or update) its pull request.

    ``changes`` maps file paths (relative to ``path`` when given) to new
    content, or to ``null`` to delete the file.  Returns the pull request id
    and link.
    """
    enforce_changeset_limits(changes.keys())
    options = ReconcileOptions(
        source_branch=source_branch,
        target_branch=target_branch,
        commit_message=commit_message,
        title=title,
        description=description,
        changes=dict(changes),
        path=path,
        reset_source_branch_if_exists=reset_source_branch_if_exists,
    )
    git_provider, session = _connect(provider, repo_url)
    with session:
        pr = reconcile(git_provider, session, options)
    return {
        "id": pr.id,
        "link": pr.link,
        "source_branch": pr.source_branch,
        "target_branch": pr.target_branch,
        "title": pr.title,
    }


def pull_files(
    provider: str,
    repo_url: str,
    branch: str,
    path: str | None = None,
    recursive: bool = False,
    files: list[str] | None = None,
) -> dict[str, object]:
    """Read files from ``branch`` under ``path``.

    Paths in the result are relative to ``path``.  ``files`` limits the
    result to the named relative paths.
    """
    git_provider, session = _connect(provider, repo_url)
    with session:
        contents = read_branch_files(git_provider, session, branch, path=path, recursive=recursive, files=files)
    return {"files": contents}
