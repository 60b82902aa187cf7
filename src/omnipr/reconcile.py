"""Entry operations: the full reconcile sequence and caller-facing reads.

A reconcile runs its stages strictly in order: prepare branches, read the
files the changeset names, compile actions, commit, then create or update
the pull request.  Two reconciles against the same source branch at the
same time race on its head; serialising them is the caller's job.
"""

from __future__ import annotations

from collections.abc import Iterable

from .branches import prepare_branches
from .changeset import as_change_request, compile_changeset
from .errors import CommitFailed, UpstreamError
from .models import PullRequest, ReconcileOptions
from .paths import join_scope
from .providers import get_provider
from .providers.base import GitProvider
from .pulls import create_or_update_pull_request
from .session import ApiSession
from .telemetry import get_logger
from .tree import read_files

logger = get_logger(__name__)


def reconcile(provider: GitProvider, session: ApiSession, options: ReconcileOptions) -> PullRequest:
    """Run prepare → read → compile → commit → pull request and return the pull request."""
    changes = {path: as_change_request(value) for path, value in options.changes.items()}

    source = prepare_branches(
        provider,
        session,
        options.source_branch,
        options.target_branch,
        reset_if_exists=options.reset_source_branch_if_exists,
    )

    current = read_files(
        provider,
        session,
        source.name,
        scope=options.path,
        specific_files=list(changes),
        recursive=True,
    )
    existing = {join_scope(options.path, path): content for path, content in current.items()}
    actions = compile_changeset(existing, changes, options.path)

    try:
        commit = provider.commit(session, source.name, actions, options.commit_message)
    except UpstreamError as exc:
        raise CommitFailed(source.name, exc) from exc
    logger.info("Committed %d change(s) to %s as %s", len(actions), source.name, commit.sha)

    return create_or_update_pull_request(
        provider,
        session,
        options.source_branch,
        options.target_branch,
        options.title,
        options.description,
    )


def pull_files(
    provider: GitProvider,
    session: ApiSession,
    branch: str,
    path: str | None = None,
    recursive: bool = False,
    files: Iterable[str] | None = None,
) -> dict[str, str]:
    """Return ``{relative path: content}`` for files on ``branch`` under ``path``."""
    return read_files(provider, session, branch, scope=path, specific_files=files, recursive=recursive)


def open_pull_request(
    provider: GitProvider | str,
    *,
    token: str,
    url: str,
    options: ReconcileOptions,
    **setup_kwargs: object,
) -> PullRequest:
    """Set up a session, reconcile, and close the session again."""
    if isinstance(provider, str):
        provider = get_provider(provider)
    with provider.setup(token, url, **setup_kwargs) as session:
        return reconcile(provider, session, options)
