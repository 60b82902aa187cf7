"""Branch reconciliation: make the source branch ready relative to the target."""

from __future__ import annotations

import logging

from .errors import BranchNotFound, BranchOperationFailed, UpstreamError
from .models import Branch
from .providers.base import GitProvider
from .session import ApiSession

logger = logging.getLogger(__name__)


def _resolve(provider: GitProvider, session: ApiSession, name: str) -> Branch | None:
    try:
        return provider.get_branch(session, name)
    except UpstreamError as exc:
        raise BranchOperationFailed(name, "resolve", exc) from exc


def prepare_branches(
    provider: GitProvider,
    session: ApiSession,
    source: str,
    target: str,
    reset_if_exists: bool = False,
) -> Branch:
    """Ensure ``source`` exists and return it with its authoritative head.

    - The target must already exist (``BranchNotFound`` otherwise).
    - A missing source is created from the target's head.
    - An existing source is reused as-is, or deleted and recreated from the
      target's head when ``reset_if_exists`` is set.  Delete and create are
      two requests; if the second never happens the branch is simply absent
      and calling again creates it.

    Nothing is retried; request failures surface as ``BranchOperationFailed``.
    """
    target_branch = _resolve(provider, session, target)
    if target_branch is None:
        raise BranchNotFound(target)

    existing = _resolve(provider, session, source)
    if existing is not None and not reset_if_exists:
        logger.info("Reusing branch %s at %s", source, existing.head_commit_id)
        return existing

    if existing is not None:
        try:
            provider.delete_branch(session, source)
        except UpstreamError as exc:
            raise BranchOperationFailed(source, "delete", exc) from exc
        logger.info("Deleted branch %s for reset", source)

    try:
        branch = provider.create_branch(session, source, target_branch.head_commit_id)
    except UpstreamError as exc:
        raise BranchOperationFailed(source, "create", exc) from exc
    logger.info("Created branch %s from %s at %s", source, target, branch.head_commit_id)
    return branch
