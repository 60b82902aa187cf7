"""Pull request reconciliation: create, or update the open one for the same pair."""

from __future__ import annotations

import logging

from .errors import PullRequestAlreadyExists, PullRequestReconciliationFailed, UpstreamError
from .models import PullRequest
from .providers.base import GitProvider
from .session import ApiSession

logger = logging.getLogger(__name__)


def _update(
    provider: GitProvider,
    session: ApiSession,
    existing: PullRequest,
    title: str,
    description: str,
) -> PullRequest:
    updated = provider.update_pull_request(session, existing.id, title, description)
    logger.info("Updated pull request %s (%s)", updated.id, updated.link)
    return updated


def create_or_update_pull_request(
    provider: GitProvider,
    session: ApiSession,
    source: str,
    target: str,
    title: str,
    description: str = "",
) -> PullRequest:
    """Open a pull request from ``source`` into ``target`` without duplicating it.

    Creation is attempted first.  When the provider reports that an open
    pull request already exists for the pair (or, for providers that search
    before creating, when the search finds one), the first open match gets
    the new title and description instead.
    """
    try:
        if provider.search_before_create:
            existing = provider.find_open_pull_request(session, source, target)
            if existing is not None:
                return _update(provider, session, existing, title, description)

        try:
            created = provider.create_pull_request(session, source, target, title, description)
        except PullRequestAlreadyExists as conflict:
            logger.info("Pull request from %s to %s already open; updating it", source, target)
            existing = provider.find_open_pull_request(session, source, target)
            if existing is None:
                raise PullRequestReconciliationFailed(
                    source, target, "provider reported a duplicate but no open pull request matched"
                ) from conflict
            return _update(provider, session, existing, title, description)
    except UpstreamError as exc:
        raise PullRequestReconciliationFailed(source, target, exc) from exc

    logger.info("Created pull request %s (%s)", created.id, created.link)
    return created
