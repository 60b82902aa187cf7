"""Git hosting providers (GitHub, GitLab, Bitbucket)."""

from __future__ import annotations

from ..errors import SetupFailed
from .base import GitProvider
from .bitbucket import BitbucketProvider
from .github import GithubProvider
from .gitlab import GitlabProvider

PROVIDERS: dict[str, type] = {
    "github": GithubProvider,
    "gitlab": GitlabProvider,
    "bitbucket": BitbucketProvider,
}


def get_provider(name: str) -> GitProvider:
    """Return a provider instance for ``name`` (case-insensitive)."""
    provider_cls = PROVIDERS.get((name or "").strip().lower())
    if provider_cls is None:
        raise SetupFailed(f"Unsupported git provider: {name!r}", provider=name)
    return provider_cls()


__all__ = [
    "GitProvider",
    "GithubProvider",
    "GitlabProvider",
    "BitbucketProvider",
    "PROVIDERS",
    "get_provider",
]
