"""Repository URL parsing."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import SetupFailed

# scheme://host/path, git@host:path, or host/path
_URL_RE = re.compile(
    r"^(?:(?P<scheme>[a-zA-Z][a-zA-Z0-9+.-]*)://(?:[^@/]+@)?(?P<host>[^/?#]+)|git@(?P<ssh_host>[^:]+):)"
    r"(?P<path>[^?#]*)"
)


@dataclass(frozen=True)
class RepositoryURL:
    """A hosted repository identified by host and slash-separated path."""

    scheme: str
    host: str
    path: str

    @property
    def segments(self) -> list[str]:
        return [s for s in self.path.split("/") if s]

    @property
    def origin(self) -> str:
        return f"{self.scheme}://{self.host}"


def parse_repository_url(url: str) -> RepositoryURL:
    """Parse ``url`` into host and repository path (``.git`` suffix stripped).

    Raises ``SetupFailed`` when no repository path can be extracted.
    """
    match = _URL_RE.match((url or "").strip())
    if not match:
        raise SetupFailed(f"Unparseable repository URL: {url!r}", url=url)
    host = match.group("host") or match.group("ssh_host")
    scheme = match.group("scheme") or "https"
    if scheme in ("ssh", "git"):
        scheme = "https"
    path = match.group("path").strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not host or not path:
        raise SetupFailed(f"Unparseable repository URL: {url!r}", url=url)
    return RepositoryURL(scheme=scheme, host=host, path=path)


def owner_and_repo(url: str) -> tuple[str, str]:
    """Return ``(owner, repo)`` from a two-segment repository URL."""
    parsed = parse_repository_url(url)
    segments = parsed.segments
    if len(segments) < 2:
        raise SetupFailed(f"Repository URL must name an owner and a repository: {url!r}", url=url)
    return segments[0], segments[1]
