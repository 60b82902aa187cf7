"""Error taxonomy for OmniPR.

Every failure raised by the library derives from ``OmniPRError`` and carries
a ``details`` dictionary (operation, branch, path, upstream status and
message) so callers can diagnose a failure without reading transport logs.
"""

from __future__ import annotations


class OmniPRError(Exception):
    """Base class for all OmniPR failures."""

    def __init__(self, message: str, **details: object) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, object] = {k: v for k, v in details.items() if v is not None}

    def __str__(self) -> str:
        upstream = self.details.get("upstream")
        if upstream:
            return f"{self.message} ({upstream})"
        return self.message


class UpstreamError(OmniPRError):
    """A provider request failed at the transport level or returned non-2xx."""

    def __init__(self, status: int, message: str, url: str) -> None:
        super().__init__(f"Upstream error {status}: {message}", status=status, url=url)
        self.status = status
        self.upstream_message = message
        self.url = url

    def __str__(self) -> str:
        return self.message


class SetupFailed(OmniPRError):
    """Missing or invalid credentials, or an unparseable repository URL."""


class BranchNotFound(OmniPRError):
    def __init__(self, branch: str) -> None:
        super().__init__(f'Branch "{branch}" does not exist.', branch=branch)
        self.branch = branch


class BranchAlreadyExists(OmniPRError):
    def __init__(self, branch: str, cause: UpstreamError | None = None) -> None:
        super().__init__(f'Branch "{branch}" already exists.', branch=branch, **_upstream(cause))
        self.branch = branch


class BranchOperationFailed(OmniPRError):
    def __init__(self, branch: str, operation: str, cause: UpstreamError) -> None:
        super().__init__(
            f'Couldn\'t {operation} branch "{branch}".',
            branch=branch,
            operation=operation,
            **_upstream(cause),
        )
        self.branch = branch
        self.operation = operation


class ReadFailed(OmniPRError):
    def __init__(self, branch: str, cause: UpstreamError | str, path: str | None = None) -> None:
        if path:
            message = f'Couldn\'t read contents of "{path}" from branch "{branch}".'
        else:
            message = f'Couldn\'t read files from branch "{branch}".'
        extra = _upstream(cause) if isinstance(cause, UpstreamError) else {"upstream": cause}
        super().__init__(message, branch=branch, path=path, operation="read", **extra)
        self.branch = branch
        self.path = path


class CommitFailed(OmniPRError):
    def __init__(self, branch: str, cause: UpstreamError | str) -> None:
        extra = _upstream(cause) if isinstance(cause, UpstreamError) else {"upstream": cause}
        super().__init__(f'Couldn\'t write files on "{branch}" branch.', branch=branch, operation="commit", **extra)
        self.branch = branch


class PullRequestAlreadyExists(OmniPRError):
    """Raised by a provider when creation conflicts with an open pull request."""

    def __init__(self, source: str, target: str, cause: UpstreamError | None = None) -> None:
        super().__init__(
            f'An open pull request from "{source}" to "{target}" already exists.',
            source_branch=source,
            target_branch=target,
            **_upstream(cause),
        )


class PullRequestReconciliationFailed(OmniPRError):
    def __init__(self, source: str, target: str, cause: UpstreamError | str) -> None:
        extra = _upstream(cause) if isinstance(cause, UpstreamError) else {"upstream": cause}
        super().__init__(
            f'Couldn\'t create or update pull request from "{source}" to "{target}".',
            source_branch=source,
            target_branch=target,
            **extra,
        )
        self.source_branch = source
        self.target_branch = target


def _upstream(cause: UpstreamError | None) -> dict[str, object]:
    if cause is None:
        return {}
    return {"status": cause.status, "upstream": cause.upstream_message, "url": cause.url}
