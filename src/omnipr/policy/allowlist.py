"""Allowlist enforcement for repositories.

The tool surface only operates on repositories listed in the `ALLOWED_REPOS`
environment variable.  This module centralises logic for checking whether a
repository is allowed.
"""

from __future__ import annotations

from collections.abc import Iterable


def repo_allowed(repo_path: str, allowed: Iterable[str]) -> bool:
    """Check whether a repository is allowed.

    A repository is allowed if its full path (case-insensitive) appears in the
    allowlist or if a wildcard ``*`` entry is present.  A trailing ``/*``
    wildcard permits every repository below that namespace, so ``group/*``
    also covers GitLab subgroups such as ``group/sub/project``.
    """
    normalized = repo_path.lower().strip().strip("/")
    allowed_normalized = {r.lower().strip().strip("/") for r in allowed}
    if "*" in allowed_normalized or "*/*" in allowed_normalized:
        return True
    if normalized in allowed_normalized:
        return True
    for entry in allowed_normalized:
        if entry.endswith("/*") and normalized.startswith(entry[:-1]):
            return True
    return False
