"""Secret redaction utilities.

Upstream error bodies are stored on exceptions and written to logs.  This
module removes occurrences of credentials from such text first, substituting
them with the string ``"<REDACTED>"``.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

_TOKEN_PATTERNS = [
    # GitHub personal access tokens: ghp_xxx or github_pat_xxx
    re.compile(r"gh[pousr]_[A-Za-z0-9]{30,}", re.IGNORECASE),
    re.compile(r"github_pat_[A-Za-z0-9_]{20,}", re.IGNORECASE),
    # GitLab personal, project and group access tokens
    re.compile(r"glpat-[A-Za-z0-9_\-]{20,}"),
    # Bitbucket app passwords and access tokens
    re.compile(r"ATBB[A-Za-z0-9_\-=]{20,}"),
    re.compile(r"ATCTT3x[A-Za-z0-9_\-=]{20,}"),
    # Bearer tokens (JWT or opaque strings following 'Bearer ')
    re.compile(r"Bearer\s+[A-Za-z0-9\-\._~\+/]+=*", re.IGNORECASE),
    # Private key blocks (BEGIN/END markers)
    re.compile(r"-----BEGIN [A-Z ]+ PRIVATE KEY-----[\s\S]+?-----END [A-Z ]+ PRIVATE KEY-----", re.IGNORECASE),
]


def redact_secrets(text: str, secrets: Iterable[str]) -> str:
    """Return ``text`` with secrets and common token patterns replaced.

    Commit SHAs and other long hex identifiers are left intact; they are
    needed to diagnose failures.

    :param text: arbitrary text that may contain secrets
    :param secrets: iterable of secret strings to redact
    :return: redacted text
    """
    redacted = text or ""
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, "<REDACTED>")
    for pattern in _TOKEN_PATTERNS:
        redacted = pattern.sub("<REDACTED>", redacted)
    return redacted
