"""Policy utilities for OmniPR."""

from .allowlist import repo_allowed
from .limits import enforce_changeset_limits
from .redaction import redact_secrets

__all__ = [
    "repo_allowed",
    "enforce_changeset_limits",
    "redact_secrets",
]
