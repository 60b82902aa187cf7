"""Configuration loading for OmniPR.

This module loads environment variables from a `.env` file using
`python-dotenv` and populates a `Config` object.

At least one provider token is required:
- GITHUB_TOKEN
- GITLAB_TOKEN
- BITBUCKET_TOKEN

Optional variables with defaults:
- GITLAB_URL (default: 'https://gitlab.com')
- ALLOWED_REPOS (default: '*')
- LOG_LEVEL (default: 'INFO')
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .constants import GITLAB_DEFAULT_URL
from .errors import SetupFailed

_TOKEN_VARIABLES = {
    "github": "GITHUB_TOKEN",
    "gitlab": "GITLAB_TOKEN",
    "bitbucket": "BITBUCKET_TOKEN",
}


@dataclass
class Config:
    """Configuration values loaded from the environment."""

    github_token: str | None
    gitlab_token: str | None
    bitbucket_token: str | None
    gitlab_url: str
    allowed_repos: list[str]
    log_level: str

    @classmethod
    def load_from_env(cls) -> Config:
        """Load configuration from environment variables.

        The `.env` file is loaded if present.  Raises `RuntimeError` if no
        provider token is configured.
        """
        load_dotenv()

        tokens = {name: os.getenv(var) or None for name, var in _TOKEN_VARIABLES.items()}
        if not any(tokens.values()):
            raise RuntimeError(
                "Missing required environment variables: one of "
                + ", ".join(_TOKEN_VARIABLES.values())
            )

        allowed_repos_str = os.getenv("ALLOWED_REPOS")
        if allowed_repos_str:
            allowed_repos = [repo.strip() for repo in allowed_repos_str.split(",") if repo.strip()]
        else:
            allowed_repos = ["*"]

        return cls(
            github_token=tokens["github"],
            gitlab_token=tokens["gitlab"],
            bitbucket_token=tokens["bitbucket"],
            gitlab_url=os.getenv("GITLAB_URL", GITLAB_DEFAULT_URL).rstrip("/"),
            allowed_repos=allowed_repos,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def token_for(self, provider: str) -> str:
        """Return the token configured for ``provider`` or raise ``SetupFailed``."""
        variable = _TOKEN_VARIABLES.get(provider)
        if variable is None:
            raise SetupFailed(f"Unsupported git provider: {provider!r}")
        token = getattr(self, f"{provider}_token")
        if not token:
            raise SetupFailed(f"{variable} is not configured", provider=provider)
        return token
