"""Global constants for OmniPR.

These values serve as defaults for transport settings and limit enforcement.
Override them through environment variables rather than editing this module.
"""

import os

# Transport
HTTP_TIMEOUT_S = float(os.environ.get("HTTP_TIMEOUT_S", 10.0))
MAX_CONCURRENT_REQUESTS = int(os.environ.get("MAX_CONCURRENT_REQUESTS", 8))
PAGE_SIZE = int(os.environ.get("PAGE_SIZE", 100))
USER_AGENT = "omnipr-python"

# Limits
MAX_CHANGED_FILES = int(os.environ.get("MAX_CHANGED_FILES", 100))

# Provider endpoints
GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITLAB_DEFAULT_URL = "https://gitlab.com"
BITBUCKET_API_URL = "https://api.bitbucket.org/2.0"
