"""Tool module exports for OmniPR.

Each submodule exposes plain functions that the MCP server registers as
tools.

Usage:

    from omnipr.tools import pr_tools
    pr_tools.open_pull_request(...)
"""

from . import pr_tools  # noqa: F401

__all__ = ["pr_tools"]
