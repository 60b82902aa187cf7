"""MCP stdio server entrypoint for OmniPR.

The server runs over standard input/output using the Model Context Protocol
and registers the pull request tools so clients can read repository files
and open pull requests on GitHub, GitLab or Bitbucket.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from typing import Any

from mcp.server.fastmcp import FastMCP

from . import state
from .tools import pr_tools


def build_tools_dispatch() -> dict[str, Callable[..., dict[str, Any]]]:
    """Return a mapping from tool names to callables.

    Each callable accepts keyword arguments and returns a JSON-serializable
    dictionary.
    """
    return {
        "open_pull_request": pr_tools.open_pull_request,
        "pull_files": pr_tools.pull_files,
    }


def main() -> None:
    """Entrypoint for the OmniPR MCP server."""
    # stdout carries the MCP protocol, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, state.CONFIG.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logger = logging.getLogger(__name__)
    logger.info("Starting OmniPR MCP server")

    mcp = FastMCP("omnipr")

    dispatch = build_tools_dispatch()
    for name, func in dispatch.items():
        mcp.add_tool(func, name=name)

    logger.info("Registered %d tools", len(dispatch))

    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
