"""Tests for the MCP server wiring."""

from __future__ import annotations

import logging

from omnipr import server
from omnipr.tools import pr_tools


def test_dispatch_exposes_pull_request_tools() -> None:
    """Both pull request tools are in the dispatch table."""
    dispatch = server.build_tools_dispatch()

    assert dispatch == {
        "open_pull_request": pr_tools.open_pull_request,
        "pull_files": pr_tools.pull_files,
    }


def test_main_registers_tools_and_runs_stdio(mocker) -> None:
    """Every dispatch entry is registered before the server starts."""
    fast_mcp = mocker.patch("omnipr.server.FastMCP")
    instance = fast_mcp.return_value

    server.main()

    fast_mcp.assert_called_once_with("omnipr")
    registered = {call.kwargs["name"] for call in instance.add_tool.call_args_list}
    assert registered == {"open_pull_request", "pull_files"}
    instance.run.assert_called_once_with(transport="stdio")


def test_main_logs_at_configured_level(mocker) -> None:
    """The LOG_LEVEL loaded into CONFIG sets the server's logging level."""
    mocker.patch("omnipr.server.FastMCP")
    mock_config = mocker.MagicMock()
    mock_config.log_level = "debug"
    mocker.patch("omnipr.state.CONFIG", mock_config)
    basic_config = mocker.patch("omnipr.server.logging.basicConfig")

    server.main()

    assert basic_config.call_args.kwargs["level"] == logging.DEBUG


def test_main_falls_back_to_info_for_unknown_level(mocker) -> None:
    """An unrecognised level name logs at INFO."""
    mocker.patch("omnipr.server.FastMCP")
    mock_config = mocker.MagicMock()
    mock_config.log_level = "chatty"
    mocker.patch("omnipr.state.CONFIG", mock_config)
    basic_config = mocker.patch("omnipr.server.logging.basicConfig")

    server.main()

    assert basic_config.call_args.kwargs["level"] == logging.INFO
