"""Tests for main module."""

import logging
import sys
from unittest.mock import patch

import pytest

from notetags_mcp.config import Config
from notetags_mcp.main import create_lifespan, create_server, main
from notetags_mcp.workspace import TagWorkspace


def test_create_server(notes_root, monkeypatch, caplog):
    """Test create_server initializes all components."""
    monkeypatch.setenv("NOTETAGS_ROOT", str(notes_root))
    config = Config.from_env()

    with caplog.at_level(logging.INFO):
        mcp = create_server(config)

    assert mcp is not None
    assert mcp.name == "notetags"

    log_messages = [record.message for record in caplog.records]
    assert any("Registering read tools" in msg for msg in log_messages)
    assert any("Registering write tools" in msg for msg in log_messages)
    assert any("Server configured successfully" in msg for msg in log_messages)


def test_create_server_registers_tools(notes_root, monkeypatch):
    """Test every read and write tool is registered."""
    monkeypatch.setenv("NOTETAGS_ROOT", str(notes_root))

    mcp = create_server(Config.from_env())

    names = {tool.fn.__name__ for tool in mcp._tool_manager._tools.values()}
    assert names == {
        "list_tags",
        "tag_files",
        "tag_references",
        "tags_for_file",
        "files_with_tags",
        "tag_at_position",
        "tag_search_pattern",
        "search_tag",
        "refresh_tags",
        "rename_tag",
        "preview_rename_tag",
    }


@pytest.mark.asyncio
async def test_lifespan_builds_index(notes_root, monkeypatch, caplog):
    """Test the lifespan indexes the notes on startup and closes on exit."""
    monkeypatch.setenv("NOTETAGS_ROOT", str(notes_root))
    monkeypatch.setenv("NOTETAGS_SYNC_INTERVAL", "0")
    config = Config.from_env()
    workspace = TagWorkspace.from_config(config)
    mcp = create_server(config, workspace)

    with caplog.at_level(logging.INFO):
        async with create_lifespan(config, workspace)(mcp):
            assert workspace.index.get_reference_count("bug") == 3

    assert workspace.closed
    log_messages = [record.message for record in caplog.records]
    assert any("Initial index complete: 6 tags in 4 files" in msg for msg in log_messages)
    assert any("Sync disabled" in msg for msg in log_messages)


@pytest.mark.asyncio
async def test_lifespan_runs_sync(notes_root, monkeypatch, caplog):
    """Test the lifespan starts and stops the sync manager."""
    monkeypatch.setenv("NOTETAGS_ROOT", str(notes_root))
    monkeypatch.setenv("NOTETAGS_SYNC_INTERVAL", "1")
    config = Config.from_env()
    workspace = TagWorkspace.from_config(config)

    with caplog.at_level(logging.INFO):
        async with create_lifespan(config, workspace)(create_server(config, workspace)):
            pass

    log_messages = [record.message for record in caplog.records]
    assert any("Sync manager started" in msg for msg in log_messages)
    assert any("Sync manager stopped" in msg for msg in log_messages)


def test_main_runs_server(notes_root, monkeypatch, caplog):
    """Test main() reads config, logs the banner and runs the server."""
    monkeypatch.setenv("NOTETAGS_ROOT", str(notes_root))
    monkeypatch.setenv("NOTETAGS_PORT", "9123")
    monkeypatch.setattr(sys, "argv", ["notetags-mcp", "--read-only"])

    with patch("fastmcp.FastMCP.run") as run, caplog.at_level(logging.INFO):
        main()

    run.assert_called_once_with(transport="sse", host="0.0.0.0", port=9123)
    assert any("READ_ONLY:     True" in record.message for record in caplog.records)


def test_main_exits_on_error(monkeypatch):
    """Test main() exits with status 1 when the server fails."""
    monkeypatch.setattr(sys, "argv", ["notetags-mcp"])

    with patch("notetags_mcp.main.create_server", side_effect=RuntimeError("boom")):
        with pytest.raises(SystemExit) as exc_info:
            main()

    assert exc_info.value.code == 1
