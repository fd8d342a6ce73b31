"""Tests for write tools."""

import pytest
import pytest_asyncio
from fastmcp import FastMCP

from notetags_mcp.auth import AuthError
from notetags_mcp.config import Config
from notetags_mcp.tools_write import register_tools_write
from notetags_mcp.workspace import TagWorkspace


async def build_tools(notes_root, monkeypatch, **env):
    monkeypatch.setenv("NOTETAGS_ROOT", str(notes_root))
    for name, value in env.items():
        monkeypatch.setenv(name, value)

    config = Config.from_env()
    workspace = TagWorkspace.from_config(config)
    await workspace.refresh()

    mcp = FastMCP()
    register_tools_write(mcp, config, workspace)

    tools = {}
    for tool in mcp._tool_manager._tools.values():
        tools[tool.fn.__name__] = tool.fn
    return workspace, tools


@pytest_asyncio.fixture
async def notes_and_tools(notes_root, monkeypatch):
    """Index the sample notes and register the write tools for testing."""
    workspace, tools = await build_tools(notes_root, monkeypatch)
    yield notes_root, tools
    workspace.close()


class TestRenameTag:
    """Tests for rename_tag."""

    @pytest.mark.asyncio
    async def test_rename(self, notes_and_tools):
        """Test a plain rename rewrites every file."""
        notes_root, tools = notes_and_tools

        result = await tools["rename_tag"]("bug", "defect")

        assert result["status"] == "renamed"
        assert result["old_tag"] == "bug"
        assert result["new_tag"] == "defect"
        assert result["reference_count"] == 3
        assert result["affected_files"] == [
            "inbox.md",
            "projects/backend.md",
            "projects/website.md",
        ]
        assert result["renamed_tags"] == {"bug": "defect"}
        assert "#bug" not in (notes_root / "inbox.md").read_text()

    @pytest.mark.asyncio
    async def test_merge_requires_confirmation(self, notes_and_tools):
        """Test renaming onto an existing tag asks first and writes nothing."""
        notes_root, tools = notes_and_tools
        before = (notes_root / "inbox.md").read_text()

        result = await tools["rename_tag"]("todo", "project")

        assert result["status"] == "requires_confirmation"
        assert result["merge_count"] == 4
        assert result["existing_tags"] == ["project"]
        assert result["message"].endswith("Call again with confirm_merge=true.")
        assert (notes_root / "inbox.md").read_text() == before

    @pytest.mark.asyncio
    async def test_confirmed_merge(self, notes_and_tools):
        """Test confirm_merge=True merges the tags."""
        _, tools = notes_and_tools

        result = await tools["rename_tag"]("todo", "project", confirm_merge=True)

        assert result["status"] == "renamed"
        assert result["reference_count"] == 4

    @pytest.mark.asyncio
    async def test_unknown_tag(self, notes_and_tools):
        """Test a missing tag is reported as an error."""
        _, tools = notes_and_tools

        result = await tools["rename_tag"]("missing", "other")

        assert result["status"] == "error"
        assert result["error"] == "Tag not found: #missing"

    @pytest.mark.asyncio
    async def test_invalid_name(self, notes_and_tools):
        """Test an invalid new name is reported as an error."""
        _, tools = notes_and_tools

        result = await tools["rename_tag"]("bug", "not valid")

        assert result["status"] == "error"
        assert "Invalid tag name" in result["error"]

    @pytest.mark.asyncio
    async def test_cascade_disabled(self, notes_and_tools):
        """Test cascade is refused unless enabled in config."""
        _, tools = notes_and_tools

        result = await tools["rename_tag"]("todo", "task", cascade=True)

        assert result["status"] == "error"
        assert "NOTETAGS_HIERARCHICAL_RENAME" in result["error"]

    @pytest.mark.asyncio
    async def test_cascade_enabled(self, notes_root, monkeypatch):
        """Test cascade renames nested tags when enabled."""
        workspace, tools = await build_tools(
            notes_root, monkeypatch, NOTETAGS_HIERARCHICAL_RENAME="true"
        )

        result = await tools["rename_tag"]("todo", "task", cascade=True)

        assert result["status"] == "renamed"
        assert result["renamed_tags"] == {"todo": "task", "todo/urgent": "task/urgent"}
        assert "#task/urgent" in (notes_root / "inbox.md").read_text()
        workspace.close()

    @pytest.mark.asyncio
    async def test_conflict(self, notes_and_tools):
        """Test a file edited after indexing aborts the rename."""
        notes_root, tools = notes_and_tools
        website = notes_root / "projects" / "website.md"
        website.write_text(website.read_text() + "Edited outside #bug\n")

        result = await tools["rename_tag"]("bug", "defect")

        assert result["status"] == "conflict"
        assert result["file_path"] == "projects/website.md"
        assert "#bug" in (notes_root / "inbox.md").read_text()

    @pytest.mark.asyncio
    async def test_read_only_mode(self, notes_root, monkeypatch):
        """Test rename is rejected in read-only mode."""
        workspace, tools = await build_tools(notes_root, monkeypatch, NOTETAGS_READ_ONLY="true")

        with pytest.raises(AuthError, match="read-only"):
            await tools["rename_tag"]("bug", "defect")

        assert "#bug" in (notes_root / "inbox.md").read_text()
        workspace.close()


class TestPreviewRenameTag:
    """Tests for preview_rename_tag."""

    @pytest.mark.asyncio
    async def test_preview(self, notes_and_tools):
        """Test preview lists the edits without writing."""
        notes_root, tools = notes_and_tools
        before = (notes_root / "inbox.md").read_text()

        result = tools["preview_rename_tag"]("todo", "work")

        assert result == {
            "status": "preview",
            "old_tag": "todo",
            "new_tag": "work",
            "renamed_tags": {"todo": "work"},
            "files": {"inbox.md": 1, "projects/website.md": 1},
            "edit_count": 2,
            "requires_confirmation": False,
            "merge_count": 0,
        }
        assert (notes_root / "inbox.md").read_text() == before

    @pytest.mark.asyncio
    async def test_preview_merge(self, notes_and_tools):
        """Test preview flags a merge."""
        _, tools = notes_and_tools

        result = tools["preview_rename_tag"]("api", "bug")

        assert result["requires_confirmation"] is True
        assert result["merge_count"] == 4

    @pytest.mark.asyncio
    async def test_preview_error(self, notes_and_tools):
        """Test preview reports errors like rename_tag."""
        _, tools = notes_and_tools
        assert tools["preview_rename_tag"]("missing", "x")["status"] == "error"
