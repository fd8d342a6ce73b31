"""Write tools for notetags-mcp - rename and merge tags across the notes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from notetags_mcp.auth import check_write_permission
from notetags_mcp.config import Config
from notetags_mcp.tags.errors import TagError
from notetags_mcp.tags.models import Renamed, RenameResult, RequiresConfirmation
from notetags_mcp.tags.rename import merge_message
from notetags_mcp.workspace import TagWorkspace

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)


def rename_result_to_dict(result: RenameResult) -> dict:
    """Convert a rename outcome to a tool response."""
    data = {"status": result.status, "old_tag": result.old_key, "new_tag": result.new_key}
    if isinstance(result, Renamed):
        data["affected_files"] = list(result.affected_files)
        data["reference_count"] = result.reference_count
        data["renamed_tags"] = result.renamed_tags
    elif isinstance(result, RequiresConfirmation):
        data["merge_count"] = result.merge_count
        data["existing_tags"] = list(result.colliding_tags)
        data["message"] = merge_message(result) + " Call again with confirm_merge=true."
    else:
        data["file_path"] = result.file_path
        data["error"] = f"{result.file_path} changed since it was indexed: {result.reason}"
    return data


def register_tools_write(mcp: "FastMCP", config: Config, workspace: TagWorkspace) -> None:
    """Register all write tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        config: Config instance for the read-only check
        workspace: Workspace session to rename tags in
    """

    @mcp.tool()
    async def rename_tag(
        old_tag: str,
        new_tag: str,
        confirm_merge: bool = False,
        cascade: bool = False,
    ) -> dict:
        """Rename a tag in every note, as one all-or-nothing edit.

        Inline '#old' becomes '#new' and frontmatter list entries are
        rewritten in place. If new_tag already exists the tags would be
        merged; that needs confirm_merge=true.

        Args:
            old_tag: Tag to rename, with or without '#'
            new_tag: New tag name
            confirm_merge: Allow merging into an existing tag
            cascade: Also rename nested tags (old/child -> new/child);
                only available when hierarchical rename is enabled

        Returns:
            Dict with status "renamed", "requires_confirmation", "conflict"
            or "error", plus details
        """
        check_write_permission(config)

        try:
            result = await workspace.rename(
                old_tag, new_tag, confirm_merge=confirm_merge, cascade=cascade
            )
        except TagError as e:
            return {"status": "error", "old_tag": old_tag, "new_tag": new_tag, "error": str(e)}

        if isinstance(result, Renamed):
            logger.info(
                "Renamed tag %s -> %s in %d files",
                old_tag,
                new_tag,
                len(result.affected_files),
            )
        return rename_result_to_dict(result)

    @mcp.tool()
    def preview_rename_tag(old_tag: str, new_tag: str, cascade: bool = False) -> dict:
        """Show what rename_tag would change, without writing anything.

        Returns:
            Dict with the files and number of edits, the tags being renamed,
            and whether the rename would merge into existing tags
        """
        try:
            plan = workspace.renamer.plan(old_tag, new_tag, cascade=cascade)
        except TagError as e:
            return {"status": "error", "old_tag": old_tag, "new_tag": new_tag, "error": str(e)}

        return {
            "status": "preview",
            "old_tag": plan.old_key,
            "new_tag": plan.new_key,
            "renamed_tags": plan.mapping,
            "files": {f.file_path: len(f.edits) for f in plan.file_edits},
            "edit_count": plan.edit_count,
            "requires_confirmation": bool(plan.collisions),
            "merge_count": plan.merge_count,
        }
