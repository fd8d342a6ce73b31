"""MCP read tools for notetags-mcp.

This module defines the read-only tools exposed by the MCP server:
- list_tags: All tags with reference counts
- tag_files / tag_references: Expand the tag -> file -> reference view
- tags_for_file / files_with_tags: Tag lookups by file and by tag set
- tag_at_position: Tag under a cursor position
- tag_search_pattern / search_tag: Regex covering every tag encoding
- refresh_tags: Rebuild the index from disk
"""

from typing import Literal

from fastmcp import FastMCP

from notetags_mcp.tags.models import Location, ReferenceNode
from notetags_mcp.tags.patterns import pattern_for
from notetags_mcp.workspace import TagWorkspace


def location_to_dict(location: Location) -> dict:
    return {
        "file_path": location.file_path,
        "line": location.line,
        "character": location.character,
        "length": location.length,
        "encoding": location.encoding.value,
    }


def reference_to_dict(node: ReferenceNode) -> dict:
    return {
        "file_path": node.file_path,
        "line": node.line,
        "character": node.character,
        "length": node.length,
        "encoding": node.encoding.value,
        "snippet": node.snippet,
    }


def register_tools(mcp: FastMCP, workspace: TagWorkspace) -> None:
    """Register all read tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        workspace: Workspace session holding the tag index
    """
    index = workspace.index
    hierarchy = workspace.hierarchy

    @mcp.tool()
    def list_tags(sort: Literal["alphabetical", "frequency"] = "alphabetical") -> list[dict]:
        """List every tag in the notes with how often it is used.

        Args:
            sort: "alphabetical" (default) or "frequency" (most used first)

        Returns:
            List of tags with:
            - tag: Display label (without '#')
            - key: Normalized label used for matching
            - references: Total occurrences across all files
            - files: Number of files using the tag
        """
        return [
            {
                "tag": summary.tag.label,
                "key": summary.tag.key,
                "references": summary.reference_count,
                "files": summary.file_count,
            }
            for summary in index.get_all_tags(sort)
        ]

    @mcp.tool()
    def tag_files(tag: str) -> list[dict]:
        """List the files that use a tag, with the count per file.

        Args:
            tag: Tag name, with or without '#'

        Returns:
            Files sorted by name, each with file_path, name and count.
            Empty for an unknown tag.
        """
        return [
            {"file_path": node.file_path, "name": node.display_name, "count": node.count}
            for node in hierarchy.file_nodes(tag)
        ]

    @mcp.tool()
    async def tag_references(
        tag: str,
        file_path: str,
        lines_before: int = 0,
        lines_after: int = 0,
    ) -> list[dict]:
        """List each occurrence of a tag in one file with a line snippet.

        Args:
            tag: Tag name, with or without '#'
            file_path: File path relative to the notes root
            lines_before: Extra context lines above each occurrence
            lines_after: Extra context lines below each occurrence

        Returns:
            Occurrences sorted by position with line, character (zero-based),
            length, encoding and snippet.
        """
        nodes = await hierarchy.reference_nodes(
            tag, file_path, lines_before=max(0, lines_before), lines_after=max(0, lines_after)
        )
        return [reference_to_dict(node) for node in nodes]

    @mcp.tool()
    def tags_for_file(file_path: str) -> list[str]:
        """List the distinct tags used in a file.

        Args:
            file_path: File path relative to the notes root
        """
        return [tag.label for tag in index.get_tags_for_file(file_path)]

    @mcp.tool()
    def files_with_tags(tags: list[str], match_all: bool = True) -> list[str]:
        """Find files by tag.

        Args:
            tags: Tag names, with or without '#'
            match_all: True requires every tag (AND), False any of them (OR)
        """
        return index.get_files_with_tags(tags, match_all=match_all)

    @mcp.tool()
    def tag_at_position(file_path: str, line: int, character: int) -> dict:
        """Identify the tag at a cursor position (zero-based line and column).

        Returns:
            Dict with found, and when found the tag and its location
        """
        hit = index.get_tag_at_position(file_path, line, character)
        if hit is None:
            return {"found": False}
        tag, location = hit
        return {"found": True, "tag": tag.label, "key": tag.key, **location_to_dict(location)}

    @mcp.tool()
    def tag_search_pattern(tag: str) -> dict:
        """Build a regular expression matching a tag in all its encodings.

        The pattern covers inline #tag, frontmatter flow lists (tags: [a, b])
        and block list items (- tag). Python regex syntax.
        """
        return {"tag": tag, "pattern": pattern_for(tag)}

    @mcp.tool()
    async def search_tag(tag: str, limit: int = 100) -> list[dict]:
        """Search all note files for lines mentioning a tag.

        Unlike tag_files this reads the files as they are now, so it also
        finds occurrences the index has not caught up with yet.

        Args:
            tag: Tag name, with or without '#'
            limit: Maximum number of lines to return (default: 100)
        """
        matches = await workspace.search(tag, limit=max(1, limit))
        return [{"file_path": m.file_path, "line": m.line, "text": m.text} for m in matches]

    @mcp.tool()
    async def refresh_tags() -> dict:
        """Rebuild the tag index from the notes directory."""
        file_count = await workspace.refresh()
        return {"status": "refreshed", "files": file_count, "tags": index.tag_count}
