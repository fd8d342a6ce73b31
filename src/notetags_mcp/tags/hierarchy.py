"""Lazy tag -> file -> reference view over the tag index.

Nothing is built ahead of time: each call derives one level of the tree from
the index snapshot current at that moment. Only the reference level touches
the file store (to read the line snippets), and that read is awaited, so a
caller that cancels an expansion simply never sees its result.
"""

import logging
from collections import Counter
from pathlib import PurePosixPath

from notetags_mcp.tags.index import TagIndex
from notetags_mcp.tags.models import FileNode, ReferenceNode, Tag, TagNode, TreeNode
from notetags_mcp.tags.store import FileStore
from notetags_mcp.tags.surfaces import NavigationSurface

logger = logging.getLogger(__name__)

DEFAULT_SNIPPET_LENGTH = 60
SNIPPET_ELLIPSIS = "..."


def display_name(file_path: str) -> str:
    """File name without directory or extension."""
    return PurePosixPath(file_path).stem


def extract_context(
    lines: list[str], line_number: int, lines_before: int = 0, lines_after: int = 0
) -> str:
    """Return the line at line_number plus the requested surrounding lines."""
    if not lines:
        return ""
    start = max(0, line_number - lines_before)
    end = min(len(lines) - 1, line_number + lines_after)
    return "\n".join(line.rstrip() for line in lines[start : end + 1])


def truncate_snippet(text: str, max_length: int = DEFAULT_SNIPPET_LENGTH) -> str:
    """Strip text and cut it to max_length characters, marking the cut."""
    text = text.strip()
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + SNIPPET_ELLIPSIS


class HierarchyBuilder:
    """Builds tree nodes on demand for a tags view."""

    def __init__(
        self,
        index: TagIndex,
        store: FileStore,
        snippet_length: int = DEFAULT_SNIPPET_LENGTH,
    ):
        if snippet_length <= 0:
            raise ValueError(f"Snippet length must be positive, got {snippet_length}")
        self.index = index
        self.store = store
        self.snippet_length = snippet_length

    def root_nodes(self) -> list[TagNode]:
        """One node per tag, alphabetical."""
        nodes = []
        for tag in self.index.get_all_tag_labels():
            count = self.index.get_reference_count(tag)
            nodes.append(
                TagNode(key=tag.key, label=tag.label, reference_count=count, expandable=count > 0)
            )
        return nodes

    def file_nodes(self, tag: Tag | str) -> list[FileNode]:
        """One node per file containing the tag, sorted by display name."""
        locations = self.index.get_locations_for_tag(tag)
        if not locations:
            return []
        tag_key = self.index.get_tag(tag).key
        counts = Counter(loc.file_path for loc in locations)
        nodes = [
            FileNode(
                tag_key=tag_key,
                file_path=file_path,
                display_name=display_name(file_path),
                count=count,
            )
            for file_path, count in counts.items()
        ]
        nodes.sort(key=lambda n: (n.display_name.casefold(), n.file_path))
        return nodes

    async def reference_nodes(
        self,
        tag: Tag | str,
        file_path: str,
        lines_before: int = 0,
        lines_after: int = 0,
    ) -> list[ReferenceNode]:
        """
        One node per occurrence of a tag in a file, with a line snippet.

        Args:
            tag: Tag or tag text
            file_path: File to list references for
            lines_before: Extra lines of context above the reference
            lines_after: Extra lines of context below the reference

        Returns:
            Nodes sorted by line then character; empty if the file can't be read
        """
        locations = self.index.get_locations_for_tag_in_file(tag, file_path)
        if not locations:
            return []
        tag_key = self.index.get_tag(tag).key

        try:
            text = await self.store.read_text(file_path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s for tag references: %s", file_path, e)
            return []

        lines = text.split("\n")
        nodes = [
            ReferenceNode(
                tag_key=tag_key,
                file_path=file_path,
                line=loc.line,
                character=loc.character,
                length=loc.length,
                encoding=loc.encoding,
                snippet=truncate_snippet(
                    extract_context(lines, loc.line, lines_before, lines_after),
                    self.snippet_length,
                ),
            )
            for loc in locations
        ]
        nodes.sort(key=lambda n: (n.line, n.character))
        return nodes

    async def children(self, node: TreeNode | None = None) -> list[TreeNode]:
        """Expand one level: roots, then files of a tag, then references in a file."""
        if node is None:
            return list(self.root_nodes())
        if isinstance(node, TagNode):
            return list(self.file_nodes(node.key))
        if isinstance(node, FileNode):
            return list(await self.reference_nodes(node.tag_key, node.file_path))
        return []

    async def activate(self, node: ReferenceNode, navigator: NavigationSurface) -> None:
        """Open the reference's file with the tag text selected."""
        await navigator.open_and_select(node.file_path, node.line, node.character, node.length)
