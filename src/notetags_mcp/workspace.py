"""Workspace session: the one object that owns the tag index.

A TagWorkspace is created at startup, passed to everything that needs the
index, and closed at shutdown. All index mutations (full refresh, per-file
reindex, rename) run under one asyncio lock. asyncio locks wake waiters in
FIFO order, so a change notification that arrives during a refresh is
applied after it; the file is read inside the lock, so the newest content
wins.
"""

import asyncio
import logging
from bisect import bisect_right
from dataclasses import dataclass

from notetags_mcp.config import Config
from notetags_mcp.tags.hierarchy import HierarchyBuilder
from notetags_mcp.tags.index import TagIndex
from notetags_mcp.tags.models import RenameResult, Tag
from notetags_mcp.tags.patterns import compile_pattern
from notetags_mcp.tags.rename import TagRenamer
from notetags_mcp.tags.store import FileStore, LocalFileStore, line_offsets
from notetags_mcp.tags.surfaces import ConfirmationPrompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchMatch:
    """A line matching a tag's search pattern."""

    file_path: str
    line: int
    text: str


class TagWorkspace:
    """Session context holding the store, index, view builder and renamer."""

    def __init__(
        self,
        store: FileStore,
        snippet_length: int = 60,
        hierarchical_rename: bool = False,
    ):
        self.store = store
        self.index = TagIndex()
        self._lock = asyncio.Lock()
        self.hierarchy = HierarchyBuilder(self.index, store, snippet_length)
        self.renamer = TagRenamer(
            self.index, store, lock=self._lock, hierarchical_rename=hierarchical_rename
        )
        self._closed = False

    @classmethod
    def from_config(cls, config: Config) -> "TagWorkspace":
        store = LocalFileStore(config.notes_root, config.extensions)
        return cls(
            store,
            snippet_length=config.snippet_length,
            hierarchical_rename=config.hierarchical_rename,
        )

    async def refresh(self) -> int:
        """
        Rebuild the index from every file in the store.

        Unreadable files are skipped. Returns the number of files scanned.
        """
        async with self._lock:
            files: list[tuple[str, str]] = []
            for file_path in await self.store.list_files():
                try:
                    files.append((file_path, await self.store.read_text(file_path)))
                except (OSError, UnicodeDecodeError, ValueError) as e:
                    logger.warning("Skipping unreadable file %s: %s", file_path, e)
            self.index.rebuild_all(files)
            return len(files)

    async def notify_file_changed(self, file_path: str) -> None:
        """Re-scan one file after it was created, modified or deleted."""
        async with self._lock:
            try:
                text = await self.store.read_text(file_path)
            except FileNotFoundError:
                logger.debug("File removed: %s", file_path)
                self.index.remove_file(file_path)
                return
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.warning("Skipping unreadable file %s: %s", file_path, e)
                self.index.remove_file(file_path)
                return
            self.index.reindex_file(file_path, text)

    async def rename(
        self,
        old_tag: Tag | str,
        new_label: str,
        confirm_merge: bool = False,
        cascade: bool = False,
    ) -> RenameResult:
        return await self.renamer.rename(
            old_tag, new_label, confirm_merge=confirm_merge, cascade=cascade
        )

    async def rename_with_prompt(
        self,
        old_tag: Tag | str,
        new_label: str,
        prompt: ConfirmationPrompt,
        cascade: bool = False,
    ) -> RenameResult:
        return await self.renamer.rename_with_prompt(old_tag, new_label, prompt, cascade=cascade)

    async def search(self, tag: Tag | str, limit: int = 100) -> list[SearchMatch]:
        """Find lines matching the tag's search pattern in every file."""
        pattern = compile_pattern(tag)
        matches: list[SearchMatch] = []
        for file_path in await self.store.list_files():
            try:
                text = await self.store.read_text(file_path)
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.debug("Skipping %s during search: %s", file_path, e)
                continue
            lines = text.split("\n")
            offsets = line_offsets(text)
            seen_lines: set[int] = set()
            for match in pattern.finditer(text):
                line = bisect_right(offsets, match.start()) - 1
                if line in seen_lines:
                    continue
                seen_lines.add(line)
                matches.append(
                    SearchMatch(file_path=file_path, line=line, text=lines[line].strip())
                )
                if len(matches) >= limit:
                    return matches
        return matches

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """End the session; the index is dropped."""
        self.index.clear()
        self._closed = True
        logger.info("Tag workspace closed")
