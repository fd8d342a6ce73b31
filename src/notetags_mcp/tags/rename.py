"""Workspace-wide tag rename and merge.

A rename is planned from the index, then handed to the file store as one
multi-file transaction. Each file's edits carry the content hash the file was
indexed from, so a file edited since indexing aborts the whole rename with
nothing written. Only after the store commits are the affected files
re-scanned into the index.
"""

import asyncio
import logging
from dataclasses import dataclass

from notetags_mcp.tags.errors import (
    HierarchicalRenameDisabledError,
    InvalidTagError,
    TagNotFoundError,
)
from notetags_mcp.tags.index import TagIndex
from notetags_mcp.tags.labels import get_child_tags, normalize_tag, validate_label
from notetags_mcp.tags.models import (
    FileEdits,
    Renamed,
    RenameConflict,
    RenameResult,
    RequiresConfirmation,
    Tag,
    TextEdit,
)
from notetags_mcp.tags.store import FileStore
from notetags_mcp.tags.surfaces import ConfirmationPrompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenamePlan:
    """Everything a rename would do, computed without touching any file."""

    old_key: str
    new_key: str
    new_label: str
    mapping: dict[str, str]  # source key -> new label
    collisions: tuple[str, ...]  # existing keys the rename would merge into
    merge_count: int
    file_edits: tuple[FileEdits, ...]

    @property
    def edit_count(self) -> int:
        return sum(len(f.edits) for f in self.file_edits)

    @property
    def affected_files(self) -> tuple[str, ...]:
        return tuple(f.file_path for f in self.file_edits)


def merge_message(result: RequiresConfirmation) -> str:
    """Question shown to the user before merging tags."""
    existing = ", ".join(f"#{key}" for key in result.colliding_tags)
    return (
        f"Tag {existing} already exists. Renaming #{result.old_key} will merge "
        f"{result.merge_count} occurrences. Continue?"
    )


class TagRenamer:
    """
    Renames tags across every file in the workspace.

    Hierarchical (cascading) rename rewrites 'old/child' tags along with 'old'.
    It is off unless enabled at construction; asking for it while disabled
    raises instead of quietly renaming only the exact tag.
    """

    def __init__(
        self,
        index: TagIndex,
        store: FileStore,
        lock: asyncio.Lock | None = None,
        hierarchical_rename: bool = False,
    ):
        self.index = index
        self.store = store
        self._lock = lock or asyncio.Lock()
        self._hierarchical_rename = hierarchical_rename

    @property
    def supports_hierarchical_rename(self) -> bool:
        return self._hierarchical_rename

    def plan(self, old_tag: Tag | str, new_label: str, cascade: bool = False) -> RenamePlan:
        """
        Work out the edits for a rename without applying them.

        Raises:
            InvalidTagError: If new_label is not a valid tag or equals the old tag
            HierarchicalRenameDisabledError: If cascade is requested but disabled
            TagNotFoundError: If the old tag has no occurrences
        """
        label = validate_label(new_label)
        new_key = normalize_tag(label)
        old_key = old_tag.key if isinstance(old_tag, Tag) else normalize_tag(old_tag)

        if old_key == new_key:
            raise InvalidTagError("New tag name is the same as the old tag name")
        if cascade and not self._hierarchical_rename:
            raise HierarchicalRenameDisabledError(
                "Hierarchical rename is not enabled (set NOTETAGS_HIERARCHICAL_RENAME=true)"
            )

        mapping = {old_key: label}
        if cascade:
            for child in get_child_tags(self.index.tag_keys, old_key):
                child_label = self.index.get_tag(child).label
                mapping[child] = label + child_label[len(old_key):]

        if not any(self.index.has_tag(key) for key in mapping):
            raise TagNotFoundError(old_key)

        collisions: list[str] = []
        merge_count = 0
        for source, target_label in mapping.items():
            target = normalize_tag(target_label)
            # A target that is itself being renamed away is not a collision
            if self.index.has_tag(target) and target not in mapping:
                collisions.append(target)
                merge_count += self.index.get_reference_count(source)
                merge_count += self.index.get_reference_count(target)

        affected = sorted(
            {loc.file_path for key in mapping for loc in self.index.get_locations_for_tag(key)}
        )
        file_edits = []
        for file_path in affected:
            edits = tuple(
                TextEdit(
                    line=occ.location.line,
                    character=occ.location.character,
                    length=occ.location.length,
                    replacement=mapping[occ.key],
                    expected=occ.text,
                )
                for occ in self.index.get_occurrences_for_file(file_path)
                if occ.key in mapping
            )
            file_edits.append(
                FileEdits(
                    file_path=file_path,
                    expected_hash=self.index.file_hash(file_path),
                    edits=edits,
                )
            )

        return RenamePlan(
            old_key=old_key,
            new_key=new_key,
            new_label=label,
            mapping=mapping,
            collisions=tuple(collisions),
            merge_count=merge_count,
            file_edits=tuple(file_edits),
        )

    async def rename(
        self,
        old_tag: Tag | str,
        new_label: str,
        confirm_merge: bool = False,
        cascade: bool = False,
    ) -> RenameResult:
        """
        Rename a tag everywhere it occurs.

        Args:
            old_tag: Tag to rename
            new_label: New label, with or without '#'
            confirm_merge: Allow the rename to merge into an existing tag
            cascade: Also rename tags nested under old_tag

        Returns:
            Renamed on success, RequiresConfirmation if the rename would merge
            tags and confirm_merge is False, RenameConflict if a file changed
            underneath (nothing written in either of the last two cases)
        """
        async with self._lock:
            plan = self.plan(old_tag, new_label, cascade=cascade)

            if plan.collisions and not confirm_merge:
                logger.info(
                    "Rename #%s -> #%s needs merge confirmation (%d occurrences)",
                    plan.old_key,
                    plan.new_key,
                    plan.merge_count,
                )
                return RequiresConfirmation(
                    old_key=plan.old_key,
                    new_key=plan.new_key,
                    merge_count=plan.merge_count,
                    colliding_tags=plan.collisions,
                )

            result = await self.store.apply_atomic_edits(plan.file_edits)
            if not result.ok:
                logger.warning(
                    "Rename #%s -> #%s aborted, conflict in %s: %s",
                    plan.old_key,
                    plan.new_key,
                    result.conflict_path,
                    result.reason,
                )
                return RenameConflict(
                    old_key=plan.old_key,
                    new_key=plan.new_key,
                    file_path=result.conflict_path or "",
                    reason=result.reason or "conflict",
                )

            for file_path in result.written:
                try:
                    text = await self.store.read_text(file_path)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning("Cannot re-read %s after rename: %s", file_path, e)
                    self.index.remove_file(file_path)
                    continue
                self.index.reindex_file(file_path, text)

            logger.info(
                "Renamed #%s -> #%s: %d edits in %d files",
                plan.old_key,
                plan.new_key,
                plan.edit_count,
                len(result.written),
            )
            return Renamed(
                old_key=plan.old_key,
                new_key=plan.new_key,
                affected_files=plan.affected_files,
                reference_count=self.index.get_reference_count(plan.new_key),
                renamed_tags=dict(plan.mapping),
            )

    async def rename_with_prompt(
        self,
        old_tag: Tag | str,
        new_label: str,
        prompt: ConfirmationPrompt,
        cascade: bool = False,
    ) -> RenameResult:
        """Rename, asking the user first if the rename would merge tags."""
        result = await self.rename(old_tag, new_label, cascade=cascade)
        if not isinstance(result, RequiresConfirmation):
            return result
        if not await prompt.confirm(merge_message(result)):
            logger.info("Merge of #%s into #%s declined", result.old_key, result.new_key)
            return result
        return await self.rename(old_tag, new_label, confirm_merge=True, cascade=cascade)
