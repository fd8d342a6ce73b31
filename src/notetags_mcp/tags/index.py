"""In-memory tag index: tag key -> file -> ordered locations."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

from notetags_mcp.tags.labels import normalize_tag
from notetags_mcp.tags.models import EncodingKind, Location, Tag, TagOccurrence, TagSummary
from notetags_mcp.tags.scanner import scan
from notetags_mcp.tags.walker import compute_hash

logger = logging.getLogger(__name__)

TagSortOrder = Literal["alphabetical", "frequency"]


@dataclass(frozen=True)
class _Snapshot:
    """One generation of the index. Never mutated once installed."""

    # path -> occurrences in (line, character) order
    files: dict[str, tuple[TagOccurrence, ...]] = field(default_factory=dict)
    # path -> hash of the text the occurrences came from
    hashes: dict[str, str] = field(default_factory=dict)
    # key -> path -> locations of that tag in that file
    tags: dict[str, dict[str, tuple[Location, ...]]] = field(default_factory=dict)
    # key -> display label
    labels: dict[str, str] = field(default_factory=dict)


def _group_by_key(occurrences: Iterable[TagOccurrence]) -> dict[str, tuple[Location, ...]]:
    """Group one file's occurrences by tag key, dropping duplicate positions."""
    grouped: dict[str, dict[tuple[int, int], Location]] = {}
    for occ in occurrences:
        loc = occ.location
        grouped.setdefault(occ.key, {}).setdefault((loc.line, loc.character), loc)
    return {
        key: tuple(by_pos[pos] for pos in sorted(by_pos)) for key, by_pos in grouped.items()
    }


def _first_label(
    key: str,
    files: dict[str, tuple[TagOccurrence, ...]],
    paths: dict[str, tuple[Location, ...]],
) -> str:
    """Display label of a key: its text at the first location in index order."""
    first_path = min(paths)
    for occ in files[first_path]:
        if occ.key == key:
            return occ.text
    return key


class TagIndex:
    """
    Index of every tag occurrence in the workspace.

    Reads and writes never interleave half-way: every query takes the current
    snapshot once, and every rebuild or reindex builds a fresh snapshot and
    installs it with a single assignment. Unchanged files keep their location
    tuples across generations.
    """

    def __init__(self) -> None:
        self._snapshot = _Snapshot()

    # Mutations

    def rebuild_all(self, files: Iterable[tuple[str, str]]) -> None:
        """
        Discard the index and rebuild it from (file_path, text) pairs.

        Args:
            files: Every file in the workspace with its current text
        """
        scanned: dict[str, tuple[TagOccurrence, ...]] = {}
        hashes: dict[str, str] = {}
        file_count = 0

        for file_path, text in files:
            file_count += 1
            occurrences = tuple(scan(file_path, text))
            if occurrences:
                scanned[file_path] = occurrences
                hashes[file_path] = compute_hash(text)

        tags: dict[str, dict[str, tuple[Location, ...]]] = {}
        for file_path in sorted(scanned):
            for key, locations in _group_by_key(scanned[file_path]).items():
                tags.setdefault(key, {})[file_path] = locations

        labels = {key: _first_label(key, scanned, paths) for key, paths in tags.items()}

        self._snapshot = _Snapshot(files=scanned, hashes=hashes, tags=tags, labels=labels)
        logger.info(
            "Tag index rebuilt: %d tags in %d of %d files",
            len(tags),
            len(scanned),
            file_count,
        )

    def reindex_file(self, file_path: str, text: str) -> None:
        """
        Replace one file's entries after its content changed.

        A file that no longer contains tags is dropped from the index.
        """
        occurrences = tuple(scan(file_path, text))
        self._replace_file(file_path, occurrences, compute_hash(text) if occurrences else None)

    def clear(self) -> None:
        """Drop every entry."""
        self._snapshot = _Snapshot()

    def remove_file(self, file_path: str) -> None:
        """Drop a file (deleted or unreadable) from the index."""
        if file_path in self._snapshot.files:
            self._replace_file(file_path, (), None)

    def _replace_file(
        self,
        file_path: str,
        occurrences: tuple[TagOccurrence, ...],
        content_hash: str | None,
    ) -> None:
        snap = self._snapshot
        old_keys = set(_group_by_key(snap.files.get(file_path, ())))
        new_groups = _group_by_key(occurrences)

        files = dict(snap.files)
        hashes = dict(snap.hashes)
        if occurrences:
            files[file_path] = occurrences
            hashes[file_path] = content_hash or ""
        else:
            files.pop(file_path, None)
            hashes.pop(file_path, None)

        tags = dict(snap.tags)
        labels = dict(snap.labels)
        for key in old_keys | set(new_groups):
            paths = dict(tags.get(key, {}))
            if key in new_groups:
                paths[file_path] = new_groups[key]
            else:
                paths.pop(file_path, None)

            if paths:
                tags[key] = paths
                labels[key] = _first_label(key, files, paths)
            else:
                tags.pop(key, None)
                labels.pop(key, None)

        self._snapshot = _Snapshot(files=files, hashes=hashes, tags=tags, labels=labels)
        logger.debug("Reindexed %s: %d tag occurrences", file_path, len(occurrences))

    # Queries

    @staticmethod
    def _key(tag: Tag | str) -> str:
        return tag.key if isinstance(tag, Tag) else normalize_tag(tag)

    def get_all_tag_labels(self) -> list[Tag]:
        """All tags, alphabetical by key."""
        snap = self._snapshot
        return [Tag(key=key, label=snap.labels[key]) for key in sorted(snap.tags)]

    def get_tag(self, tag: Tag | str) -> Tag | None:
        key = self._key(tag)
        label = self._snapshot.labels.get(key)
        return Tag(key=key, label=label) if label is not None else None

    def get_reference_count(self, tag: Tag | str) -> int:
        paths = self._snapshot.tags.get(self._key(tag), {})
        return sum(len(locations) for locations in paths.values())

    def get_locations_for_tag(self, tag: Tag | str) -> list[Location]:
        """Every location of a tag, ordered by file path, line, character."""
        paths = self._snapshot.tags.get(self._key(tag), {})
        return [loc for file_path in sorted(paths) for loc in paths[file_path]]

    def get_locations_for_tag_in_file(self, tag: Tag | str, file_path: str) -> list[Location]:
        """Locations of a tag in one file, ordered by line then character."""
        paths = self._snapshot.tags.get(self._key(tag), {})
        return list(paths.get(file_path, ()))

    def get_occurrences_for_file(self, file_path: str) -> tuple[TagOccurrence, ...]:
        """The stored occurrences of one file (same tuple until the file changes)."""
        return self._snapshot.files.get(file_path, ())

    def get_tags_for_file(self, file_path: str) -> list[Tag]:
        """Distinct tags used in a file, alphabetical by key."""
        snap = self._snapshot
        keys = {occ.key for occ in snap.files.get(file_path, ())}
        return [Tag(key=key, label=snap.labels[key]) for key in sorted(keys)]

    def get_files_with_tags(
        self, tags: Iterable[Tag | str], match_all: bool = True
    ) -> list[str]:
        """
        Files containing all (match_all=True) or any of the given tags.

        Returns:
            Sorted file paths; empty when no tags are given
        """
        snap = self._snapshot
        file_sets = [set(snap.tags.get(self._key(t), {})) for t in tags]
        if not file_sets:
            return []
        if match_all:
            result = set.intersection(*file_sets)
        else:
            result = set.union(*file_sets)
        return sorted(result)

    def get_tag_at_position(
        self, file_path: str, line: int, character: int
    ) -> tuple[Tag, Location] | None:
        """Find the tag under a cursor position (the '#' counts as part of it)."""
        snap = self._snapshot
        for occ in snap.files.get(file_path, ()):
            loc = occ.location
            if loc.line != line:
                continue
            start = loc.character - 1 if loc.encoding is EncodingKind.INLINE_HASH else loc.character
            if start <= character <= loc.end_character:
                return Tag(key=occ.key, label=snap.labels[occ.key]), loc
        return None

    def get_all_tags(self, sort_order: TagSortOrder = "alphabetical") -> list[TagSummary]:
        """All tags with reference and file counts."""
        snap = self._snapshot
        summaries = [
            TagSummary(
                tag=Tag(key=key, label=snap.labels[key]),
                reference_count=sum(len(locs) for locs in paths.values()),
                file_count=len(paths),
            )
            for key, paths in snap.tags.items()
        ]
        if sort_order == "frequency":
            summaries.sort(key=lambda s: (-s.reference_count, s.tag.key))
        elif sort_order == "alphabetical":
            summaries.sort(key=lambda s: s.tag.key)
        else:
            raise ValueError(f"Unknown sort order: {sort_order}")
        return summaries

    def has_tag(self, tag: Tag | str) -> bool:
        return self._key(tag) in self._snapshot.tags

    def file_hash(self, file_path: str) -> str | None:
        """Hash of the text a file was last indexed from."""
        return self._snapshot.hashes.get(file_path)

    @property
    def tag_keys(self) -> list[str]:
        return sorted(self._snapshot.tags)

    @property
    def tag_count(self) -> int:
        return len(self._snapshot.tags)

    @property
    def files(self) -> list[str]:
        """Indexed files that contain at least one tag."""
        return sorted(self._snapshot.files)
