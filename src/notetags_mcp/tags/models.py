"""Data models for the tag index."""

import enum
from dataclasses import dataclass, field
from typing import Literal

from notetags_mcp.tags.labels import SEPARATOR, get_parent_tag, normalize_tag


class EncodingKind(enum.Enum):
    """How a tag occurrence is written in the file."""

    INLINE_HASH = "inline_hash"  # #tag in the body
    YAML_FLOW_LIST_ENTRY = "yaml_flow_list_entry"  # tags: [a, b]
    YAML_BLOCK_LIST_ENTRY = "yaml_block_list_entry"  # tags:\n  - a


@dataclass(frozen=True)
class Tag:
    """A tag key with its display label."""

    key: str  # Normalized, used for comparison
    label: str  # As first seen in the corpus

    @property
    def segments(self) -> tuple[str, ...]:
        return tuple(self.key.split(SEPARATOR))

    @property
    def parent(self) -> str | None:
        return get_parent_tag(self.key)


@dataclass(frozen=True, order=True)
class Location:
    """Span of a tag's renamable text (never includes '#' or quotes)."""

    file_path: str
    line: int  # Zero-based
    character: int  # Zero-based
    length: int = field(compare=False)
    encoding: EncodingKind = field(compare=False)

    @property
    def end_character(self) -> int:
        return self.character + self.length


@dataclass(frozen=True)
class TagOccurrence:
    """One tag found by the scanner."""

    text: str  # Tag text exactly as written
    location: Location

    @property
    def key(self) -> str:
        return normalize_tag(self.text)


@dataclass(frozen=True)
class TagSummary:
    """Tag with its counts, used for listings."""

    tag: Tag
    reference_count: int
    file_count: int


# Tree nodes for the tag -> file -> reference view


@dataclass(frozen=True)
class TagNode:
    key: str
    label: str
    reference_count: int
    expandable: bool
    kind: Literal["tag"] = "tag"


@dataclass(frozen=True)
class FileNode:
    tag_key: str
    file_path: str
    display_name: str
    count: int
    kind: Literal["file"] = "file"


@dataclass(frozen=True)
class ReferenceNode:
    tag_key: str
    file_path: str
    line: int
    character: int
    length: int
    encoding: EncodingKind
    snippet: str
    kind: Literal["reference"] = "reference"


TreeNode = TagNode | FileNode | ReferenceNode


# Edits submitted to the file store


@dataclass(frozen=True)
class TextEdit:
    """Replace `length` characters at (line, character) with `replacement`."""

    line: int
    character: int
    length: int
    replacement: str
    expected: str  # Text the span must still hold


@dataclass(frozen=True)
class FileEdits:
    """All edits for one file, tied to the content hash they were computed from."""

    file_path: str
    expected_hash: str | None
    edits: tuple[TextEdit, ...]


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of an atomic multi-file edit."""

    ok: bool
    conflict_path: str | None = None
    reason: str | None = None
    written: tuple[str, ...] = ()


# Rename outcomes


@dataclass(frozen=True)
class Renamed:
    old_key: str
    new_key: str
    affected_files: tuple[str, ...]
    reference_count: int
    renamed_tags: dict[str, str] = field(default_factory=dict)  # old key -> new label
    status: Literal["renamed"] = "renamed"


@dataclass(frozen=True)
class RequiresConfirmation:
    old_key: str
    new_key: str
    merge_count: int  # Occurrences that would end up combined
    colliding_tags: tuple[str, ...]
    status: Literal["requires_confirmation"] = "requires_confirmation"


@dataclass(frozen=True)
class RenameConflict:
    old_key: str
    new_key: str
    file_path: str
    reason: str
    status: Literal["conflict"] = "conflict"


RenameResult = Renamed | RequiresConfirmation | RenameConflict
